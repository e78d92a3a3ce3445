# =============================================================================
# CONFTEST - Fixtures compartilhadas para todos os testes
# =============================================================================
# Backend em memória, serviço e quiz de exemplo
# =============================================================================

import os
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import patch

import pytest

NOW = datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# FIXTURES DE AMBIENTE
# =============================================================================


@pytest.fixture
def clean_env():
    """Limpa variáveis de ambiente para testes isolados."""
    with patch.dict(os.environ, {}, clear=True):
        yield


@pytest.fixture
def now() -> datetime:
    """Instante fixo usado como 'agora' nos testes."""
    return NOW


# =============================================================================
# FIXTURES DE STORAGE / SERVIÇO
# =============================================================================


@pytest.fixture
def backend():
    """Backend KV em memória (mesma interface do AgentFS)."""
    from quiz_grading.storage import InMemoryBackend

    return InMemoryBackend()


@pytest.fixture
def service(backend):
    """QuizAttemptService sobre o backend em memória."""
    from quiz_grading.config import GradingConfig
    from quiz_grading.engine.service import QuizAttemptService

    return QuizAttemptService(backend, GradingConfig(lock_timeout_seconds=2.0))


# =============================================================================
# FIXTURES DE DADOS DE TESTE
# =============================================================================


def quiz_rows(quiz_id: str = "quiz-1", **quiz_fields: Any) -> dict[str, list[dict[str, Any]]]:
    """Linhas de um quiz com um exemplo de cada tipo de pergunta.

    Perguntas (pontuação máxima 8):
        q-mcq    mcq_single  1pt  correta: o1
        q-num    numeric     2pt  correta: 10 (+/- 1)
        q-multi  mcq_multi   1pt  corretas: A, B, C
        q-tf     true_false  1pt  correta: "Falso" (order_index 1)
        q-text   short_text  3pt  correção manual
    """
    quiz = {
        "id": quiz_id,
        "title": "Quiz de Exemplo",
        "time_limit_minutes": 30,
        "attempts_allowed": 2,
        "start_at": (NOW - timedelta(days=1)).isoformat(),
        "end_at": (NOW + timedelta(days=1)).isoformat(),
        "show_results_policy": "after_close",
    }
    quiz.update(quiz_fields)

    questions = [
        {"id": "q-mcq", "quiz_id": quiz_id, "type": "mcq_single", "points": 1, "order_index": 0},
        {
            "id": "q-num",
            "quiz_id": quiz_id,
            "type": "numeric",
            "points": 2,
            "tolerance": 1,
            "order_index": 1,
        },
        {"id": "q-multi", "quiz_id": quiz_id, "type": "mcq_multi", "points": 1, "order_index": 2},
        {"id": "q-tf", "quiz_id": quiz_id, "type": "true_false", "points": 1, "order_index": 3},
        {"id": "q-text", "quiz_id": quiz_id, "type": "short_text", "points": 3, "order_index": 4},
    ]
    options = [
        {"id": "o1", "question_id": "q-mcq", "text": "Brasilia", "is_correct": True, "order_index": 0},
        {"id": "o2", "question_id": "q-mcq", "text": "Rio", "order_index": 1},
        {"id": "o3", "question_id": "q-mcq", "text": "Sao Paulo", "order_index": 2},
        {"id": "n1", "question_id": "q-num", "text": "10", "is_correct": True},
        {"id": "A", "question_id": "q-multi", "text": "2", "is_correct": True, "order_index": 0},
        {"id": "B", "question_id": "q-multi", "text": "3", "is_correct": True, "order_index": 1},
        {"id": "C", "question_id": "q-multi", "text": "5", "is_correct": True, "order_index": 2},
        {"id": "D", "question_id": "q-multi", "text": "9", "order_index": 3},
        {"id": "tf-v", "question_id": "q-tf", "text": "Verdadeiro", "order_index": 0},
        {"id": "tf-f", "question_id": "q-tf", "text": "Falso", "is_correct": True, "order_index": 1},
    ]
    return {"quiz": [quiz], "questions": questions, "options": options}


async def load_rows(bank, rows: dict[str, list[dict[str, Any]]]) -> None:
    for quiz in rows.get("quiz", []):
        await bank.save_quiz(quiz)
    for question in rows.get("questions", []):
        await bank.save_question(question)
    for option in rows.get("options", []):
        await bank.save_option(option)


@pytest.fixture
def seed_quiz(service):
    """Factory assíncrona que grava o quiz de exemplo.

    Uso:
        quiz = await seed_quiz(attempts_allowed=1)
    """

    async def _seed(quiz_id: str = "quiz-1", **quiz_fields: Any):
        await load_rows(service.bank, quiz_rows(quiz_id, **quiz_fields))
        return await service.bank.get_quiz(quiz_id)

    return _seed


@pytest.fixture
def seed_rows(service):
    """Factory assíncrona que grava linhas arbitrarias no banco de perguntas."""

    async def _seed(rows: dict[str, list[dict[str, Any]]]):
        await load_rows(service.bank, rows)

    return _seed


@pytest.fixture
def app_service():
    """Serviço já populado instalado no app_state (testes HTTP).

    Quiz sem janela de tempo e com resultados imediatos, pois os
    endpoints usam o relógio real.
    """
    import asyncio

    from quiz_grading import app_state
    from quiz_grading.config import GradingConfig
    from quiz_grading.engine.service import QuizAttemptService
    from quiz_grading.storage import InMemoryBackend

    service = QuizAttemptService(InMemoryBackend(), GradingConfig(lock_timeout_seconds=2.0))
    rows = quiz_rows(start_at=None, end_at=None, show_results_policy="immediate")
    asyncio.run(load_rows(service.bank, rows))

    app_state.service = service
    yield service
    app_state.service = None
