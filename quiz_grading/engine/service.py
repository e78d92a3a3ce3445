"""Quiz Attempt Service - Fronteira de apresentação (aluno e corretor).

Orquestra QuestionBank, AttemptStore, AnswerStore, AutoGrader,
AttemptStateMachine e ScoreReconciler. Stateless: todo estado vive na
persistência, toda operação recebe ids e ``now`` explícitos.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..config import GradingConfig, StorageBackend
from ..models.entities import Answer, Attempt, Quiz
from ..storage import AnswerStore, AttemptStore, InMemoryBackend, QuestionBank
from .attempt_machine import AttemptStateMachine, FinalizeResult
from .auto_grader import AutoGrader
from .locks import KeyedLocks
from .manual_grading import GradeAnswerResult, ManualGrader
from .reconciler import ReconcileResult, ScoreReconciler
from .statistics import AttemptSummary, QuizStatistics, quiz_statistics, summarize_attempt
from .visibility import can_show_results

logger = logging.getLogger(__name__)


@dataclass
class SubmitResult:
    """Tentativa enviada e corrigida automaticamente."""

    attempt: Attempt
    warnings: list[str] = field(default_factory=list)


@dataclass
class AttemptResults:
    """Resultado visível para o aluno."""

    quiz: Quiz
    attempt: Attempt
    answers: list[Answer]
    summary: AttemptSummary


@dataclass
class QuizAttemptsOverview:
    """Tentativas de um quiz com estatísticas (visão do corretor)."""

    quiz: Quiz
    attempts: list[Attempt]
    statistics: QuizStatistics


class QuizAttemptService:
    """Operações expostas para aluno e corretor.

    Aluno:
        start_or_resume_attempt, save_answer, submit_attempt,
        get_results_if_visible

    Corretor:
        list_attempts_for_quiz, get_attempt_answers, grade_answer,
        grade_answers_bulk, finalize_attempt, recalculate_score

    Example:
        >>> service = QuizAttemptService(InMemoryBackend())
        >>> attempt = await service.start_or_resume_attempt("quiz-1", "aluno-1", now)
        >>> await service.save_answer(attempt.id, "q-1", {"kind": "boolean", "value": True}, now)
        >>> result = await service.submit_attempt(attempt.id, now)
    """

    def __init__(self, agentfs, config: GradingConfig | None = None):
        self.config = config or GradingConfig()
        self.agentfs = agentfs

        self.bank = QuestionBank(agentfs, self.config.default_results_policy)
        self.attempts = AttemptStore(agentfs)
        self.answers = AnswerStore(agentfs, self.attempts, self.bank)

        self.locks = KeyedLocks(timeout_seconds=self.config.lock_timeout_seconds)
        self.grader = AutoGrader()
        self.reconciler = ScoreReconciler(self.bank, self.attempts, self.answers)
        self.machine = AttemptStateMachine(
            self.bank,
            self.attempts,
            self.answers,
            reconciler=self.reconciler,
            grader=self.grader,
            locks=self.locks,
        )
        self.manual = ManualGrader(self.bank, self.attempts, self.answers)

    # =========================================================================
    # ALUNO
    # =========================================================================

    async def start_or_resume_attempt(self, quiz_id: str, student_id: str, now: datetime) -> Attempt:
        """Retoma tentativa em andamento ou cria uma nova.

        Raises:
            NotFound, QuizClosed, NoAttemptsRemaining
        """
        return await self.machine.start(quiz_id, student_id, now)

    async def save_answer(
        self,
        attempt_id: str,
        question_id: str,
        payload: Any,
        now: datetime | None = None,
    ) -> Answer:
        """Autosave de uma resposta (last write wins).

        Raises:
            NotFound, InvalidState, InvalidPayload
        """
        return await self.answers.upsert(attempt_id, question_id, payload, now)

    async def submit_attempt(
        self,
        attempt_id: str,
        now: datetime,
        observed_duration_seconds: float | None = None,
    ) -> SubmitResult:
        """Envia, corrige objetivas e reconcilia a nota.

        O status fica ``submitted``; ``graded`` só via finalize_attempt.

        Raises:
            NotFound, InvalidState
        """
        await self.machine.submit(attempt_id, now, observed_duration_seconds)

        async with self.locks.hold(f"attempt:{attempt_id}"):
            warnings = await self.machine.auto_grade(attempt_id)
            result = await self.reconciler.recalculate(attempt_id)
            warnings.extend(w for w in result.warnings if w not in warnings)
            attempt = await self.attempts.get(attempt_id)

        return SubmitResult(attempt=attempt, warnings=warnings)

    async def get_results_if_visible(self, attempt_id: str, now: datetime) -> AttemptResults | None:
        """Resultado da tentativa, ou None se a política do quiz não permite.

        Raises:
            NotFound: Tentativa ou quiz inexistente
        """
        attempt = await self.attempts.get(attempt_id)
        quiz = await self.bank.get_quiz(attempt.quiz_id)
        if not can_show_results(quiz, attempt, now):
            logger.debug(f"Resultado oculto: tentativa={attempt_id} política={quiz.show_results_policy.value}")
            return None

        questions = await self.bank.list_questions(quiz.id)
        answers = await self.answers.list_by_attempt(attempt_id)
        return AttemptResults(
            quiz=quiz,
            attempt=attempt,
            answers=answers,
            summary=summarize_attempt(questions, answers, attempt),
        )

    # =========================================================================
    # CORRETOR
    # =========================================================================

    async def list_attempts_for_quiz(self, quiz_id: str) -> QuizAttemptsOverview:
        """Todas as tentativas do quiz com média/mediana/desvio.

        Raises:
            NotFound: Quiz inexistente
        """
        quiz = await self.bank.get_quiz(quiz_id)
        attempts = await self.attempts.list_by_quiz(quiz_id)
        return QuizAttemptsOverview(
            quiz=quiz, attempts=attempts, statistics=quiz_statistics(attempts)
        )

    async def get_attempt_answers(self, attempt_id: str) -> tuple[Attempt, list[Answer]]:
        """Tentativa e respostas, sem filtro de visibilidade (corretor)."""
        attempt = await self.attempts.get(attempt_id)
        return attempt, await self.answers.list_by_attempt(attempt_id)

    async def grade_answer(
        self,
        answer_id: str,
        points_awarded: Any,
        comment: str | None = None,
    ) -> GradeAnswerResult:
        """Corrige uma resposta. Não atualiza a nota (ver recalculate_score).

        Raises:
            NotFound, InvalidState
        """
        return await self.manual.grade_answer(answer_id, points_awarded, comment)

    async def grade_answers_bulk(self, grades: list[dict[str, Any]]) -> list[GradeAnswerResult]:
        """Corrige um lote de respostas. Não atualiza a nota."""
        return await self.manual.grade_answers_bulk(grades)

    async def finalize_attempt(self, attempt_id: str) -> FinalizeResult:
        """Completa correções pendentes, reconcilia e marca graded.

        Raises:
            NotFound, InvalidState
        """
        return await self.machine.finalize(attempt_id)

    async def recalculate_score(self, attempt_id: str) -> ReconcileResult:
        """Recalcula ``Attempt.score`` a partir das respostas.

        Raises:
            NotFound, InvalidState
        """
        async with self.locks.hold(f"attempt:{attempt_id}"):
            return await self.reconciler.recalculate(attempt_id)

    async def close(self) -> None:
        close = getattr(self.agentfs, "close", None)
        if close is not None:
            await close()


async def create_service(config: GradingConfig, agentfs=None) -> QuizAttemptService:
    """Cria o serviço com o backend configurado.

    Args:
        config: Configuração (backend, política default, timeout de lock)
        agentfs: Backend já aberto; se None, abre conforme ``storage_backend``
    """
    if agentfs is None:
        if config.storage_backend is StorageBackend.AGENTFS:
            from agentfs_sdk import AgentFS, AgentFSOptions

            agentfs = await AgentFS.open(AgentFSOptions(id=config.agentfs_id))
        else:
            agentfs = InMemoryBackend()

    logger.info(f"Serviço de tentativas iniciado (backend={config.storage_backend.value})")
    return QuizAttemptService(agentfs, config)
