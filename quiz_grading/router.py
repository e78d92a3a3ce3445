"""Quiz Grading Router - Endpoints FastAPI (aluno e corretor)."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from . import app_state
from .engine.attempt_machine import remaining_seconds
from .engine.service import QuizAttemptService
from .exceptions import (
    GradingError,
    InvalidPayload,
    InvalidState,
    NoAttemptsRemaining,
    NotFound,
    QuizClosed,
)
from .models.entities import Answer, utc_now
from .models.schemas import (
    AttemptAnswersResponse,
    AttemptResponse,
    AttemptResultsResponse,
    BulkGradeRequest,
    BulkGradeResponse,
    FinalizeAttemptResponse,
    GradeAnswerRequest,
    GradeAnswerResponse,
    QuizAttemptsResponse,
    RecalculateScoreResponse,
    SaveAnswerRequest,
    StartAttemptRequest,
    SubmitAttemptRequest,
    SubmitAttemptResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Quiz Attempts"])

# =============================================================================
# ERROS DE DOMÍNIO -> HTTP
# =============================================================================

ERROR_STATUS: dict[type[GradingError], int] = {
    NotFound: 404,
    InvalidState: 409,
    QuizClosed: 403,
    NoAttemptsRemaining: 403,
    InvalidPayload: 422,
}


def status_for(error: GradingError) -> int:
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return status_code
    return 400


async def grading_error_handler(request: Request, exc: GradingError) -> JSONResponse:
    status_code = status_for(exc)
    logger.info(f"{request.method} {request.url.path} -> {status_code} ({exc.code}): {exc.message}")
    return JSONResponse(status_code=status_code, content={"error": exc.to_dict()})


async def lock_timeout_handler(request: Request, exc: TimeoutError) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path}: timeout aguardando lock")
    return JSONResponse(
        status_code=503,
        content={"error": {"code": "lock_timeout", "message": "Tentativa ocupada, tente novamente"}},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Registra o mapeamento de erros de domínio no app."""
    app.add_exception_handler(GradingError, grading_error_handler)
    app.add_exception_handler(TimeoutError, lock_timeout_handler)


# =============================================================================
# DEPENDENCY INJECTION
# =============================================================================


async def get_attempt_service() -> QuizAttemptService:
    """Dependency para obter QuizAttemptService."""
    return await app_state.get_service()


# =============================================================================
# ALUNO
# =============================================================================


@router.post("/attempts/start", response_model=AttemptResponse)
async def start_attempt(
    request: StartAttemptRequest,
    service: QuizAttemptService = Depends(get_attempt_service),
):
    """Inicia tentativa ou retoma a que está em andamento.

    - 403 se o quiz estiver fora da janela ou sem tentativas restantes
    - ``remaining_seconds`` alimenta o timer de auto-submit do cliente
    """
    now = utc_now()
    attempt = await service.start_or_resume_attempt(request.quiz_id, request.student_id, now)
    quiz = await service.bank.get_quiz(attempt.quiz_id)
    return AttemptResponse(attempt=attempt, remaining_seconds=remaining_seconds(quiz, attempt, now))


@router.get("/attempts/{attempt_id}", response_model=AttemptResponse)
async def get_attempt(
    attempt_id: str,
    service: QuizAttemptService = Depends(get_attempt_service),
):
    """Status e tempo restante de uma tentativa."""
    attempt = await service.attempts.get(attempt_id)
    quiz = await service.bank.get_quiz(attempt.quiz_id)
    return AttemptResponse(
        attempt=attempt, remaining_seconds=remaining_seconds(quiz, attempt, utc_now())
    )


@router.put("/attempts/{attempt_id}/answers", response_model=Answer)
async def save_answer(
    attempt_id: str,
    request: SaveAnswerRequest,
    service: QuizAttemptService = Depends(get_attempt_service),
):
    """Autosave de uma resposta (última escrita vence)."""
    return await service.save_answer(
        attempt_id, request.question_id, request.answer_payload, utc_now()
    )


@router.post("/attempts/{attempt_id}/submit", response_model=SubmitAttemptResponse)
async def submit_attempt(
    attempt_id: str,
    request: SubmitAttemptRequest | None = None,
    service: QuizAttemptService = Depends(get_attempt_service),
):
    """Envia a tentativa e corrige as perguntas objetivas.

    Envio duplo retorna 409.
    """
    duration = request.observed_duration_seconds if request else None
    result = await service.submit_attempt(attempt_id, utc_now(), duration)
    return SubmitAttemptResponse(attempt=result.attempt, warnings=result.warnings)


@router.get("/attempts/{attempt_id}/results", response_model=AttemptResultsResponse)
async def get_results(
    attempt_id: str,
    service: QuizAttemptService = Depends(get_attempt_service),
):
    """Resultado da tentativa, se a política do quiz permitir (403 caso contrário)."""
    results = await service.get_results_if_visible(attempt_id, utc_now())
    if results is None:
        raise HTTPException(status_code=403, detail="Resultados ainda não disponíveis")

    return AttemptResultsResponse(
        quiz_id=results.quiz.id,
        attempt=results.attempt,
        answers=results.answers,
        summary=results.summary.to_dict(),
    )


# =============================================================================
# CORRETOR
# =============================================================================


@router.get("/quizzes/{quiz_id}/attempts", response_model=QuizAttemptsResponse)
async def list_attempts(
    quiz_id: str,
    service: QuizAttemptService = Depends(get_attempt_service),
):
    """Tentativas do quiz com média, mediana e desvio padrão."""
    overview = await service.list_attempts_for_quiz(quiz_id)
    return QuizAttemptsResponse(
        quiz_id=quiz_id,
        attempts=overview.attempts,
        statistics=overview.statistics.to_dict(),
    )


@router.get("/attempts/{attempt_id}/answers", response_model=AttemptAnswersResponse)
async def list_answers(
    attempt_id: str,
    service: QuizAttemptService = Depends(get_attempt_service),
):
    """Respostas da tentativa, sem filtro de visibilidade."""
    attempt, answers = await service.get_attempt_answers(attempt_id)
    return AttemptAnswersResponse(attempt=attempt, answers=answers)


@router.post("/answers/{answer_id}/grade", response_model=GradeAnswerResponse)
async def grade_answer(
    answer_id: str,
    request: GradeAnswerRequest,
    service: QuizAttemptService = Depends(get_attempt_service),
):
    """Correção manual de uma resposta.

    Não recalcula a nota: chamar /recalculate ou /finalize depois.
    """
    result = await service.grade_answer(answer_id, request.points_awarded, request.comment)
    return GradeAnswerResponse(answer=result.answer, warnings=result.warnings)


@router.post("/answers/grade-bulk", response_model=BulkGradeResponse)
async def grade_answers_bulk(
    request: BulkGradeRequest,
    service: QuizAttemptService = Depends(get_attempt_service),
):
    """Correção em lote (valida tudo antes de gravar)."""
    results = await service.grade_answers_bulk([g.model_dump() for g in request.grades])
    return BulkGradeResponse(
        results=[GradeAnswerResponse(answer=r.answer, warnings=r.warnings) for r in results]
    )


@router.post("/attempts/{attempt_id}/finalize", response_model=FinalizeAttemptResponse)
async def finalize_attempt(
    attempt_id: str,
    service: QuizAttemptService = Depends(get_attempt_service),
):
    """Finaliza a correção (status graded, nota reconciliada)."""
    result = await service.finalize_attempt(attempt_id)
    return FinalizeAttemptResponse(attempt=result.attempt, warnings=result.warnings)


@router.post("/attempts/{attempt_id}/recalculate", response_model=RecalculateScoreResponse)
async def recalculate_score(
    attempt_id: str,
    service: QuizAttemptService = Depends(get_attempt_service),
):
    """Recalcula a nota a partir das respostas (idempotente)."""
    result = await service.recalculate_score(attempt_id)
    return RecalculateScoreResponse(
        attempt_id=attempt_id,
        score=result.score,
        warnings=result.warnings,
        repaired=result.repaired,
    )
