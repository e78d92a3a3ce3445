"""Quiz Grading Schemas - Modelos Pydantic para request/response."""

from typing import Any

from pydantic import BaseModel, Field

from .entities import Answer, Attempt


class StartAttemptRequest(BaseModel):
    """Request para iniciar ou retomar tentativa."""

    quiz_id: str = Field(..., min_length=1, description="ID do quiz")
    student_id: str = Field(..., min_length=1, description="ID do aluno")


class SaveAnswerRequest(BaseModel):
    """Request de autosave de uma resposta."""

    question_id: str = Field(..., min_length=1, description="ID da pergunta")
    answer_payload: dict[str, Any] = Field(
        ...,
        description=(
            "Payload da resposta: {'kind': ..., ...} ou formato antigo "
            "({'selected_option_ids'}, {'bool'}, {'number'}, {'text'})"
        ),
    )


class SubmitAttemptRequest(BaseModel):
    """Request de envio (manual ou auto-submit por tempo)."""

    observed_duration_seconds: float | None = Field(
        None, ge=0, description="Duração medida pelo cliente, em segundos"
    )


class GradeAnswerRequest(BaseModel):
    """Request de correção manual."""

    points_awarded: Any = Field(
        ..., description="Pontos atribuidos (limitados a [0, pontos da pergunta])"
    )
    comment: str | None = Field(None, description="Comentário do corretor")


class BulkGradeItem(GradeAnswerRequest):
    """Item de correção em lote."""

    answer_id: str = Field(..., min_length=1, description="ID da resposta")


class BulkGradeRequest(BaseModel):
    """Request de correção em lote."""

    grades: list[BulkGradeItem] = Field(..., min_length=1, description="Correções")


class AttemptResponse(BaseModel):
    """Tentativa com tempo restante."""

    attempt: Attempt = Field(..., description="Tentativa")
    remaining_seconds: float | None = Field(
        None, description="Segundos até o auto-submit (None = sem limite)"
    )


class SubmitAttemptResponse(BaseModel):
    """Response do envio (status submitted, nota parcial)."""

    attempt: Attempt = Field(..., description="Tentativa enviada")
    warnings: list[str] = Field(default=[], description="Avisos de qualidade de dados")


class AttemptResultsResponse(BaseModel):
    """Resultado visível para o aluno."""

    quiz_id: str = Field(..., description="ID do quiz")
    attempt: Attempt = Field(..., description="Tentativa")
    answers: list[Answer] = Field(..., description="Respostas corrigidas")
    summary: dict[str, Any] = Field(
        ..., description="Acertos, erros, pendentes, nota e percentual"
    )


class QuizAttemptsResponse(BaseModel):
    """Tentativas de um quiz (visão do corretor)."""

    quiz_id: str = Field(..., description="ID do quiz")
    attempts: list[Attempt] = Field(..., description="Tentativas")
    statistics: dict[str, Any] = Field(
        ..., description="Média, mediana, desvio padrão e taxa de conclusão"
    )


class AttemptAnswersResponse(BaseModel):
    """Respostas de uma tentativa (visão do corretor)."""

    attempt: Attempt = Field(..., description="Tentativa")
    answers: list[Answer] = Field(..., description="Respostas")


class GradeAnswerResponse(BaseModel):
    """Resposta corrigida."""

    answer: Answer = Field(..., description="Resposta atualizada")
    warnings: list[str] = Field(default=[], description="Avisos (ex.: pontos limitados)")


class BulkGradeResponse(BaseModel):
    """Resultado da correção em lote."""

    results: list[GradeAnswerResponse] = Field(..., description="Respostas corrigidas")


class FinalizeAttemptResponse(BaseModel):
    """Tentativa finalizada (status graded)."""

    attempt: Attempt = Field(..., description="Tentativa")
    warnings: list[str] = Field(default=[], description="Avisos de qualidade de dados")


class RecalculateScoreResponse(BaseModel):
    """Resultado do recálculo de nota."""

    attempt_id: str = Field(..., description="ID da tentativa")
    score: float = Field(..., description="Nota recalculada")
    warnings: list[str] = Field(default=[], description="Inconsistências corrigidas")
    repaired: list[str] = Field(default=[], description="IDs das respostas regravadas")
