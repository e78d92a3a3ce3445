"""Quiz Entities - Quiz, Question, Option, Attempt e Answer.

As linhas vindas da persistência são dicts sem tipo; ``from_row`` é o único
ponto onde campos malformados são rejeitados ou recebem default. A partir
daqui a lógica de correção trabalha apenas com entidades tipadas.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..exceptions import InvalidPayload
from .enums import AttemptStatus, QuestionType, ResultsPolicy
from .payloads import AnswerPayload, coerce_payload, to_finite_number

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Datetimes sem timezone são tratados como UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class _Row(BaseModel):
    """Base com conversão de/para linhas JSON."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    @classmethod
    def from_row(cls, row: dict[str, Any]):
        return cls.model_validate(row)

    def to_row(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


# =============================================================================
# QUESTION BANK (somente leitura para o motor)
# =============================================================================


class Quiz(_Row):
    """Quiz com política de tentativas, tempo e visibilidade."""

    id: str = Field(..., description="ID do quiz")
    title: str = Field(default="", description="Título exibido")
    time_limit_minutes: float | None = Field(
        None, description="Tempo limite em minutos (auto-submit pelo cliente)"
    )
    attempts_allowed: int = Field(default=1, ge=1, description="Tentativas permitidas (>= 1)")
    start_at: datetime | None = Field(None, description="Início da janela")
    end_at: datetime | None = Field(None, description="Fim da janela")
    show_results_policy: ResultsPolicy = Field(
        default=ResultsPolicy.AFTER_CLOSE, description="Quando liberar resultados"
    )

    @field_validator("time_limit_minutes", mode="before")
    @classmethod
    def _positive_time_limit(cls, value: Any) -> float | None:
        number = to_finite_number(value)
        return number if number is not None and number > 0 else None

    @field_validator("attempts_allowed", mode="before")
    @classmethod
    def _default_attempts(cls, value: Any) -> int:
        number = to_finite_number(value)
        if number is None or number < 1:
            return 1
        return int(number)

    @field_validator("show_results_policy", mode="before")
    @classmethod
    def _default_policy(cls, value: Any) -> Any:
        if value in (None, ""):
            return ResultsPolicy.AFTER_CLOSE
        return value

    @field_validator("start_at", "end_at")
    @classmethod
    def _utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None


class Question(_Row):
    """Pergunta de um quiz.

    ``points`` inválido (ausente, zero, negativo, não numérico) vira 1 e a
    pergunta fica marcada com ``points_defaulted`` para gerar aviso de
    qualidade de dados na correção.
    """

    id: str
    quiz_id: str
    type: QuestionType
    text: str = ""
    points: float = Field(default=1.0, gt=0)
    tolerance: float = Field(default=0.0, ge=0, description="Tolerância +/- (numeric)")
    order_index: int = 0
    points_defaulted: bool = False

    @model_validator(mode="before")
    @classmethod
    def _normalize_row(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)

        points = to_finite_number(data.get("points"))
        if points is None or points <= 0:
            data["points"] = 1.0
            data["points_defaulted"] = True
        else:
            data["points"] = points

        # Linhas antigas guardam a tolerância em media_url
        raw_tolerance = data.get("tolerance")
        if raw_tolerance is None and data.get("type") == QuestionType.NUMERIC.value:
            raw_tolerance = data.get("media_url")
        tolerance = to_finite_number(raw_tolerance)
        data["tolerance"] = tolerance if tolerance is not None and tolerance >= 0 else 0.0
        data.pop("media_url", None)
        return data

    @property
    def points_warning(self) -> str | None:
        if not self.points_defaulted:
            return None
        return f"Pergunta {self.id}: pontuação inválida, usando 1 ponto"


class Option(_Row):
    """Alternativa de uma pergunta.

    Para true_false, o valor de verdade vem de ``bool_value`` quando presente;
    senão vale a convenção ``order_index == 0`` -> verdadeiro e
    ``order_index == 1`` -> falso. O texto nunca é comparado.
    """

    id: str
    question_id: str
    text: str = ""
    is_correct: bool = False
    order_index: int = 0
    bool_value: bool | None = None

    @field_validator("is_correct", mode="before")
    @classmethod
    def _falsy_default(cls, value: Any) -> bool:
        return value is True

    @property
    def truth_value(self) -> bool | None:
        if self.bool_value is not None:
            return self.bool_value
        if self.order_index == 0:
            return True
        if self.order_index == 1:
            return False
        return None


# =============================================================================
# ATTEMPTS & ANSWERS
# =============================================================================


class Attempt(_Row):
    """Tentativa de um aluno em um quiz."""

    id: str
    quiz_id: str
    student_id: str
    status: AttemptStatus = AttemptStatus.IN_PROGRESS
    started_at: datetime
    submitted_at: datetime | None = None
    score: float | None = None
    duration_seconds: float | None = None

    @field_validator("started_at", "submitted_at")
    @classmethod
    def _utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None


class Answer(_Row):
    """Resposta de uma pergunta dentro de uma tentativa (única por par)."""

    id: str
    attempt_id: str
    question_id: str
    answer_payload: AnswerPayload | None = None
    is_correct: bool | None = None
    points_awarded: float | None = None
    grader_comment: str | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Answer:
        data = dict(row)
        raw_payload = data.get("answer_payload")
        if raw_payload is not None:
            try:
                data["answer_payload"] = coerce_payload(raw_payload)
            except InvalidPayload:
                # Payload ilegível é corrigido como errado, nunca quebra a leitura
                logger.warning(f"Resposta {data.get('id')}: payload ilegível, ignorando")
                data["answer_payload"] = None
        if not isinstance(data.get("is_correct"), (bool, type(None))):
            data["is_correct"] = None
        # points_awarded inválido é preservado como None para o reconciliador
        if data.get("points_awarded") is not None:
            data["points_awarded"] = to_finite_number(data["points_awarded"])
        return cls.model_validate(data)
