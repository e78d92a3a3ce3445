"""Answer Payloads - União discriminada de formatos de resposta.

Cada tipo de pergunta aceita exatamente um formato:

    mcq_single / mcq_multi -> SelectedOptionsPayload
    true_false             -> BooleanPayload
    numeric                -> NumberPayload
    short_text             -> TextPayload

Linhas antigas do banco usam chaves soltas ({"selected_option_ids": [...]},
{"bool": true}, {"number": 10}, {"text": "..."}); ``parse_payload`` converte
ambos os formatos.
"""

import math
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from ..exceptions import InvalidPayload
from .enums import QuestionType


class SelectedOptionsPayload(BaseModel):
    """Alternativas selecionadas (ordem irrelevante)."""

    kind: Literal["selected_options"] = "selected_options"
    selected_option_ids: list[str] = Field(default_factory=list)

    @field_validator("selected_option_ids", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, (str, int)):
            return [str(value)]
        # Duplicatas descartadas, mantendo a ordem de seleção
        ids = [str(v) for v in value if v is not None and v != ""]
        return list(dict.fromkeys(ids))


class BooleanPayload(BaseModel):
    """Resposta verdadeiro/falso. ``None`` = não respondida."""

    kind: Literal["boolean"] = "boolean"
    value: bool | None = None

    @field_validator("value", mode="before")
    @classmethod
    def _only_real_bools(cls, value: Any) -> bool | None:
        return value if isinstance(value, bool) else None


class NumberPayload(BaseModel):
    """Resposta numérica. Valores não numéricos viram ``None`` (corrigido como errado)."""

    kind: Literal["number"] = "number"
    value: float | None = None

    @field_validator("value", mode="before")
    @classmethod
    def _finite_or_none(cls, value: Any) -> float | None:
        return to_finite_number(value)


class TextPayload(BaseModel):
    """Resposta dissertativa curta."""

    kind: Literal["text"] = "text"
    text: str = ""

    @field_validator("text", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return "" if value is None else str(value)


AnswerPayload = Annotated[
    Union[SelectedOptionsPayload, BooleanPayload, NumberPayload, TextPayload],
    Field(discriminator="kind"),
]

_payload_adapter: TypeAdapter = TypeAdapter(AnswerPayload)

_PAYLOAD_CLASSES = (SelectedOptionsPayload, BooleanPayload, NumberPayload, TextPayload)

EXPECTED_KIND: dict[QuestionType, str] = {
    QuestionType.MCQ_SINGLE: "selected_options",
    QuestionType.MCQ_MULTI: "selected_options",
    QuestionType.TRUE_FALSE: "boolean",
    QuestionType.NUMERIC: "number",
    QuestionType.SHORT_TEXT: "text",
}

# Chave do formato antigo -> (kind, campo no payload tipado)
_LEGACY_KEYS: dict[str, tuple[str, str]] = {
    "selected_option_ids": ("selected_options", "selected_option_ids"),
    "bool": ("boolean", "value"),
    "number": ("number", "value"),
    "text": ("text", "text"),
}


def to_finite_number(value: Any) -> float | None:
    """Converte para float finito; qualquer outra coisa vira ``None``."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _errors(error: ValidationError) -> list[dict[str, Any]]:
    return error.errors(include_url=False, include_context=False, include_input=False)


def _from_legacy(raw: dict[str, Any], kind: str | None) -> Any:
    """Monta payload tipado a partir das chaves soltas do formato antigo."""
    present = [key for key in _LEGACY_KEYS if key in raw]

    if kind is None:
        if len(present) != 1:
            raise InvalidPayload(
                "Formato de resposta não reconhecido",
                details={"keys": sorted(raw.keys())},
            )
        kind = _LEGACY_KEYS[present[0]][0]

    for key in present:
        if _LEGACY_KEYS[key][0] != kind:
            raise InvalidPayload(
                f"Campo '{key}' não pertence a uma resposta do tipo '{kind}'",
                details={"expected_kind": kind, "keys": sorted(raw.keys())},
            )

    data: dict[str, Any] = {"kind": kind}
    for key, (legacy_kind, field_name) in _LEGACY_KEYS.items():
        if legacy_kind == kind and key in raw:
            data[field_name] = raw[key]
    return _payload_adapter.validate_python(data)


def coerce_payload(raw: Any) -> Any:
    """Converte payload sem conhecer o tipo da pergunta (leitura de linhas).

    Raises:
        InvalidPayload: Se o formato não for reconhecido
    """
    if isinstance(raw, _PAYLOAD_CLASSES):
        return raw
    if not isinstance(raw, dict):
        raise InvalidPayload("Resposta deve ser um objeto", details={"type": type(raw).__name__})
    try:
        if "kind" in raw:
            return _payload_adapter.validate_python(raw)
        return _from_legacy(raw, None)
    except ValidationError as e:
        raise InvalidPayload(
            "Resposta inválida", details={"errors": _errors(e)}
        ) from e


def parse_payload(question_type: QuestionType, raw: Any) -> Any:
    """Valida payload contra o tipo da pergunta.

    Args:
        question_type: Tipo da pergunta respondida
        raw: Payload tipado, dict com ``kind`` ou dict no formato antigo

    Returns:
        Payload tipado correspondente ao tipo da pergunta

    Raises:
        InvalidPayload: Formato desconhecido ou incompatível com o tipo
    """
    expected = EXPECTED_KIND[question_type]

    if isinstance(raw, dict) and "kind" not in raw:
        try:
            payload = _from_legacy(raw, expected)
        except ValidationError as e:
            raise InvalidPayload(
                "Resposta inválida", details={"errors": _errors(e)}
            ) from e
    else:
        payload = coerce_payload(raw)

    if payload.kind != expected:
        raise InvalidPayload(
            f"Pergunta do tipo '{question_type.value}' espera resposta '{expected}'",
            details={"expected_kind": expected, "received_kind": payload.kind},
        )
    return payload
