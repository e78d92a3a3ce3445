"""Quiz Grading Models - Enums, entidades, payloads e schemas."""

from .entities import Answer, Attempt, Option, Question, Quiz
from .enums import AttemptStatus, QuestionType, ResultsPolicy
from .payloads import (
    AnswerPayload,
    BooleanPayload,
    NumberPayload,
    SelectedOptionsPayload,
    TextPayload,
    coerce_payload,
    parse_payload,
)
from .schemas import (
    AttemptResponse,
    AttemptResultsResponse,
    BulkGradeRequest,
    GradeAnswerRequest,
    SaveAnswerRequest,
    StartAttemptRequest,
    SubmitAttemptRequest,
)

__all__ = [
    # Enums
    "AttemptStatus",
    "QuestionType",
    "ResultsPolicy",
    # Entidades
    "Quiz",
    "Question",
    "Option",
    "Attempt",
    "Answer",
    # Payloads
    "AnswerPayload",
    "SelectedOptionsPayload",
    "BooleanPayload",
    "NumberPayload",
    "TextPayload",
    "coerce_payload",
    "parse_payload",
    # Schemas
    "StartAttemptRequest",
    "SaveAnswerRequest",
    "SubmitAttemptRequest",
    "GradeAnswerRequest",
    "BulkGradeRequest",
    "AttemptResponse",
    "AttemptResultsResponse",
]
