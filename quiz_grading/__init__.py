"""Quiz Grading - Motor de tentativas e correção de quizzes.

Arquitetura:
- models/: Enums, entidades, payloads de resposta, schemas Pydantic
- storage/: QuestionBank, AttemptStore, AnswerStore (KV do AgentFS ou memória)
- engine/: AutoGrader, AttemptStateMachine, ScoreReconciler, ManualGrader,
  visibilidade, estatísticas e QuizAttemptService
- router.py: FastAPI endpoints
"""

from .config import GradingConfig, get_config
from .engine import (
    AttemptStateMachine,
    AutoGrader,
    ManualGrader,
    QuizAttemptService,
    ScoreReconciler,
    can_show_results,
    create_service,
)
from .exceptions import (
    GradingError,
    InvalidPayload,
    InvalidState,
    NoAttemptsRemaining,
    NotFound,
    QuizClosed,
)
from .models import Answer, Attempt, AttemptStatus, Option, Question, QuestionType, Quiz
from .storage import AnswerStore, AttemptStore, InMemoryBackend, QuestionBank

__version__ = "0.1.0"

__all__ = [
    # Config
    "GradingConfig",
    "get_config",
    # Models
    "Quiz",
    "Question",
    "Option",
    "Attempt",
    "Answer",
    "AttemptStatus",
    "QuestionType",
    # Engines
    "AutoGrader",
    "AttemptStateMachine",
    "ScoreReconciler",
    "ManualGrader",
    "QuizAttemptService",
    "can_show_results",
    "create_service",
    # Storage
    "InMemoryBackend",
    "QuestionBank",
    "AttemptStore",
    "AnswerStore",
    # Errors
    "GradingError",
    "QuizClosed",
    "NoAttemptsRemaining",
    "InvalidState",
    "NotFound",
    "InvalidPayload",
]
