"""Quiz Grading Engines - Correção, reconciliação e ciclo de vida das tentativas."""

from .attempt_machine import AttemptStateMachine, FinalizeResult, is_overdue, remaining_seconds
from .auto_grader import AutoGrader, GradeVerdict
from .locks import KeyedLocks
from .manual_grading import GradeAnswerResult, ManualGrader
from .reconciler import ReconcileResult, ScoreReconciler
from .service import QuizAttemptService, create_service
from .statistics import AttemptSummary, QuizStatistics, quiz_statistics, summarize_attempt
from .visibility import can_show_results

__all__ = [
    "AttemptStateMachine",
    "AttemptSummary",
    "AutoGrader",
    "FinalizeResult",
    "GradeAnswerResult",
    "GradeVerdict",
    "KeyedLocks",
    "ManualGrader",
    "QuizAttemptService",
    "QuizStatistics",
    "ReconcileResult",
    "ScoreReconciler",
    "can_show_results",
    "create_service",
    "is_overdue",
    "quiz_statistics",
    "remaining_seconds",
    "summarize_attempt",
]
