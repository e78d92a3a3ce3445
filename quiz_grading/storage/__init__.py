"""Quiz Storage - Persistência sobre KV (AgentFS ou memória)."""

from .answer_store import AnswerStore
from .attempt_store import AttemptStore
from .kv import InMemoryBackend, InMemoryKV, KVRepository
from .question_bank import QuestionBank

__all__ = [
    "AnswerStore",
    "AttemptStore",
    "InMemoryBackend",
    "InMemoryKV",
    "KVRepository",
    "QuestionBank",
]
