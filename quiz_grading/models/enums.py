"""Quiz Enums - Tipos de pergunta, status de tentativa e política de resultados."""

from enum import Enum


class QuestionType(str, Enum):
    """Tipos de pergunta suportados."""

    MCQ_SINGLE = "mcq_single"  # Uma alternativa correta
    MCQ_MULTI = "mcq_multi"  # Conjunto exato de alternativas
    TRUE_FALSE = "true_false"
    NUMERIC = "numeric"  # Valor com tolerância
    SHORT_TEXT = "short_text"  # Correção manual

    @property
    def is_auto_gradable(self) -> bool:
        """Se a correção é determinística (sem julgamento humano)."""
        return self is not QuestionType.SHORT_TEXT


class AttemptStatus(str, Enum):
    """Máquina de estados: in_progress -> submitted -> graded."""

    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    GRADED = "graded"

    @property
    def is_terminal(self) -> bool:
        """Somente leitura para o aluno."""
        return self is not AttemptStatus.IN_PROGRESS


class ResultsPolicy(str, Enum):
    """Quando o aluno pode ver o resultado."""

    IMMEDIATE = "immediate"
    AFTER_CLOSE = "after_close"
    NEVER = "never"
