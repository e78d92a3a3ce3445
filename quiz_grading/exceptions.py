"""Grading Exceptions - Taxonomia de erros do motor de tentativas.

Erros de domínio carregam ``message`` legível e ``details`` estruturado,
e possuem ``code`` estável para mapeamento na camada HTTP.

Problemas de qualidade de dados (pontos inválidos, is_correct divergente de
points_awarded) NÃO são exceções: são retornados como avisos junto do
resultado, para que o motor sempre consiga produzir uma nota.
"""

from typing import Any


class GradingError(Exception):
    """Erro base do motor de correção."""

    code = "grading_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class QuizClosed(GradingError):
    """Janela do quiz (start_at/end_at) não contém o instante atual."""

    code = "quiz_closed"


class NoAttemptsRemaining(GradingError):
    """Aluno já usou todas as tentativas permitidas."""

    code = "no_attempts_remaining"


class InvalidState(GradingError):
    """Operação inválida para o status atual da tentativa."""

    code = "invalid_state"


class NotFound(GradingError):
    """Quiz, pergunta, tentativa ou resposta inexistente."""

    code = "not_found"


class InvalidPayload(GradingError):
    """Resposta com formato incompatível com o tipo da pergunta."""

    code = "invalid_payload"


class DuplicateAttempt(GradingError):
    """Já existe tentativa in_progress para (quiz, aluno).

    Levantado pela camada de persistência; ``start`` converte em retomada.
    ``existing_attempt_id`` é None quando a rival ainda está sendo criada.
    """

    code = "duplicate_attempt"

    def __init__(self, message: str, existing_attempt_id: str | None, details: dict[str, Any] | None = None):
        super().__init__(message, details)
        self.existing_attempt_id = existing_attempt_id
