"""Configuração centralizada do motor de correção (variáveis de ambiente)."""

import os
from dataclasses import dataclass
from enum import Enum

from dotenv import load_dotenv

from .models.enums import ResultsPolicy


class StorageBackend(str, Enum):
    """Backends de persistência suportados."""

    MEMORY = "memory"  # InMemoryKV - dev/testes
    AGENTFS = "agentfs"  # KV store do AgentFS


@dataclass
class GradingConfig:
    """Configuração do serviço de tentativas.

    Attributes:
        log_level: Nível de log do pacote
        storage_backend: Onde ficam quizzes, tentativas e respostas
        agentfs_id: ID do banco AgentFS (quando backend = agentfs)
        lock_timeout_seconds: Tempo máximo aguardando lock por tentativa
        default_results_policy: Política usada quando o quiz não define uma
    """

    log_level: str = "INFO"
    storage_backend: StorageBackend = StorageBackend.MEMORY
    agentfs_id: str = "quiz-grading"
    lock_timeout_seconds: float = 10.0
    default_results_policy: ResultsPolicy = ResultsPolicy.AFTER_CLOSE

    @classmethod
    def from_env(cls, load_env_file: bool = False) -> "GradingConfig":
        """Cria configuração a partir das variáveis de ambiente.

        Args:
            load_env_file: Se True, carrega ``.env`` antes de ler o ambiente
        """
        if load_env_file:
            load_dotenv(override=False)

        backend_raw = os.getenv("STORAGE_BACKEND", StorageBackend.MEMORY.value).lower()
        try:
            backend = StorageBackend(backend_raw)
        except ValueError:
            backend = StorageBackend.MEMORY

        policy_raw = os.getenv("DEFAULT_RESULTS_POLICY", ResultsPolicy.AFTER_CLOSE.value).lower()
        try:
            policy = ResultsPolicy(policy_raw)
        except ValueError:
            policy = ResultsPolicy.AFTER_CLOSE

        try:
            lock_timeout = float(os.getenv("LOCK_TIMEOUT_SECONDS", "10"))
        except ValueError:
            lock_timeout = 10.0
        if lock_timeout <= 0:
            lock_timeout = 10.0

        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            storage_backend=backend,
            agentfs_id=os.getenv("AGENTFS_ID", "quiz-grading"),
            lock_timeout_seconds=lock_timeout,
            default_results_policy=policy,
        )


_config: GradingConfig | None = None


def get_config() -> GradingConfig:
    """Retorna configuração global (lazy)."""
    global _config
    if _config is None:
        _config = GradingConfig.from_env(load_env_file=True)
    return _config


def reset_config() -> None:
    """Descarta configuração em cache (usado em testes)."""
    global _config
    _config = None
