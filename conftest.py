# =============================================================================
# CONFTEST - Pytest Fixtures Globais
# =============================================================================
# Fixtures sem dependências externas (backend KV em memória)
# =============================================================================

import os
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

# Adicionar root ao path
sys.path.insert(0, str(Path(__file__).parent))


# =============================================================================
# FIXTURES DE AMBIENTE
# =============================================================================


@pytest.fixture(autouse=True)
def setup_test_env():
    """Configura variáveis de ambiente para testes."""
    env_vars = {
        "STORAGE_BACKEND": "memory",
        "LOG_LEVEL": "ERROR",
        "LOCK_TIMEOUT_SECONDS": "2",
    }
    with patch.dict(os.environ, env_vars):
        from quiz_grading.config import reset_config

        reset_config()
        yield
        reset_config()


# =============================================================================
# FIXTURES UTILITÁRIAS
# =============================================================================


@pytest.fixture
def capture_logs(caplog):
    """Captura logs do pacote durante testes."""
    import logging

    caplog.set_level(logging.DEBUG, logger="quiz_grading")
    return caplog
