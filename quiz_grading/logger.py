"""Logging helpers."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: str = "INFO") -> None:
    """Configura o handler raiz do pacote (idempotente)."""
    global _configured

    root = logging.getLogger("quiz_grading")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not _configured:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        _configured = True


def get_logger(name: str) -> logging.Logger:
    """Retorna logger filho de ``quiz_grading``."""
    if name.startswith("quiz_grading"):
        return logging.getLogger(name)
    return logging.getLogger(f"quiz_grading.{name}")
