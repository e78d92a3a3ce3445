"""Estado compartilhado da aplicação - instância única do serviço."""

from __future__ import annotations

import logging
from typing import Optional

from .config import get_config
from .engine.service import QuizAttemptService, create_service

logger = logging.getLogger(__name__)

service: Optional[QuizAttemptService] = None


async def get_service() -> QuizAttemptService:
    """Retorna o serviço, criando na primeira chamada."""
    global service
    if service is None:
        service = await create_service(get_config())
    return service


async def close_service() -> None:
    """Fecha o backend e descarta o serviço."""
    global service
    if service is not None:
        await service.close()
        logger.info("Serviço de tentativas encerrado")
        service = None
