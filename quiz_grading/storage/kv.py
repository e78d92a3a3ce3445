"""KV Repository - Base de persistência sobre o contrato KV do AgentFS.

Qualquer objeto com ``kv.get/set/delete/list`` assíncronos serve de backend
(instância do AgentFS em produção, ``InMemoryKV`` em dev/testes).

Estrutura de chaves:
    - quiz:{quiz_id}                                  -> Quiz
    - question:{quiz_id}:{question_id}                -> Question
    - option:{question_id}:{option_id}                -> Option
    - attempt:{attempt_id}                            -> Attempt
    - attempt_index:{quiz_id}:{student_id}:{attempt_id} -> attempt_id
    - attempt_active:{quiz_id}:{student_id}           -> attempt_id in_progress
    - attempt_claim:{quiz_id}:{student_id}:{attempt_id} -> reserva da vaga in_progress
    - answer:{attempt_id}:{question_id}               -> Answer
    - answer_id:{answer_id}                           -> {attempt_id, question_id}
"""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from agentfs_sdk import AgentFS

logger = logging.getLogger(__name__)


class InMemoryKV:
    """KV store em memória com a mesma interface do ``agentfs.kv``.

    Valores são copiados na escrita e na leitura, imitando um store real
    (mutar um dict lido não altera o armazenado).
    """

    def __init__(self):
        self._data: dict[str, Any] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Any | None:
        async with self._lock:
            return copy.deepcopy(self._data.get(key))

    async def set(self, key: str, value: Any) -> None:
        async with self._lock:
            self._data[key] = copy.deepcopy(value)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._data.pop(key, None)

    async def list(self, prefix: str = "") -> list[dict[str, str]]:
        async with self._lock:
            return [{"key": k} for k in sorted(self._data) if k.startswith(prefix)]


class InMemoryBackend:
    """Backend mínimo exposto como ``.kv`` (mesmo formato do AgentFS)."""

    def __init__(self):
        self.kv = InMemoryKV()

    async def close(self) -> None:
        return None


class KVRepository:
    """Helpers de leitura/escrita de linhas sobre o KV.

    Example:
        >>> repo = KVRepository(InMemoryBackend())
        >>> await repo._put("quiz:q1", {"id": "q1"})
        >>> await repo._get("quiz:q1")
        {'id': 'q1'}
    """

    def __init__(self, agentfs: AgentFS | InMemoryBackend):
        """Inicializa repositório.

        Args:
            agentfs: Instância do AgentFS (ou backend com ``.kv`` compatível)
        """
        self.agentfs = agentfs

    @property
    def kv(self):
        return self.agentfs.kv

    # Chaves ------------------------------------------------------------------

    @staticmethod
    def quiz_key(quiz_id: str) -> str:
        return f"quiz:{quiz_id}"

    @staticmethod
    def question_key(quiz_id: str, question_id: str) -> str:
        return f"question:{quiz_id}:{question_id}"

    @staticmethod
    def option_key(question_id: str, option_id: str) -> str:
        return f"option:{question_id}:{option_id}"

    @staticmethod
    def attempt_key(attempt_id: str) -> str:
        return f"attempt:{attempt_id}"

    @staticmethod
    def attempt_index_key(quiz_id: str, student_id: str, attempt_id: str) -> str:
        return f"attempt_index:{quiz_id}:{student_id}:{attempt_id}"

    @staticmethod
    def active_attempt_key(quiz_id: str, student_id: str) -> str:
        return f"attempt_active:{quiz_id}:{student_id}"

    @staticmethod
    def attempt_claim_key(quiz_id: str, student_id: str, attempt_id: str) -> str:
        return f"attempt_claim:{quiz_id}:{student_id}:{attempt_id}"

    @staticmethod
    def answer_key(attempt_id: str, question_id: str) -> str:
        return f"answer:{attempt_id}:{question_id}"

    @staticmethod
    def answer_id_key(answer_id: str) -> str:
        return f"answer_id:{answer_id}"

    # Primitivas --------------------------------------------------------------

    async def _get(self, key: str) -> Any | None:
        return await self.kv.get(key)

    async def _put(self, key: str, value: Any) -> None:
        await self.kv.set(key, value)

    async def _delete(self, key: str) -> None:
        await self.kv.delete(key)

    async def _list_keys(self, prefix: str) -> list[str]:
        """Lista chaves com prefixo (entradas podem ser dict ou str)."""
        entries = await self.kv.list(prefix=prefix)
        keys = []
        for entry in entries:
            key = entry.get("key", "") if isinstance(entry, dict) else str(entry)
            if key.startswith(prefix):
                keys.append(key)
        return sorted(keys)

    async def _list_rows(self, prefix: str) -> list[dict[str, Any]]:
        rows = []
        for key in await self._list_keys(prefix):
            row = await self._get(key)
            if row is None:
                # Chave removida entre list e get
                logger.debug(f"Chave sumiu durante listagem: {key}")
                continue
            rows.append(row)
        return rows
