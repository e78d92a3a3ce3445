"""Advisory locks por chave (tentativa, par quiz/aluno)."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class KeyedLocks:
    """Um ``asyncio.Lock`` por chave, criado sob demanda.

    Serializa operações concorrentes sobre a mesma tentativa dentro do
    processo (start duplo, submit duplo, recálculos simultâneos). Entre
    processos a proteção vem das reservas de tentativa ativa
    (``AttemptStore.create``) e da idempotência do reconciliador.
    """

    def __init__(self, timeout_seconds: float = 10.0):
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}
        self.timeout_seconds = timeout_seconds

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Adquire o lock da chave.

        Raises:
            TimeoutError: Se o lock não for obtido em ``timeout_seconds``
        """
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            await asyncio.wait_for(lock.acquire(), timeout=self.timeout_seconds)
            try:
                yield
            finally:
                lock.release()
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                # Ninguém mais esperando: descarta para não crescer sem limite
                del self._waiters[key]
                self._locks.pop(key, None)

    def __len__(self) -> int:
        return len(self._locks)
