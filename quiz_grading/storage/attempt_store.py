"""Attempt Store - Persistência de tentativas."""

from __future__ import annotations

import logging
from datetime import datetime

from ..exceptions import DuplicateAttempt, NoAttemptsRemaining, NotFound
from ..models.entities import Attempt, as_utc
from ..models.enums import AttemptStatus
from .kv import KVRepository

logger = logging.getLogger(__name__)

# Reserva sem linha de tentativa após este intervalo é considerada abandonada
CLAIM_STALE_SECONDS = 60


class AttemptStore(KVRepository):
    """CRUD de tentativas com índice por (quiz, aluno).

    Restrição de unicidade para (quiz, aluno, status=in_progress):

        1. ``create`` grava a reserva ``attempt_claim:{quiz}:{aluno}:{id}``
        2. lista as reservas do par; havendo outra viva, desiste
        3. só então grava a tentativa e o ponteiro ``attempt_active``

    Como cada processo escreve a própria reserva antes de listar, dois
    ``create`` concorrentes nunca prosseguem juntos, mesmo em processos
    diferentes sobre o mesmo KV. A reserva vive até a tentativa sair de
    in_progress. Tentativas nunca são apagadas (historico/auditoria).
    """

    async def create(self, attempt: Attempt, attempts_allowed: int | None = None) -> Attempt:
        """Grava nova tentativa.

        Args:
            attempt: Tentativa a gravar
            attempts_allowed: Se informado, o limite de tentativas concluidas
                é reconferido depois de garantida a vaga

        Raises:
            DuplicateAttempt: Outra tentativa in_progress (ou em criação) para o par
            NoAttemptsRemaining: Limite atingido por tentativa concluida na disputa
        """
        if attempt.status is AttemptStatus.IN_PROGRESS:
            await self._claim_active_slot(attempt, attempts_allowed)

        await self._put(self.attempt_key(attempt.id), attempt.to_row())
        await self._put(
            self.attempt_index_key(attempt.quiz_id, attempt.student_id, attempt.id), attempt.id
        )
        if attempt.status is AttemptStatus.IN_PROGRESS:
            await self._put(self.active_attempt_key(attempt.quiz_id, attempt.student_id), attempt.id)

        logger.debug(f"Tentativa criada: {attempt.id}")
        return attempt

    async def _claim_active_slot(self, attempt: Attempt, attempts_allowed: int | None) -> None:
        quiz_id, student_id = attempt.quiz_id, attempt.student_id
        claim_key = self.attempt_claim_key(quiz_id, student_id, attempt.id)
        details = {"quiz_id": quiz_id, "student_id": student_id}

        await self._put(
            claim_key, {"attempt_id": attempt.id, "claimed_at": attempt.started_at.isoformat()}
        )

        rivals = await self._live_rival_claims(attempt)
        if rivals:
            await self._delete(claim_key)
            existing = next((attempt_id for attempt_id, active in rivals if active), None)
            raise DuplicateAttempt(
                "Já existe tentativa em andamento",
                existing_attempt_id=existing,
                details=details,
            )

        # Vaga garantida: nenhum rival consegue passar do passo 2 até a liberarmos
        existing = await self.get_active(quiz_id, student_id)
        if existing is not None:
            await self._delete(claim_key)
            raise DuplicateAttempt(
                "Já existe tentativa em andamento",
                existing_attempt_id=existing.id,
                details=details,
            )

        if attempts_allowed is not None:
            history = await self.list_by_quiz_and_student(quiz_id, student_id)
            completed = sum(1 for a in history if a.status is not AttemptStatus.IN_PROGRESS)
            if completed >= attempts_allowed:
                await self._delete(claim_key)
                raise NoAttemptsRemaining(
                    "Nenhuma tentativa restante",
                    details={
                        **details,
                        "attempts_used": completed,
                        "attempts_allowed": attempts_allowed,
                    },
                )

    async def _live_rival_claims(self, attempt: Attempt) -> list[tuple[str, bool]]:
        """Reservas de outras tentativas do par que ainda valem.

        Returns:
            Lista de (attempt_id, ja_gravada_in_progress)
        """
        prefix = f"attempt_claim:{attempt.quiz_id}:{attempt.student_id}:"
        rivals = []
        for key in await self._list_keys(prefix):
            claim = await self._get(key)
            if claim is None:
                continue
            rival_id = claim.get("attempt_id") if isinstance(claim, dict) else str(claim)
            if rival_id == attempt.id:
                continue

            row = await self._get(self.attempt_key(rival_id))
            if row is not None:
                if row.get("status") == AttemptStatus.IN_PROGRESS.value:
                    rivals.append((rival_id, True))
                else:
                    # Dona já saiu de in_progress sem liberar a reserva
                    logger.warning(f"Reserva de tentativa encerrada, limpando: {key}")
                    await self._delete(key)
                continue

            if self._claim_is_stale(claim, attempt.started_at):
                logger.warning(f"Reserva abandonada, limpando: {key}")
                await self._delete(key)
                continue
            rivals.append((rival_id, False))
        return rivals

    @staticmethod
    def _claim_is_stale(claim, now: datetime) -> bool:
        raw = claim.get("claimed_at") if isinstance(claim, dict) else None
        try:
            claimed_at = as_utc(datetime.fromisoformat(raw))
        except (TypeError, ValueError):
            return True
        return (as_utc(now) - claimed_at).total_seconds() > CLAIM_STALE_SECONDS

    async def get(self, attempt_id: str) -> Attempt:
        """Busca tentativa.

        Raises:
            NotFound: Se a tentativa não existir
        """
        row = await self._get(self.attempt_key(attempt_id))
        if row is None:
            raise NotFound(
                f"Tentativa {attempt_id} não encontrada", details={"attempt_id": attempt_id}
            )
        return Attempt.from_row(row)

    async def get_active(self, quiz_id: str, student_id: str) -> Attempt | None:
        """Tentativa in_progress do par (quiz, aluno), se houver."""
        active_key = self.active_attempt_key(quiz_id, student_id)
        attempt_id = await self._get(active_key)
        if attempt_id is None:
            return None

        row = await self._get(self.attempt_key(attempt_id))
        if row is None or row.get("status") != AttemptStatus.IN_PROGRESS.value:
            # Índice velho (escrita interrompida): libera o par
            logger.warning(f"Índice de tentativa ativa inconsistente, limpando: {active_key}")
            await self._delete(active_key)
            return None
        return Attempt.from_row(row)

    async def _list_by_prefix(self, prefix: str) -> list[Attempt]:
        attempts = []
        for key in await self._list_keys(prefix):
            attempt_id = await self._get(key)
            if attempt_id is None:
                continue
            row = await self._get(self.attempt_key(attempt_id))
            if row is not None:
                attempts.append(Attempt.from_row(row))
        return sorted(attempts, key=lambda a: (a.started_at, a.id))

    async def list_by_quiz_and_student(self, quiz_id: str, student_id: str) -> list[Attempt]:
        """Tentativas do aluno no quiz, da mais antiga para a mais recente."""
        return await self._list_by_prefix(f"attempt_index:{quiz_id}:{student_id}:")

    async def list_by_quiz(self, quiz_id: str) -> list[Attempt]:
        """Todas as tentativas do quiz (visão do corretor)."""
        return await self._list_by_prefix(f"attempt_index:{quiz_id}:")

    async def update(self, attempt: Attempt) -> Attempt:
        """Grava a linha inteira (escrita atômica de uma linha).

        Ao sair de in_progress, libera o ponteiro e a reserva de tentativa ativa.
        """
        await self._put(self.attempt_key(attempt.id), attempt.to_row())

        if attempt.status is not AttemptStatus.IN_PROGRESS:
            active_key = self.active_attempt_key(attempt.quiz_id, attempt.student_id)
            if await self._get(active_key) == attempt.id:
                await self._delete(active_key)
            await self._delete(
                self.attempt_claim_key(attempt.quiz_id, attempt.student_id, attempt.id)
            )
        return attempt
