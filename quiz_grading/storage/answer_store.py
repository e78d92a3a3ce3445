"""Answer Store - Respostas por (tentativa, pergunta)."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any

from ..exceptions import InvalidState, NotFound
from ..models.entities import Answer, utc_now
from ..models.payloads import parse_payload
from .attempt_store import AttemptStore
from .kv import KVRepository
from .question_bank import QuestionBank

logger = logging.getLogger(__name__)


class AnswerStore(KVRepository):
    """Respostas de uma tentativa, no máximo uma por pergunta.

    Escritas são frequentes e pequenas (autosave, debounce de digitação).
    Só o último payload por pergunta importa: saves fora de ordem ou
    perdidos no meio do caminho não quebram nada (last write wins).

    Example:
        >>> store = AnswerStore(agentfs, attempts, bank)
        >>> answer = await store.upsert("att-1", "q-1", {"selected_option_ids": ["o1"]})
        >>> answer.answer_payload.selected_option_ids
        ['o1']
    """

    def __init__(self, agentfs, attempts: AttemptStore, bank: QuestionBank):
        super().__init__(agentfs)
        self.attempts = attempts
        self.bank = bank

    async def upsert(
        self,
        attempt_id: str,
        question_id: str,
        payload: Any,
        now: datetime | None = None,
    ) -> Answer:
        """Insere ou substitui o payload da resposta.

        Substituir o payload mantém o id da resposta e limpa campos de
        correção (a tentativa ainda está em andamento).

        Raises:
            NotFound: Tentativa ou pergunta inexistente
            InvalidState: Tentativa fora de in_progress
            InvalidPayload: Payload incompatível com o tipo da pergunta
        """
        attempt = await self.attempts.get(attempt_id)
        if attempt.status.is_terminal:
            raise InvalidState(
                "Tentativa já enviada; respostas não podem mais ser alteradas",
                details={"attempt_id": attempt_id, "status": attempt.status.value},
            )

        question = await self.bank.get_question(attempt.quiz_id, question_id)
        typed_payload = parse_payload(question.type, payload)

        existing = await self._get(self.answer_key(attempt_id, question_id))
        answer_id = existing["id"] if existing else uuid.uuid4().hex

        answer = Answer(
            id=answer_id,
            attempt_id=attempt_id,
            question_id=question_id,
            answer_payload=typed_payload,
            updated_at=now or utc_now(),
        )
        await self._put(self.answer_key(attempt_id, question_id), answer.to_row())
        if existing is None:
            await self._put(
                self.answer_id_key(answer_id),
                {"attempt_id": attempt_id, "question_id": question_id},
            )

        logger.debug(f"Resposta salva: tentativa={attempt_id} pergunta={question_id}")
        return answer

    async def list_by_attempt(self, attempt_id: str) -> list[Answer]:
        rows = await self._list_rows(f"answer:{attempt_id}:")
        return [Answer.from_row(row) for row in rows]

    async def get(self, attempt_id: str, question_id: str) -> Answer:
        """Busca resposta pelo par (tentativa, pergunta).

        Raises:
            NotFound: Se o aluno não respondeu a pergunta
        """
        row = await self._get(self.answer_key(attempt_id, question_id))
        if row is None:
            raise NotFound(
                f"Resposta da pergunta {question_id} não encontrada na tentativa {attempt_id}",
                details={"attempt_id": attempt_id, "question_id": question_id},
            )
        return Answer.from_row(row)

    async def get_by_id(self, answer_id: str) -> Answer:
        """Busca resposta pelo id.

        Raises:
            NotFound: Se o id não existir
        """
        pointer = await self._get(self.answer_id_key(answer_id))
        if pointer is None:
            raise NotFound(f"Resposta {answer_id} não encontrada", details={"answer_id": answer_id})
        return await self.get(pointer["attempt_id"], pointer["question_id"])

    async def update(self, answer: Answer) -> Answer:
        """Grava campos de correção (uma linha, escrita atômica)."""
        await self._put(self.answer_key(answer.attempt_id, answer.question_id), answer.to_row())
        return answer
