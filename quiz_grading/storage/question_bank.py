"""Question Bank - Quizzes, perguntas e alternativas (dados de referência)."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from ..exceptions import NotFound
from ..models.entities import Option, Question, Quiz
from ..models.enums import ResultsPolicy
from .kv import KVRepository

logger = logging.getLogger(__name__)


class QuestionBank(KVRepository):
    """Leitura de quizzes/perguntas/alternativas.

    O motor só lê estes dados. Os métodos ``save_*`` existem para carga
    (scripts de importação, fixtures) e aceitam entidades ou linhas cruas;
    linhas passam por ``from_row`` antes de gravar.
    """

    def __init__(self, agentfs, default_results_policy: ResultsPolicy = ResultsPolicy.AFTER_CLOSE):
        super().__init__(agentfs)
        self.default_results_policy = default_results_policy

    # Leitura -----------------------------------------------------------------

    async def get_quiz(self, quiz_id: str) -> Quiz:
        """Busca quiz.

        Raises:
            NotFound: Se o quiz não existir
        """
        row = await self._get(self.quiz_key(quiz_id))
        if row is None:
            logger.debug(f"Quiz não encontrado: {quiz_id}")
            raise NotFound(f"Quiz {quiz_id} não encontrado", details={"quiz_id": quiz_id})

        if not row.get("show_results_policy"):
            row["show_results_policy"] = self.default_results_policy.value
        return Quiz.from_row(row)

    async def list_questions(self, quiz_id: str) -> list[Question]:
        """Perguntas do quiz ordenadas por ``order_index``.

        Linhas inválidas (tipo desconhecido, campos quebrados) ficam de fora
        com aviso; o resto do quiz continua corrigível.
        """
        rows = await self._list_rows(f"question:{quiz_id}:")
        questions = [q for q in (self._parse_question(row) for row in rows) if q is not None]
        return sorted(questions, key=lambda q: (q.order_index, q.id))

    async def get_question(self, quiz_id: str, question_id: str) -> Question:
        """Busca pergunta.

        Raises:
            NotFound: Pergunta inexistente ou com linha inválida
        """
        row = await self._get(self.question_key(quiz_id, question_id))
        question = self._parse_question(row) if row is not None else None
        if question is None:
            raise NotFound(
                f"Pergunta {question_id} não encontrada no quiz {quiz_id}",
                details={"quiz_id": quiz_id, "question_id": question_id},
            )
        return question

    async def list_options(self, question_id: str) -> list[Option]:
        """Alternativas da pergunta ordenadas por ``order_index``."""
        rows = await self._list_rows(f"option:{question_id}:")
        options = []
        for row in rows:
            try:
                options.append(Option.from_row(row))
            except ValidationError as e:
                logger.warning(f"Alternativa inválida ignorada (pergunta={question_id}): {e.error_count()} erro(s)")
        return sorted(options, key=lambda o: (o.order_index, o.id))

    @staticmethod
    def _parse_question(row: dict[str, Any]) -> Question | None:
        try:
            return Question.from_row(row)
        except ValidationError as e:
            info = row if isinstance(row, dict) else {}
            logger.warning(
                f"Pergunta inválida ignorada: {info.get('id')!r} tipo={info.get('type')!r} "
                f"({e.error_count()} erro(s))"
            )
            return None

    async def options_by_question(self, questions: list[Question]) -> dict[str, list[Option]]:
        """Mapa question_id -> alternativas (uma leitura por pergunta)."""
        return {q.id: await self.list_options(q.id) for q in questions}

    # Carga -------------------------------------------------------------------

    async def save_quiz(self, quiz: Quiz | dict[str, Any]) -> Quiz:
        parsed = quiz if isinstance(quiz, Quiz) else Quiz.from_row(quiz)
        row = parsed.to_row()
        if isinstance(quiz, dict) and not quiz.get("show_results_policy"):
            # Sem política explícita: vale o default configurado na leitura
            row["show_results_policy"] = None
        await self._put(self.quiz_key(parsed.id), row)
        return parsed

    async def save_question(self, question: Question | dict[str, Any]) -> Question:
        parsed = question if isinstance(question, Question) else Question.from_row(question)
        await self._put(self.question_key(parsed.quiz_id, parsed.id), parsed.to_row())
        return parsed

    async def save_option(self, option: Option | dict[str, Any]) -> Option:
        parsed = option if isinstance(option, Option) else Option.from_row(option)
        await self._put(self.option_key(parsed.question_id, parsed.id), parsed.to_row())
        return parsed
