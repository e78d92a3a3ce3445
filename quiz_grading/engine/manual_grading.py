"""Manual Grading - Correção de respostas pelo professor."""

import logging
from dataclasses import dataclass, field
from typing import Any

from ..exceptions import InvalidState, NotFound
from ..models.entities import Answer
from ..models.enums import AttemptStatus
from ..models.payloads import to_finite_number
from ..storage import AnswerStore, AttemptStore, QuestionBank

logger = logging.getLogger(__name__)


@dataclass
class GradeAnswerResult:
    """Resposta corrigida e avisos (ex.: pontos limitados a faixa)."""

    answer: Answer
    warnings: list[str] = field(default_factory=list)


def clamp_points(raw_points: Any, max_points: float) -> tuple[float, str | None]:
    """Limita pontos a [0, max_points].

    Returns:
        (pontos, aviso ou None)
    """
    points = to_finite_number(raw_points)
    if points is None:
        return 0.0, f"Pontos inválidos ({raw_points!r}), usando 0"
    if points < 0:
        return 0.0, f"Pontos negativos ({points}), usando 0"
    if points > max_points:
        return max_points, f"Pontos ({points}) acima do máximo, usando {max_points}"
    return points, None


def correctness_for(points: float, max_points: float) -> bool | None:
    """Pontuação cheia -> True, zero -> False, parcial -> None."""
    if points >= max_points:
        return True
    if points <= 0:
        return False
    return None


class ManualGrader:
    """Grava pontos atribuidos pelo professor em respostas enviadas.

    Serve para short_text e para sobrescrever a correção automática de
    qualquer tipo. Não recalcula a nota: o serviço chama o reconciliador
    depois.

    Example:
        >>> grader = ManualGrader(bank, attempts, answers)
        >>> result = await grader.grade_answer("ans-1", 1.5, comment="Quase")
        >>> result.answer.points_awarded
        1.5
    """

    def __init__(self, bank: QuestionBank, attempts: AttemptStore, answers: AnswerStore):
        self.bank = bank
        self.attempts = attempts
        self.answers = answers

    async def grade_answer(
        self,
        answer_id: str,
        points_awarded: Any,
        comment: str | None = None,
    ) -> GradeAnswerResult:
        """Atribui pontos a uma resposta.

        Args:
            answer_id: ID da resposta
            points_awarded: Pontos (limitados a [0, pontos da pergunta])
            comment: Comentário do corretor (None mantém o atual)

        Raises:
            NotFound: Resposta inexistente
            InvalidState: Tentativa ainda em andamento
        """
        answer = await self.answers.get_by_id(answer_id)
        attempt = await self.attempts.get(answer.attempt_id)
        if attempt.status is AttemptStatus.IN_PROGRESS:
            raise InvalidState(
                "Tentativa em andamento não pode ser corrigida",
                details={"attempt_id": attempt.id, "answer_id": answer_id},
            )

        question = await self.bank.get_question(attempt.quiz_id, answer.question_id)
        points, warning = clamp_points(points_awarded, question.points)
        warnings = []
        if warning:
            warnings.append(f"Resposta {answer_id}: {warning}")
            logger.warning(warnings[-1])

        answer.points_awarded = points
        answer.is_correct = correctness_for(points, question.points)
        if comment is not None:
            answer.grader_comment = comment
        await self.answers.update(answer)

        logger.info(f"Resposta corrigida: {answer_id} pontos={points}/{question.points}")
        return GradeAnswerResult(answer=answer, warnings=warnings)

    async def grade_answers_bulk(self, grades: list[dict[str, Any]]) -> list[GradeAnswerResult]:
        """Corrige várias respostas de uma vez.

        Todas as respostas são validadas antes da primeira escrita: um id
        inexistente ou tentativa em andamento aborta o lote inteiro.

        Args:
            grades: Lista de ``{"answer_id", "points_awarded", "comment"?}``

        Raises:
            NotFound: Alguma resposta inexistente
            InvalidState: Alguma tentativa em andamento
        """
        for grade in grades:
            answer_id = grade.get("answer_id")
            if not answer_id:
                raise NotFound("Correção sem answer_id", details={"grade": grade})
            answer = await self.answers.get_by_id(answer_id)
            attempt = await self.attempts.get(answer.attempt_id)
            if attempt.status is AttemptStatus.IN_PROGRESS:
                raise InvalidState(
                    "Tentativa em andamento não pode ser corrigida",
                    details={"attempt_id": attempt.id, "answer_id": answer_id},
                )

        results = []
        for grade in grades:
            results.append(
                await self.grade_answer(
                    grade["answer_id"], grade.get("points_awarded"), grade.get("comment")
                )
            )
        return results
