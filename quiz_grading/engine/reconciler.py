"""Score Reconciler - Recálculo idempotente da nota de uma tentativa."""

import logging
from dataclasses import dataclass, field

from ..exceptions import InvalidState
from ..models.entities import Answer, Question
from ..models.enums import AttemptStatus
from ..storage import AnswerStore, AttemptStore, QuestionBank

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """Resultado de um recálculo.

    Attributes:
        score: Soma dos pontos resolvidos
        warnings: Inconsistências encontradas e corrigidas
        repaired: IDs das respostas regravadas
    """

    score: float
    warnings: list[str] = field(default_factory=list)
    repaired: list[str] = field(default_factory=list)


@dataclass
class _Resolution:
    points: float
    is_correct: bool | None
    mutate: bool
    warning: str | None = None


def resolve_answer_points(answer: Answer, question: Question) -> _Resolution:
    """Decide os pontos autoritativos de uma resposta.

    Precedência:
        1. points_awarded válido (0 <= p <= max) e coerente com is_correct -> mantém
        2. points_awarded válido mas divergente de is_correct -> is_correct vence
        3. points_awarded nulo/inválido e is_correct booleano -> deriva de is_correct
        4. ambos nulos (correção manual pendente) -> conta 0, não grava

    Pontos fora da faixa com is_correct nulo são limitados a [0, max].
    """
    max_points = question.points
    points = answer.points_awarded
    is_correct = answer.is_correct
    valid = points is not None and 0 <= points <= max_points

    if is_correct is not None:
        derived = max_points if is_correct else 0.0
        if valid and points == derived:
            return _Resolution(points, is_correct, mutate=False)
        if valid:
            return _Resolution(
                derived,
                is_correct,
                mutate=True,
                warning=(
                    f"Resposta {answer.id}: is_correct={is_correct} divergente de "
                    f"points_awarded={points}, usando {derived}"
                ),
            )
        warning = None
        if points is not None:
            warning = (
                f"Resposta {answer.id}: points_awarded inválido ({points}), "
                f"derivado de is_correct={is_correct}"
            )
        return _Resolution(derived, is_correct, mutate=True, warning=warning)

    if valid:
        return _Resolution(points, None, mutate=False)
    if points is None:
        return _Resolution(0.0, None, mutate=False)

    clamped = min(max(points, 0.0), max_points)
    return _Resolution(
        clamped,
        None,
        mutate=True,
        warning=(
            f"Resposta {answer.id}: points_awarded={points} fora de [0, {max_points}], "
            f"usando {clamped}"
        ),
    )


class ScoreReconciler:
    """Única fonte de verdade para ``Attempt.score``.

    Lê todas as respostas, resolve os pontos de cada uma, corrige linhas
    inconsistentes e grava a soma na tentativa. Pode ser chamado quantas
    vezes for preciso: uma segunda execução não muda nada.

    Example:
        >>> reconciler = ScoreReconciler(bank, attempts, answers)
        >>> result = await reconciler.recalculate("att-1")
        >>> result.score
        3.0
    """

    def __init__(self, bank: QuestionBank, attempts: AttemptStore, answers: AnswerStore):
        self.bank = bank
        self.attempts = attempts
        self.answers = answers

    async def recalculate(self, attempt_id: str) -> ReconcileResult:
        """Recalcula e persiste a nota da tentativa.

        Raises:
            NotFound: Tentativa inexistente
            InvalidState: Tentativa ainda em andamento
        """
        attempt = await self.attempts.get(attempt_id)
        if attempt.status is AttemptStatus.IN_PROGRESS:
            raise InvalidState(
                "Tentativa em andamento não possui nota",
                details={"attempt_id": attempt_id, "status": attempt.status.value},
            )

        questions = {q.id: q for q in await self.bank.list_questions(attempt.quiz_id)}
        result = ReconcileResult(score=0.0)
        warned_questions: set[str] = set()

        for answer in await self.answers.list_by_attempt(attempt_id):
            question = questions.get(answer.question_id)
            if question is None:
                result.warnings.append(
                    f"Resposta {answer.id}: pergunta {answer.question_id} não existe mais, "
                    "contando 0"
                )
                continue

            if question.points_warning and question.id not in warned_questions:
                warned_questions.add(question.id)
                result.warnings.append(question.points_warning)

            resolution = resolve_answer_points(answer, question)
            if resolution.warning:
                result.warnings.append(resolution.warning)
            if resolution.mutate:
                answer.points_awarded = resolution.points
                answer.is_correct = resolution.is_correct
                await self.answers.update(answer)
                result.repaired.append(answer.id)

            result.score += resolution.points

        # Relê antes de gravar: só o score muda, status fica como está
        current = await self.attempts.get(attempt_id)
        if current.score != result.score:
            current.score = result.score
            await self.attempts.update(current)

        for warning in result.warnings:
            logger.warning(warning)
        logger.info(
            f"Nota recalculada: tentativa={attempt_id} score={result.score} "
            f"reparos={len(result.repaired)}"
        )
        return result
