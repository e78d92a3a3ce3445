"""Estatísticas de correção (tela do aluno e do corretor)."""

import math
import statistics
from dataclasses import asdict, dataclass

from ..models.entities import Answer, Attempt, Question
from ..models.enums import AttemptStatus


@dataclass
class AttemptSummary:
    """Contagem de acertos de uma tentativa."""

    total_questions: int
    answered: int
    correct: int
    wrong: int
    pending: int  # Aguardando correção manual
    score: float
    max_score: float
    percentage: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class QuizStatistics:
    """Distribuicao das notas de um quiz."""

    total_attempts: int
    completed: int
    completion_percentage: int
    average: float | None
    median: float | None
    std_dev: float | None

    def to_dict(self) -> dict:
        return asdict(self)


def summarize_attempt(
    questions: list[Question],
    answers: list[Answer],
    attempt: Attempt | None = None,
) -> AttemptSummary:
    """Resume acertos, erros e pendências de uma tentativa.

    Respostas com pontuação parcial (is_correct nulo, pontos definidos)
    contam como corrigidas mas não entram em ``correct`` nem ``wrong``.

    ``score`` é a nota reconciliada (``attempt.score``) quando existe; a soma
    crua das respostas só vale antes da primeira reconciliação.
    """
    known = {q.id for q in questions}
    correct = wrong = pending = 0
    score = 0.0

    for answer in answers:
        if answer.question_id not in known:
            continue
        if answer.is_correct is True:
            correct += 1
        elif answer.is_correct is False:
            wrong += 1
        elif answer.points_awarded is None:
            pending += 1
        score += answer.points_awarded or 0.0

    if attempt is not None and attempt.score is not None:
        score = attempt.score

    max_score = sum(q.points for q in questions)
    percentage = round(score / max_score * 100, 1) if max_score > 0 else 0.0
    return AttemptSummary(
        total_questions=len(questions),
        answered=sum(1 for a in answers if a.question_id in known),
        correct=correct,
        wrong=wrong,
        pending=pending,
        score=score,
        max_score=max_score,
        percentage=percentage,
    )


def quiz_statistics(attempts: list[Attempt]) -> QuizStatistics:
    """Média, mediana e desvio padrão (populacional) das notas.

    Só entram tentativas submitted/graded com nota.
    """
    completed = [a for a in attempts if a.status is not AttemptStatus.IN_PROGRESS]
    scores = [a.score for a in completed if a.score is not None and math.isfinite(a.score)]

    total = len(attempts)
    completion = round(len(completed) / total * 100) if total else 0

    if not scores:
        return QuizStatistics(total, len(completed), completion, None, None, None)

    return QuizStatistics(
        total_attempts=total,
        completed=len(completed),
        completion_percentage=completion,
        average=statistics.fmean(scores),
        median=statistics.median(scores),
        std_dev=statistics.pstdev(scores),
    )
