"""Visibilidade de resultados para o aluno."""

from datetime import datetime

from ..models.entities import Attempt, Quiz, as_utc
from ..models.enums import AttemptStatus, ResultsPolicy


def can_show_results(quiz: Quiz, attempt: Attempt, now: datetime) -> bool:
    """Se o aluno pode ver nota e correção da tentativa.

    Regras, nesta ordem:
        - never: nunca
        - tentativa precisa estar submitted ou graded
        - immediate: sempre
        - after_close: quiz sem ``end_at`` ou ``now > end_at``

    Reavaliado a cada requisição (nunca guardar o resultado).
    """
    policy = quiz.show_results_policy
    if policy is ResultsPolicy.NEVER:
        return False
    if attempt.status not in (AttemptStatus.SUBMITTED, AttemptStatus.GRADED):
        return False
    if policy is ResultsPolicy.IMMEDIATE:
        return True
    return quiz.end_at is None or as_utc(now) > quiz.end_at
