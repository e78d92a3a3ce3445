"""Auto Grader - Correção automática de perguntas objetivas."""

import logging
import math
from dataclasses import dataclass, field

from ..models.entities import Option, Question
from ..models.enums import QuestionType
from ..models.payloads import (
    EXPECTED_KIND,
    BooleanPayload,
    NumberPayload,
    SelectedOptionsPayload,
    to_finite_number,
)

logger = logging.getLogger(__name__)


@dataclass
class GradeVerdict:
    """Resultado da correção de uma resposta.

    Attributes:
        is_correct: Se a resposta está correta
        points_awarded: Pontos atribuidos (question.points ou 0)
        warnings: Avisos de qualidade de dados (nunca fatais)
    """

    is_correct: bool
    points_awarded: float
    warnings: list[str] = field(default_factory=list)


class AutoGrader:
    """Motor de correção para mcq_single, mcq_multi, true_false e numeric.

    Função pura: não lê nem grava nada. ``short_text`` nunca é corrigido
    automaticamente.

    Regras:
        - mcq_single: a única alternativa selecionada é a única correta
        - mcq_multi: conjunto selecionado == conjunto correto (tudo ou nada)
        - true_false: booleano enviado == valor de verdade da alternativa
          correta (``bool_value`` ou ``order_index``: 0 = verdadeiro, 1 = falso)
        - numeric: |enviado - correto| <= tolerância; correto = texto
          numérico da alternativa correta

    Example:
        >>> grader = AutoGrader()
        >>> verdict = grader.grade(question, options, SelectedOptionsPayload(selected_option_ids=["o1"]))
        >>> verdict.is_correct, verdict.points_awarded
        (True, 1.0)
    """

    def grade(self, question: Question, options: list[Option], payload) -> GradeVerdict:
        """Corrige uma resposta.

        Args:
            question: Pergunta respondida
            options: Alternativas da pergunta
            payload: Payload tipado (ou None se a resposta estiver vazia)

        Returns:
            GradeVerdict com is_correct, pontos e avisos

        Raises:
            ValueError: Se o tipo da pergunta não for corrigível automaticamente
        """
        if not question.type.is_auto_gradable:
            raise ValueError(f"Pergunta {question.id} ({question.type.value}) exige correção manual")

        warnings: list[str] = []
        if question.points_warning:
            warnings.append(question.points_warning)

        if payload is not None and payload.kind != EXPECTED_KIND[question.type]:
            warnings.append(
                f"Pergunta {question.id}: resposta '{payload.kind}' incompatível com "
                f"'{question.type.value}', corrigida como errada"
            )
            payload = None

        if question.type is QuestionType.MCQ_SINGLE:
            is_correct = self._grade_mcq_single(question, options, payload, warnings)
        elif question.type is QuestionType.MCQ_MULTI:
            is_correct = self._grade_mcq_multi(question, options, payload, warnings)
        elif question.type is QuestionType.TRUE_FALSE:
            is_correct = self._grade_true_false(question, options, payload, warnings)
        else:
            is_correct = self._grade_numeric(question, options, payload, warnings)

        for warning in warnings:
            logger.warning(warning)

        return GradeVerdict(
            is_correct=is_correct,
            points_awarded=question.points if is_correct else 0.0,
            warnings=warnings,
        )

    def _grade_mcq_single(
        self,
        question: Question,
        options: list[Option],
        payload: SelectedOptionsPayload | None,
        warnings: list[str],
    ) -> bool:
        correct = [o for o in options if o.is_correct]
        if len(correct) != 1:
            warnings.append(
                f"Pergunta {question.id}: mcq_single com {len(correct)} alternativas corretas"
            )
            return False

        if payload is None or len(payload.selected_option_ids) != 1:
            return False
        return payload.selected_option_ids[0] == correct[0].id

    def _grade_mcq_multi(
        self,
        question: Question,
        options: list[Option],
        payload: SelectedOptionsPayload | None,
        warnings: list[str],
    ) -> bool:
        correct_ids = {o.id for o in options if o.is_correct}
        if not correct_ids:
            warnings.append(f"Pergunta {question.id}: mcq_multi sem alternativa correta")
            return False

        if payload is None:
            return False
        # Tudo ou nada: subconjunto ou superconjunto conta como errado
        return set(payload.selected_option_ids) == correct_ids

    def _grade_true_false(
        self,
        question: Question,
        options: list[Option],
        payload: BooleanPayload | None,
        warnings: list[str],
    ) -> bool:
        correct = next((o for o in options if o.is_correct), None)
        expected = correct.truth_value if correct is not None else None
        if expected is None:
            warnings.append(
                f"Pergunta {question.id}: true_false sem alternativa correta com valor definido"
            )
            return False

        if payload is None or payload.value is None:
            return False
        return payload.value is expected

    def _grade_numeric(
        self,
        question: Question,
        options: list[Option],
        payload: NumberPayload | None,
        warnings: list[str],
    ) -> bool:
        correct = next((o for o in options if o.is_correct), None)
        expected = to_finite_number(correct.text) if correct is not None else None
        if expected is None:
            warnings.append(f"Pergunta {question.id}: numeric sem valor correto numérico")
            return False

        if payload is None or payload.value is None:
            return False
        diff = abs(payload.value - expected)
        # Erro de ponto flutuante na borda (10.3 - 10 > 0.3)
        return diff <= question.tolerance or math.isclose(diff, question.tolerance, abs_tol=1e-9)
