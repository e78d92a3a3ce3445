"""Attempt State Machine - in_progress -> submitted -> graded."""

import asyncio
import logging
import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime

from ..exceptions import DuplicateAttempt, InvalidState, NoAttemptsRemaining, QuizClosed
from ..models.entities import Attempt, Quiz, as_utc
from ..models.enums import AttemptStatus
from ..storage import AnswerStore, AttemptStore, QuestionBank
from .auto_grader import AutoGrader
from .locks import KeyedLocks
from .reconciler import ScoreReconciler

logger = logging.getLogger(__name__)

# Rodadas de disputa pela vaga ativa antes de desistir
START_CLAIM_ROUNDS = 8


@dataclass
class FinalizeResult:
    """Tentativa finalizada e avisos de qualidade de dados."""

    attempt: Attempt
    warnings: list[str] = field(default_factory=list)


def remaining_seconds(quiz: Quiz, attempt: Attempt, now: datetime) -> float | None:
    """Segundos restantes até o tempo limite (None se o quiz não tem limite).

    Usado pelo loop de auto-submit do cliente; nunca negativo.
    """
    if quiz.time_limit_minutes is None:
        return None
    elapsed = (as_utc(now) - attempt.started_at).total_seconds()
    return max(0.0, quiz.time_limit_minutes * 60 - elapsed)


def is_overdue(quiz: Quiz, attempt: Attempt, now: datetime) -> bool:
    """Se uma tentativa em andamento já estourou o tempo limite."""
    if attempt.status is not AttemptStatus.IN_PROGRESS:
        return False
    remaining = remaining_seconds(quiz, attempt, now)
    return remaining is not None and remaining <= 0


class AttemptStateMachine:
    """Governa criação, envio e finalização de tentativas.

    Toda operação é fail-closed: pré-condição violada levanta erro antes de
    qualquer escrita. A transição de status e os campos dependentes vão numa
    única escrita de linha.

    Example:
        >>> machine = AttemptStateMachine(bank, attempts, answers)
        >>> attempt = await machine.start("quiz-1", "aluno-1", now)
        >>> attempt = await machine.submit(attempt.id, now)
        >>> attempt.status
        <AttemptStatus.SUBMITTED: 'submitted'>
    """

    def __init__(
        self,
        bank: QuestionBank,
        attempts: AttemptStore,
        answers: AnswerStore,
        reconciler: ScoreReconciler | None = None,
        grader: AutoGrader | None = None,
        locks: KeyedLocks | None = None,
    ):
        self.bank = bank
        self.attempts = attempts
        self.answers = answers
        self.grader = grader or AutoGrader()
        self.reconciler = reconciler or ScoreReconciler(bank, attempts, answers)
        self.locks = locks or KeyedLocks()

    # =========================================================================
    # START
    # =========================================================================

    async def start(self, quiz_id: str, student_id: str, now: datetime) -> Attempt:
        """Cria tentativa ou retoma a que está em andamento.

        Raises:
            NotFound: Quiz inexistente
            QuizClosed: ``now`` fora da janela start_at/end_at
            NoAttemptsRemaining: Tentativas concluidas >= attempts_allowed
        """
        now = as_utc(now)
        quiz = await self.bank.get_quiz(quiz_id)

        if quiz.start_at is not None and now < quiz.start_at:
            raise QuizClosed(
                "Quiz ainda não foi aberto",
                details={"quiz_id": quiz_id, "start_at": quiz.start_at.isoformat()},
            )
        if quiz.end_at is not None and now > quiz.end_at:
            raise QuizClosed(
                "Quiz já foi encerrado",
                details={"quiz_id": quiz_id, "end_at": quiz.end_at.isoformat()},
            )

        async with self.locks.hold(f"start:{quiz_id}:{student_id}"):
            for round_ in range(START_CLAIM_ROUNDS):
                active = await self.attempts.get_active(quiz_id, student_id)
                if active is not None:
                    logger.info(f"Tentativa retomada: {active.id} (quiz={quiz_id}, aluno={student_id})")
                    return active

                history = await self.attempts.list_by_quiz_and_student(quiz_id, student_id)
                completed = [a for a in history if a.status is not AttemptStatus.IN_PROGRESS]
                if len(completed) >= quiz.attempts_allowed:
                    raise NoAttemptsRemaining(
                        "Nenhuma tentativa restante",
                        details={
                            "quiz_id": quiz_id,
                            "attempts_used": len(completed),
                            "attempts_allowed": quiz.attempts_allowed,
                        },
                    )

                attempt = Attempt(
                    id=uuid.uuid4().hex,
                    quiz_id=quiz_id,
                    student_id=student_id,
                    status=AttemptStatus.IN_PROGRESS,
                    started_at=now,
                )
                try:
                    await self.attempts.create(attempt, attempts_allowed=quiz.attempts_allowed)
                except DuplicateAttempt as e:
                    if e.existing_attempt_id is not None:
                        # Outro processo criou primeiro: retoma a dele
                        logger.info(f"Start concorrente, retomando {e.existing_attempt_id}")
                        return await self.attempts.get(e.existing_attempt_id)
                    logger.debug(f"Disputa pela vaga ativa, nova rodada: {quiz_id}/{student_id}")
                    await asyncio.sleep(random.uniform(0.001, 0.01) * (round_ + 1))
                    continue

                logger.info(f"Tentativa iniciada: {attempt.id} (quiz={quiz_id}, aluno={student_id})")
                return attempt

        raise TimeoutError(f"Vaga de tentativa disputada demais: quiz={quiz_id} aluno={student_id}")

    # =========================================================================
    # SUBMIT
    # =========================================================================

    async def submit(
        self,
        attempt_id: str,
        now: datetime,
        observed_duration_seconds: float | None = None,
    ) -> Attempt:
        """Envia a tentativa (manual ou auto-submit por tempo, mesmo caminho).

        Apenas muda status e timestamps; a correção vem depois.

        Raises:
            NotFound: Tentativa inexistente
            InvalidState: Tentativa fora de in_progress (inclui envio duplo)
            ValueError: Duração negativa
        """
        if observed_duration_seconds is not None and observed_duration_seconds < 0:
            raise ValueError("Duração observada não pode ser negativa")

        async with self.locks.hold(f"attempt:{attempt_id}"):
            attempt = await self.attempts.get(attempt_id)
            if attempt.status is not AttemptStatus.IN_PROGRESS:
                raise InvalidState(
                    "Tentativa já foi enviada",
                    details={"attempt_id": attempt_id, "status": attempt.status.value},
                )

            attempt.status = AttemptStatus.SUBMITTED
            attempt.submitted_at = as_utc(now)
            if observed_duration_seconds is not None:
                attempt.duration_seconds = observed_duration_seconds
            await self.attempts.update(attempt)

        logger.info(f"Tentativa enviada: {attempt_id}")
        return attempt

    # =========================================================================
    # AUTO-GRADE (gatilho do submit)
    # =========================================================================

    async def auto_grade(self, attempt_id: str, only_ungraded: bool = False) -> list[str]:
        """Corrige todas as respostas objetivas de uma tentativa enviada.

        Args:
            attempt_id: Tentativa
            only_ungraded: Se True, só corrige respostas sem is_correct e
                sem points_awarded (preserva correções manuais)

        Returns:
            Avisos de qualidade de dados

        Raises:
            InvalidState: Tentativa ainda em andamento
        """
        attempt = await self.attempts.get(attempt_id)
        if attempt.status is AttemptStatus.IN_PROGRESS:
            raise InvalidState(
                "Tentativa precisa ser enviada antes da correção",
                details={"attempt_id": attempt_id},
            )

        questions = {q.id: q for q in await self.bank.list_questions(attempt.quiz_id)}
        warnings: list[str] = []

        for answer in await self.answers.list_by_attempt(attempt_id):
            question = questions.get(answer.question_id)
            if question is None or not question.type.is_auto_gradable:
                continue
            if only_ungraded and (answer.is_correct is not None or answer.points_awarded is not None):
                continue

            options = await self.bank.list_options(question.id)
            verdict = self.grader.grade(question, options, answer.answer_payload)
            warnings.extend(verdict.warnings)

            answer.is_correct = verdict.is_correct
            answer.points_awarded = verdict.points_awarded
            await self.answers.update(answer)

        return warnings

    # =========================================================================
    # FINALIZE
    # =========================================================================

    async def finalize(self, attempt_id: str) -> FinalizeResult:
        """Força a tentativa para graded com nota consistente (idempotente).

        1. Respostas objetivas sem correção -> veredito do AutoGrader
        2. Respostas manuais sem pontos -> 0
        3. Reconciliador
        4. status = graded

        Raises:
            NotFound: Tentativa inexistente
            InvalidState: Tentativa ainda em andamento
        """
        async with self.locks.hold(f"attempt:{attempt_id}"):
            attempt = await self.attempts.get(attempt_id)
            if attempt.status is AttemptStatus.IN_PROGRESS:
                raise InvalidState(
                    "Tentativa em andamento não pode ser finalizada",
                    details={"attempt_id": attempt_id, "status": attempt.status.value},
                )

            warnings = await self.auto_grade(attempt_id, only_ungraded=True)

            questions = {q.id: q for q in await self.bank.list_questions(attempt.quiz_id)}
            for answer in await self.answers.list_by_attempt(attempt_id):
                question = questions.get(answer.question_id)
                if question is None or question.type.is_auto_gradable:
                    continue
                if answer.points_awarded is None and answer.is_correct is None:
                    answer.points_awarded = 0.0
                    await self.answers.update(answer)

            result = await self.reconciler.recalculate(attempt_id)
            warnings.extend(result.warnings)

            attempt = await self.attempts.get(attempt_id)
            if attempt.status is not AttemptStatus.GRADED:
                attempt.status = AttemptStatus.GRADED
                await self.attempts.update(attempt)

        logger.info(f"Tentativa finalizada: {attempt_id} score={attempt.score}")
        return FinalizeResult(attempt=attempt, warnings=warnings)
