# =============================================================================
# TESTES - Quiz Entities
# =============================================================================
# Testes unitários para conversão de linhas em entidades tipadas
# =============================================================================

from datetime import datetime, timezone


class TestQuizEntity:
    """Testes para Quiz.from_row."""

    def test_defaults(self):
        """Campos ausentes recebem defaults."""
        from quiz_grading.models.entities import Quiz
        from quiz_grading.models.enums import ResultsPolicy

        quiz = Quiz.from_row({"id": "quiz-1"})

        assert quiz.attempts_allowed == 1
        assert quiz.time_limit_minutes is None
        assert quiz.show_results_policy == ResultsPolicy.AFTER_CLOSE

    def test_invalid_attempts_allowed_defaults_to_one(self):
        """attempts_allowed inválido vira 1."""
        from quiz_grading.models.entities import Quiz

        assert Quiz.from_row({"id": "q", "attempts_allowed": 0}).attempts_allowed == 1
        assert Quiz.from_row({"id": "q", "attempts_allowed": "x"}).attempts_allowed == 1
        assert Quiz.from_row({"id": "q", "attempts_allowed": "3"}).attempts_allowed == 3

    def test_non_positive_time_limit_is_unlimited(self):
        """Tempo limite zero ou negativo significa sem limite."""
        from quiz_grading.models.entities import Quiz

        assert Quiz.from_row({"id": "q", "time_limit_minutes": 0}).time_limit_minutes is None
        assert Quiz.from_row({"id": "q", "time_limit_minutes": -5}).time_limit_minutes is None

    def test_naive_datetimes_are_utc(self):
        """Datas sem timezone são tratadas como UTC."""
        from quiz_grading.models.entities import Quiz

        quiz = Quiz.from_row({"id": "q", "end_at": "2025-01-15T12:00:00"})

        assert quiz.end_at == datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)

    def test_empty_policy_defaults(self):
        """Política vazia vira after_close."""
        from quiz_grading.models.entities import Quiz
        from quiz_grading.models.enums import ResultsPolicy

        quiz = Quiz.from_row({"id": "q", "show_results_policy": ""})

        assert quiz.show_results_policy == ResultsPolicy.AFTER_CLOSE


class TestQuestionEntity:
    """Testes para Question.from_row."""

    def test_invalid_points_default_to_one(self):
        """Pontos inválidos viram 1 e geram aviso."""
        from quiz_grading.models.entities import Question

        for raw in (None, 0, -2, "abc"):
            question = Question.from_row(
                {"id": "q", "quiz_id": "quiz", "type": "mcq_single", "points": raw}
            )
            assert question.points == 1.0
            assert question.points_defaulted is True
            assert question.points_warning is not None

    def test_valid_points_kept(self):
        """Pontos válidos são mantidos, sem aviso."""
        from quiz_grading.models.entities import Question

        question = Question.from_row(
            {"id": "q", "quiz_id": "quiz", "type": "numeric", "points": "2.5"}
        )

        assert question.points == 2.5
        assert question.points_warning is None

    def test_tolerance_from_media_url(self):
        """Linhas antigas guardam tolerância em media_url."""
        from quiz_grading.models.entities import Question

        question = Question.from_row(
            {"id": "q", "quiz_id": "quiz", "type": "numeric", "points": 1, "media_url": "0.5"}
        )

        assert question.tolerance == 0.5

    def test_points_defaulted_survives_round_trip(self):
        """Flag de pontos inválidos persiste na linha gravada."""
        from quiz_grading.models.entities import Question

        question = Question.from_row({"id": "q", "quiz_id": "quiz", "type": "short_text"})
        reloaded = Question.from_row(question.to_row())

        assert reloaded.points_defaulted is True


class TestOptionEntity:
    """Testes para Option."""

    def test_truth_value_from_order_index(self):
        """order_index 0 = verdadeiro, 1 = falso."""
        from quiz_grading.models.entities import Option

        assert Option(id="a", question_id="q", order_index=0).truth_value is True
        assert Option(id="b", question_id="q", order_index=1).truth_value is False
        assert Option(id="c", question_id="q", order_index=2).truth_value is None

    def test_bool_value_overrides_order_index(self):
        """bool_value explícito tem precedência."""
        from quiz_grading.models.entities import Option

        option = Option(id="a", question_id="q", order_index=0, bool_value=False)

        assert option.truth_value is False

    def test_is_correct_only_true_is_true(self):
        """Valores truthy que não são True contam como falso."""
        from quiz_grading.models.entities import Option

        assert Option.from_row({"id": "a", "question_id": "q", "is_correct": "yes"}).is_correct is False
        assert Option.from_row({"id": "a", "question_id": "q", "is_correct": None}).is_correct is False


class TestAnswerEntity:
    """Testes para Answer.from_row."""

    def test_legacy_payload_row(self):
        """Linha antiga com payload solto é convertida."""
        from quiz_grading.models.entities import Answer

        answer = Answer.from_row(
            {"id": "a1", "attempt_id": "t1", "question_id": "q1", "answer_payload": {"number": 11}}
        )

        assert answer.answer_payload.kind == "number"
        assert answer.answer_payload.value == 11.0

    def test_unreadable_payload_becomes_none(self, capture_logs):
        """Payload ilegível não quebra a leitura."""
        from quiz_grading.models.entities import Answer

        answer = Answer.from_row(
            {"id": "a1", "attempt_id": "t1", "question_id": "q1", "answer_payload": {"foo": 1}}
        )

        assert answer.answer_payload is None
        assert "payload ilegível" in capture_logs.text

    def test_invalid_grading_fields_become_none(self):
        """is_correct não booleano e pontos não numéricos viram None."""
        from quiz_grading.models.entities import Answer

        answer = Answer.from_row(
            {
                "id": "a1",
                "attempt_id": "t1",
                "question_id": "q1",
                "is_correct": "true",
                "points_awarded": "abc",
            }
        )

        assert answer.is_correct is None
        assert answer.points_awarded is None
