# =============================================================================
# TESTES - Result Visibility
# =============================================================================
# Testes unitários para a política de exibição de resultados
# =============================================================================

from datetime import datetime, timedelta, timezone

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


def make_quiz(policy: str, end_at=None):
    from quiz_grading.models.entities import Quiz

    return Quiz.from_row({"id": "quiz-1", "show_results_policy": policy, "end_at": end_at})


def make_attempt(status: str):
    from quiz_grading.models.entities import Attempt

    return Attempt(id="t1", quiz_id="quiz-1", student_id="s1", status=status, started_at=NOW)


class TestCanShowResults:
    """Testes para can_show_results."""

    def test_after_close_before_end(self):
        """after_close com end_at no futuro: oculto."""
        from quiz_grading.engine.visibility import can_show_results

        quiz = make_quiz("after_close", NOW + timedelta(hours=1))

        assert can_show_results(quiz, make_attempt("submitted"), NOW) is False

    def test_after_close_after_end(self):
        """after_close depois de end_at: visível, sem outra mudança."""
        from quiz_grading.engine.visibility import can_show_results

        quiz = make_quiz("after_close", NOW + timedelta(hours=1))
        attempt = make_attempt("submitted")

        assert can_show_results(quiz, attempt, NOW + timedelta(hours=2)) is True

    def test_after_close_without_end(self):
        """after_close sem end_at: visível."""
        from quiz_grading.engine.visibility import can_show_results

        assert can_show_results(make_quiz("after_close"), make_attempt("graded"), NOW) is True

    def test_immediate(self):
        """immediate: visível assim que enviada."""
        from quiz_grading.engine.visibility import can_show_results

        quiz = make_quiz("immediate", NOW + timedelta(days=1))

        assert can_show_results(quiz, make_attempt("submitted"), NOW) is True

    def test_never(self):
        """never: sempre oculto."""
        from quiz_grading.engine.visibility import can_show_results

        quiz = make_quiz("never")

        assert can_show_results(quiz, make_attempt("graded"), NOW + timedelta(days=365)) is False

    def test_in_progress_hidden(self):
        """Tentativa em andamento: sempre oculto."""
        from quiz_grading.engine.visibility import can_show_results

        assert can_show_results(make_quiz("immediate"), make_attempt("in_progress"), NOW) is False

    def test_default_policy_is_after_close(self):
        """Política ausente vale after_close."""
        from quiz_grading.engine.visibility import can_show_results

        quiz = make_quiz(None, NOW + timedelta(hours=1))

        assert can_show_results(quiz, make_attempt("submitted"), NOW) is False
