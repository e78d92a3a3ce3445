# =============================================================================
# TESTES DE INTEGRAÇÃO - Endpoints
# =============================================================================
# Testes de integração usando FastAPI TestClient (sem servidor externo)
# =============================================================================

import pytest


@pytest.fixture
def client(app_service):
    """Cliente de teste FastAPI (não requer servidor rodando)."""
    from fastapi.testclient import TestClient
    from server import app

    return TestClient(app)


def start(client, student_id="aluno-1"):
    response = client.post("/attempts/start", json={"quiz_id": "quiz-1", "student_id": student_id})
    assert response.status_code == 200
    return response.json()["attempt"]


class TestHealthEndpoints:
    """Testes dos endpoints de health check."""

    def test_root_returns_ok(self, client):
        """GET / - Deve retornar status ok."""
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_health_returns_healthy(self, client):
        """GET /health - Deve retornar status healthy e backend."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["storage_backend"] == "memory"
        assert data["service_ready"] is True


class TestStudentEndpoints:
    """Testes do fluxo do aluno via HTTP."""

    def test_start_and_resume(self, client):
        """POST /attempts/start - Retoma a mesma tentativa."""
        first = client.post("/attempts/start", json={"quiz_id": "quiz-1", "student_id": "aluno-1"})
        second = client.post("/attempts/start", json={"quiz_id": "quiz-1", "student_id": "aluno-1"})

        assert first.status_code == 200
        assert first.json()["attempt"]["id"] == second.json()["attempt"]["id"]
        assert first.json()["attempt"]["status"] == "in_progress"
        assert 0 < first.json()["remaining_seconds"] <= 1800

    def test_start_unknown_quiz(self, client):
        """POST /attempts/start - Quiz inexistente retorna 404."""
        response = client.post("/attempts/start", json={"quiz_id": "nope", "student_id": "a"})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "not_found"

    def test_save_submit_and_results(self, client):
        """Fluxo completo: autosave, envio, resultado."""
        attempt = start(client)

        saved = client.put(
            f"/attempts/{attempt['id']}/answers",
            json={"question_id": "q-mcq", "answer_payload": {"selected_option_ids": ["o1"]}},
        )
        assert saved.status_code == 200
        assert saved.json()["answer_payload"]["kind"] == "selected_options"

        client.put(
            f"/attempts/{attempt['id']}/answers",
            json={"question_id": "q-num", "answer_payload": {"kind": "number", "value": 10.5}},
        )

        submitted = client.post(f"/attempts/{attempt['id']}/submit", json={"observed_duration_seconds": 42})
        assert submitted.status_code == 200
        assert submitted.json()["attempt"]["status"] == "submitted"
        assert submitted.json()["attempt"]["score"] == 3.0

        results = client.get(f"/attempts/{attempt['id']}/results")
        assert results.status_code == 200
        assert results.json()["summary"]["correct"] == 2

    def test_double_submit_conflict(self, client):
        """POST /submit duas vezes - 409."""
        attempt = start(client)

        assert client.post(f"/attempts/{attempt['id']}/submit").status_code == 200
        response = client.post(f"/attempts/{attempt['id']}/submit")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "invalid_state"

    def test_invalid_payload(self, client):
        """PUT /answers - Payload de outro tipo retorna 422."""
        attempt = start(client)

        response = client.put(
            f"/attempts/{attempt['id']}/answers",
            json={"question_id": "q-tf", "answer_payload": {"number": 1}},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "invalid_payload"

    def test_no_attempts_remaining(self, client):
        """POST /attempts/start - Após o limite retorna 403."""
        for _ in range(2):
            attempt = start(client)
            client.post(f"/attempts/{attempt['id']}/submit")

        response = client.post("/attempts/start", json={"quiz_id": "quiz-1", "student_id": "aluno-1"})

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "no_attempts_remaining"

    def test_results_forbidden_in_progress(self, client):
        """GET /results - Tentativa em andamento retorna 403."""
        attempt = start(client)

        response = client.get(f"/attempts/{attempt['id']}/results")

        assert response.status_code == 403


class TestGraderEndpoints:
    """Testes do fluxo do corretor via HTTP."""

    def _submitted_with_text(self, client):
        attempt = start(client)
        client.put(
            f"/attempts/{attempt['id']}/answers",
            json={"question_id": "q-text", "answer_payload": {"text": "Clorofila"}},
        )
        client.post(f"/attempts/{attempt['id']}/submit")
        answers = client.get(f"/attempts/{attempt['id']}/answers").json()["answers"]
        return attempt, answers[0]

    def test_grade_and_finalize(self, client):
        """Corrige short_text e finaliza."""
        attempt, answer = self._submitted_with_text(client)

        graded = client.post(f"/answers/{answer['id']}/grade", json={"points_awarded": 5, "comment": "Otimo"})
        assert graded.status_code == 200
        assert graded.json()["answer"]["points_awarded"] == 3.0
        assert graded.json()["warnings"]

        finalized = client.post(f"/attempts/{attempt['id']}/finalize")
        assert finalized.status_code == 200
        assert finalized.json()["attempt"]["status"] == "graded"
        assert finalized.json()["attempt"]["score"] == 3.0

    def test_bulk_grade_and_recalculate(self, client):
        """Lote + recálculo."""
        attempt, answer = self._submitted_with_text(client)

        bulk = client.post(
            "/answers/grade-bulk",
            json={"grades": [{"answer_id": answer["id"], "points_awarded": 1.5}]},
        )
        assert bulk.status_code == 200

        recalculated = client.post(f"/attempts/{attempt['id']}/recalculate")
        assert recalculated.status_code == 200
        assert recalculated.json()["score"] == 1.5

    def test_list_attempts(self, client):
        """GET /quizzes/{id}/attempts - Lista com estatísticas."""
        self._submitted_with_text(client)
        start(client, "aluno-2")

        response = client.get("/quizzes/quiz-1/attempts")

        assert response.status_code == 200
        data = response.json()
        assert len(data["attempts"]) == 2
        assert data["statistics"]["completed"] == 1

    def test_finalize_in_progress_conflict(self, client):
        """POST /finalize em tentativa em andamento - 409."""
        attempt = start(client)

        response = client.post(f"/attempts/{attempt['id']}/finalize")

        assert response.status_code == 409
