import pytest
from fastapi.testclient import TestClient

from interview_flow.dependencies import get_orchestrator
from interview_flow.flow.orchestrator import CLOSING_MESSAGE, FlowOrchestrator
from interview_flow.main import app
from interview_flow.session.flow_state_store import LocalFlowStateStore


class _BrokenStore(LocalFlowStateStore):
    async def set(self, state):
        raise ConnectionError("redis://secret-host refused")


@pytest.fixture
def orchestrator(scripted_generator, make_analysis_json):
    generator = scripted_generator(analyses=[make_analysis_json(overall=8, suggested=6, keywords=["pydantic"])])
    return FlowOrchestrator(generator, LocalFlowStateStore())


@pytest.fixture
def client(orchestrator):
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _initialize(client, session_id: str, total: int = 10, stack=("Python", "FastAPI")):
    return client.post(
        "/api/adaptive-flow/initialize",
        json={
            "sessionId": session_id,
            "role": "Backend Engineer",
            "techStack": list(stack) if not isinstance(stack, str) else stack,
            "baseDifficulty": 5,
            "totalQuestions": total,
        },
    )


def test_initialize_returns_state_and_questions(client):
    response = _initialize(client, "http-1")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["initialQuestions"] == ["Q1 role?", "Q2 tech?", "Q3 solve?"]
    assert body["flowState"]["questionsAsked"] == 3
    assert body["flowState"]["techStack"] == ["Python", "FastAPI"]
    assert body["message"]


def test_initialize_accepts_single_stack_string_and_default_total(client):
    response = client.post(
        "/api/adaptive-flow/initialize",
        json={"sessionId": "http-2", "role": "SRE", "techStack": "Kubernetes", "baseDifficulty": 3},
    )

    assert response.status_code == 200
    state = response.json()["flowState"]
    assert state["techStack"] == ["Kubernetes"]
    assert state["totalQuestions"] == 10


@pytest.mark.parametrize(
    "payload",
    [
        {"role": "Backend", "techStack": [], "baseDifficulty": 5},
        {"sessionId": "x", "role": "Backend", "techStack": [], "baseDifficulty": 12},
        {"sessionId": "x", "role": "", "techStack": [], "baseDifficulty": 5},
        {"sessionId": "x", "role": "Backend", "techStack": [], "baseDifficulty": "hard"},
    ],
)
def test_initialize_validation_errors_are_400(client, payload):
    response = client.post("/api/adaptive-flow/initialize", json=payload)

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"]


def test_next_question_happy_path(client):
    _initialize(client, "http-3")

    response = client.post(
        "/api/adaptive-flow/next-question",
        json={"sessionId": "http-3", "userResponse": "I use pydantic models", "currentQuestion": "Q3 solve?"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["shouldContinue"] is True
    assert body["nextQuestion"] == "What would you change next time?"
    assert body["questionsRemaining"] == 6
    assert body["flowState"]["mvpKeywords"] == ["pydantic"]
    assert body["flowState"]["lastAnalysis"]["overallScore"] == 8
    assert "summary" not in body


def test_next_question_final_round_returns_summary(client):
    _initialize(client, "http-4", total=4)

    final = client.post(
        "/api/adaptive-flow/next-question",
        json={"sessionId": "http-4", "userResponse": "answer", "currentQuestion": "Q3 solve?"},
    ).json()
    assert final["shouldContinue"] is False
    assert final["nextQuestion"] == CLOSING_MESSAGE
    assert final["questionsRemaining"] == 0
    assert final["summary"].startswith("Interview Summary:")

    again = client.post(
        "/api/adaptive-flow/next-question",
        json={"sessionId": "http-4", "userResponse": "answer", "currentQuestion": CLOSING_MESSAGE},
    ).json()
    assert again == {"success": True, "shouldContinue": False, "summary": final["summary"]}


def test_next_question_unknown_session_is_404(client):
    response = client.post(
        "/api/adaptive-flow/next-question",
        json={"sessionId": "missing", "userResponse": "answer", "currentQuestion": "Q?"},
    )

    assert response.status_code == 404
    assert response.json()["success"] is False


def test_next_question_blank_answer_is_400(client):
    _initialize(client, "http-5")
    response = client.post(
        "/api/adaptive-flow/next-question",
        json={"sessionId": "http-5", "userResponse": "", "currentQuestion": "Q?"},
    )

    assert response.status_code == 400


def test_status_get_and_delete(client):
    _initialize(client, "http-6")

    status = client.get("/api/adaptive-flow/status", params={"sessionId": "http-6"})
    assert status.status_code == 200
    body = status.json()
    assert body["shouldContinue"] is True
    assert body["flowState"]["sessionId"] == "http-6"
    assert "- Questions Asked: 3/10" in body["summary"]

    removed = client.delete("/api/adaptive-flow/status", params={"sessionId": "http-6"})
    assert removed.json()["removed"] is True
    assert client.get("/api/adaptive-flow/status", params={"sessionId": "http-6"}).status_code == 404


def test_status_requires_session_id(client):
    assert client.get("/api/adaptive-flow/status").status_code == 400
    assert client.delete("/api/adaptive-flow/status").status_code == 400


def test_analyze_response(client):
    response = client.post(
        "/api/adaptive-flow/analyze-response",
        json={"userResponse": "pydantic validates input", "currentQuestion": "How?", "role": "Backend"},
    )

    assert response.status_code == 200
    analysis = response.json()["analysis"]
    assert analysis["overallScore"] == 8
    assert analysis["mvpKeywords"] == ["pydantic"]


def test_feedback_scores_transcript_with_flow_summary(client, orchestrator):
    _initialize(client, "http-9")

    response = client.post(
        "/api/adaptive-flow/feedback",
        json={
            "sessionId": "http-9",
            "transcript": [
                {"role": "assistant", "content": "Q1 role?"},
                {"role": "user", "content": "I build FastAPI services."},
            ],
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["feedback"]["totalScore"] == 72
    assert body["feedback"]["categoryScores"][0]["name"] == "Communication Skills"
    assert body["summary"].startswith("Interview Summary:")

    prompt = orchestrator.generator.prompts[-1]
    assert "- user: I build FastAPI services." in prompt
    assert "- Questions Asked: 3/10" in prompt


def test_feedback_requires_known_session_and_transcript(client):
    _initialize(client, "http-10")
    line = {"role": "user", "content": "answer"}

    missing = client.post("/api/adaptive-flow/feedback", json={"sessionId": "nobody", "transcript": [line]})
    empty = client.post("/api/adaptive-flow/feedback", json={"sessionId": "http-10", "transcript": []})
    blank = client.post(
        "/api/adaptive-flow/feedback",
        json={"sessionId": "http-10", "transcript": [{"role": "user", "content": "  "}]},
    )

    assert missing.status_code == 404
    assert empty.status_code == 400
    assert blank.status_code == 400
    assert blank.json()["success"] is False

def test_persistence_failure_hides_store_details(scripted_generator):
    app.dependency_overrides[get_orchestrator] = lambda: FlowOrchestrator(scripted_generator(), _BrokenStore())
    try:
        with TestClient(app) as client:
            response = _initialize(client, "http-7")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Failed to persist flow state"}


def test_health_and_metrics(client):
    _initialize(client, "http-8")

    assert client.get("/healthz").json()["status"] == "ok"
    metrics = client.get("/api/system/metrics").json()
    assert metrics["flow_sessions_initialized"] == 1
    assert "avg_interruption_delay_ms" in metrics


def test_assistant_config(client):
    body = client.get("/api/voice/assistant-config").json()

    assert body["assistant"]["transcriber"]["provider"] == "deepgram"
    assert body["assistant"]["voice"]["optimizeStreamingLatency"] == 4
    assert body["interruption"]["max_interruption_delay_ms"] == 200
