import json

import pytest
from fastapi.testclient import TestClient

from interview_flow.dependencies import get_orchestrator
from interview_flow.flow.orchestrator import CLOSING_MESSAGE, FlowOrchestrator
from interview_flow.main import app
from interview_flow.session.flow_state_store import LocalFlowStateStore
from interview_flow.system_metrics import get_metrics_snapshot


@pytest.fixture
def client(scripted_generator):
    orchestrator = FlowOrchestrator(scripted_generator(), LocalFlowStateStore())
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _send(ws, **payload):
    ws.send_text(json.dumps(payload))


def _final(ws, text: str):
    _send(ws, type="transcript", role="user", transcriptType="final", transcript=text)


def test_voice_call_walks_flow_and_handles_barge_in(client):
    client.post(
        "/api/adaptive-flow/initialize",
        json={"sessionId": "ws-1", "role": "Backend", "techStack": ["Python"], "baseDifficulty": 5, "totalQuestions": 4},
    )

    with client.websocket_connect("/ws/voice/ws-1") as ws:
        assert ws.receive_json() == {"type": "say", "text": "Q1 role?"}

        _send(ws, type="call-start")
        _send(ws, type="speech-start", role="assistant")
        _send(ws, type="transcript", role="user", transcriptType="partial", transcript="wait")
        assert ws.receive_json() == {"type": "stop-speaking"}
        assert ws.receive_json()["type"] == "add-message"

        _final(ws, "first answer")
        assert ws.receive_json() == {"type": "say", "text": "Q2 tech?"}
        _final(ws, "second answer")
        assert ws.receive_json() == {"type": "say", "text": "Q3 solve?"}
        _final(ws, "third answer")
        assert ws.receive_json() == {"type": "say", "text": CLOSING_MESSAGE}

        _send(ws, type="call-end")

    status = client.get("/api/adaptive-flow/status", params={"sessionId": "ws-1"}).json()
    assert status["shouldContinue"] is False
    assert status["flowState"]["questionsAsked"] == 4
    assert get_metrics_snapshot()["flow_rounds_completed"] == 1

    report = client.get("/api/voice/ws-1/interruptions").json()
    assert report["active"] is False
    assert report["metrics"]["totalInterruptions"] == 1
    assert "Interruption Performance Report" in report["report"]
    assert get_metrics_snapshot()["voice_calls_total"] == 1


def test_voice_call_without_flow_state_is_rejected(client):
    with client.websocket_connect("/ws/voice/ws-missing") as ws:
        assert ws.receive_json() == {"type": "error", "error": "Flow state not found"}


def test_unknown_call_has_no_interruption_report(client):
    response = client.get("/api/voice/never-connected/interruptions")

    assert response.status_code == 404
    assert response.json()["success"] is False
