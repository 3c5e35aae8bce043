import pytest

from interview_flow.flow.models import FlowState, QuestionRecord, ResponseAnalysis
from interview_flow.session import flow_state_store
from interview_flow.session.flow_state_store import LocalFlowStateStore, build_flow_state_store


def _state() -> FlowState:
    return FlowState(
        session_id="store-1",
        role="Backend",
        tech_stack=("Python", "Postgres"),
        base_difficulty=5,
        current_difficulty=6,
        total_questions=10,
        consecutive_correct=1,
        questions_asked=4,
        mvp_keywords=("indexes",),
        question_history=(QuestionRecord(question="Q?", timestamp="2024-01-01T00:00:00+00:00", difficulty=5),),
        last_analysis=ResponseAnalysis(overall_score=8, suggested_next_difficulty=6, reasoning="solid"),
    )


@pytest.mark.asyncio
async def test_local_store_get_set_delete():
    store = LocalFlowStateStore()
    state = _state()

    assert await store.get("store-1") is None
    await store.set(state)
    assert await store.get("store-1") == state

    assert await store.delete("store-1") is True
    assert await store.delete("store-1") is False
    assert await store.get("store-1") is None


@pytest.mark.asyncio
async def test_local_store_set_replaces_whole_document():
    store = LocalFlowStateStore()
    state = _state()
    await store.set(state)

    await store.set(state.evolve(mvp_keywords=(), last_analysis=None))

    stored = await store.get("store-1")
    assert stored.mvp_keywords == ()
    assert stored.last_analysis is None
    assert "lastAnalysis" not in stored.to_dict()


def test_wire_format_uses_camel_case_keys():
    payload = _state().to_dict()

    assert payload["sessionId"] == "store-1"
    assert payload["techStack"] == ["Python", "Postgres"]
    assert payload["questionHistory"][0]["category"] == "adaptive"
    assert payload["lastAnalysis"]["overallScore"] == 8


def test_build_store_defaults_to_local(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(flow_state_store, "USE_REDIS_FLOW_STATE", False)
    assert isinstance(build_flow_state_store(), LocalFlowStateStore)


def test_build_store_requires_redis_url(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(flow_state_store, "USE_REDIS_FLOW_STATE", True)
    monkeypatch.setattr(flow_state_store, "REDIS_URL", "")

    with pytest.raises(RuntimeError):
        build_flow_state_store()
