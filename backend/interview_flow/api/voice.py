from fastapi import APIRouter, Depends

from interview_flow.core.errors import NotFoundError
from interview_flow.dependencies import get_interruption_config
from interview_flow.interruption.config import InterruptionConfig
from interview_flow.session.registry import session_registry

router = APIRouter(prefix="/api/voice")


@router.get("/assistant-config")
def assistant_config(config: InterruptionConfig = Depends(get_interruption_config)):
    return {
        "success": True,
        "assistant": config.build_assistant_config(),
        "interruption": config.to_dict(),
    }


@router.get("/{session_id}/interruptions")
def interruption_metrics(session_id: str):
    call = session_registry.get(session_id)
    if call is None or call.interruption_controller is None:
        raise NotFoundError(f"No voice call recorded for session {session_id}")

    controller = call.interruption_controller
    return {
        "success": True,
        "sessionId": session_id,
        "active": call.active,
        "endReason": call.end_reason or None,
        "state": controller.state.value,
        "metrics": controller.metrics.snapshot(),
        "report": controller.metrics.report(),
    }
