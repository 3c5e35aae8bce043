import json
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from interview_flow.core.errors import FlowError, TransportError
from interview_flow.core.logger import log_event
from interview_flow.dependencies import get_interruption_config, get_orchestrator
from interview_flow.flow.models import FlowState, QuestionGenerationRequest
from interview_flow.flow.orchestrator import FlowOrchestrator
from interview_flow.interruption import (
    InterruptionConfig,
    InterruptionController,
    TransportEvent,
    WebSocketVoiceTransport,
)
from interview_flow.session.registry import session_registry
from interview_flow.session_controller import SessionController
from interview_flow.system_metrics import decrement_metric, increment_metric

router = APIRouter()
logger = logging.getLogger("interview_flow.api.ws_voice")

_SEEDED_CATEGORIES = {"role", "technical", "problem-solving", "initial"}


def _opening_questions(state: FlowState) -> list[str]:
    """Questions still to be spoken when a call (re)joins a flow.

    A fresh flow speaks its seeded questions in order; once adaptive rounds
    exist only the latest question is repeated.
    """
    history = list(state.question_history)
    if not history:
        return []
    if all(record.category in _SEEDED_CATEGORIES for record in history):
        return [record.question for record in history]
    return [history[-1].question]


@router.websocket("/ws/voice/{session_id}")
async def voice_ws(
    websocket: WebSocket,
    session_id: str,
    orchestrator: FlowOrchestrator = Depends(get_orchestrator),
    config: InterruptionConfig = Depends(get_interruption_config),
):
    # ================= LIFECYCLE OWNER =================
    controller = SessionController(session_id)
    stop_event = controller.stop_event
    stop_reason = "other"

    await websocket.accept()

    def _log_event(event: str, **fields):
        log_event("ws_voice", event, session_id, **fields)

    try:
        state = await orchestrator.get_state(session_id)
    except FlowError as exc:
        logger.warning("flow state load failed | session_id=%s err=%s", session_id, exc)
        state = None
    if state is None:
        await websocket.send_text(json.dumps({"type": "error", "error": "Flow state not found"}))
        await websocket.close(code=1008)
        return

    transport = WebSocketVoiceTransport(websocket)

    async def request_stop(reason: str):
        nonlocal stop_reason
        if not stop_event.is_set():
            stop_reason = str(reason or "other")
            _log_event("stop_requested", reason=stop_reason)
            session_registry.touch(session_id)
            stop_event.set()

    # ================= ADAPTIVE TURNS =================
    async def run_adaptive_turn(transcript: str):
        async def _process(answer: str):
            return await orchestrator.generate_next_question(
                QuestionGenerationRequest(
                    session_id=session_id,
                    user_response=answer,
                    current_question=controller.current_question or "",
                )
            )

        try:
            question = await controller.process_turn(transcript, _process)
            if question is None:
                return
            controller.current_question = question
            await transport.say(question)
        except TransportError as exc:
            interruption.handle_transport_error(exc)
            await request_stop("transport_error")
        except FlowError as exc:
            logger.warning("adaptive turn failed | session_id=%s err=%s", session_id, exc)
            _log_event("turn_failed", error_type=exc.__class__.__name__)

    async def on_utterance(transcript: str):
        session_registry.touch(session_id)
        if controller.pending_initial_questions:
            # Seeded openings are not scored; only the answer to the last one starts a flow round.
            controller.current_question = controller.pending_initial_questions.pop(0)
            await transport.say(controller.current_question)
            return
        controller.create_task(run_adaptive_turn(transcript))

    async def on_interruption(delay_ms: float):
        _log_event("interrupted", delay_ms=round(delay_ms, 1), question_pending=bool(controller.current_question))

    interruption = InterruptionController(
        session_id=session_id,
        transport=transport,
        config=config,
        on_interruption=on_interruption,
        on_utterance=on_utterance,
    )
    session_registry.register(session_id, interruption_controller=interruption, call_controller=controller)
    increment_metric("voice_calls_active")
    increment_metric("voice_calls_total")
    _log_event("connect")

    # ================= RECEIVE =================
    async def receive_events():
        try:
            while not stop_event.is_set():
                raw = await websocket.receive_text()
                try:
                    payload = json.loads(raw)
                except ValueError:
                    logger.warning("invalid voice event json | session_id=%s", session_id)
                    continue
                if not isinstance(payload, dict):
                    continue

                session_registry.touch(session_id)
                try:
                    await interruption.handle_event(TransportEvent.from_payload(payload))
                except TransportError as exc:
                    interruption.handle_transport_error(exc)

                if interruption.terminated:
                    await request_stop(interruption.termination_reason)
                    return
        except WebSocketDisconnect:
            interruption.terminate(reason="client_disconnected")
            await request_stop("client_disconnected")
        except Exception as exc:
            interruption.handle_transport_error(exc)
            await request_stop("transport_error")

    opening = _opening_questions(state) if orchestrator.should_continue(state) else []
    if opening:
        controller.current_question = opening[0]
        controller.pending_initial_questions = opening[1:]
        try:
            await transport.say(controller.current_question)
        except TransportError as exc:
            interruption.handle_transport_error(exc)
            await request_stop("transport_error")

    # ================= RUN TASKS =================
    if not stop_event.is_set():
        controller.create_task(receive_events())

    try:
        _log_event("session_started", pending_questions=len(controller.pending_initial_questions))
        await stop_event.wait()
    finally:
        await controller.stop()
        if not interruption.terminated:
            interruption.terminate(reason=stop_reason)
        session_registry.mark_ended(session_id, stop_reason)
        decrement_metric("voice_calls_active")
        if websocket.client_state == WebSocketState.CONNECTED:
            try:
                await websocket.close()
            except Exception as exc:
                logger.warning("voice socket already closed | session_id=%s err=%s", session_id, exc)
        _log_event("session_stopped", reason=stop_reason, interruptions=interruption.metrics.total)
