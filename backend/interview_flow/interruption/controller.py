from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from interview_flow.core.logger import log_event
from interview_flow.interruption.config import InterruptionConfig
from interview_flow.interruption.metrics import MetricsRecorder
from interview_flow.interruption.models import ASSISTANT, EventType, SpeakerState, TransportEvent
from interview_flow.interruption.transport import VoiceTransport
from interview_flow.system_metrics import increment_metric, observe_interruption_delay_ms

logger = logging.getLogger("interview_flow.interruption.controller")

InterruptionCallback = Callable[[float], Awaitable[None]]
UtteranceCallback = Callable[[str], Awaitable[None]]


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class InterruptionController:
    """
    Turn-taking state machine for ONE live call.

    IDLE --speech-start(assistant)--> AI_SPEAKING
    AI_SPEAKING --speech-end(assistant)--> IDLE
    AI_SPEAKING --user activity--> USER_SPEAKING   (barge-in: delay recorded, AI speech cancelled)
    USER_SPEAKING --final user transcript--> IDLE

    Transitions are synchronous; only the cancellation command and the
    callbacks are awaited.
    """

    def __init__(
        self,
        session_id: str,
        transport: VoiceTransport,
        config: InterruptionConfig | None = None,
        on_interruption: InterruptionCallback | None = None,
        on_utterance: UtteranceCallback | None = None,
        clock: Callable[[], float] = _monotonic_ms,
    ):
        self.session_id = session_id
        self.transport = transport
        self.config = config or InterruptionConfig()
        self.on_interruption = on_interruption
        self.on_utterance = on_utterance
        self.clock = clock
        self.metrics = MetricsRecorder(
            max_interruption_delay_ms=self.config.max_interruption_delay_ms,
            enable_logging=self.config.enable_logging,
        )
        self.state = SpeakerState.IDLE
        self.ai_speech_start_time: Optional[float] = None
        self.terminated = False
        self.termination_reason = ""

    # -------------------------
    # LIFECYCLE
    # -------------------------

    def reset(self) -> None:
        self.state = SpeakerState.IDLE
        self.ai_speech_start_time = None
        self.terminated = False
        self.termination_reason = ""
        self.metrics.reset()

    def terminate(self, reason: str = "call_ended") -> None:
        self.state = SpeakerState.IDLE
        self.ai_speech_start_time = None
        self.terminated = True
        self.termination_reason = reason
        log_event("interruption", "terminated", self.session_id, reason=reason)

    def handle_transport_error(self, exc: BaseException | str) -> None:
        """Voice session died mid-call. Never raises."""
        increment_metric("transport_errors")
        logger.warning("voice transport failure | session_id=%s err=%s", self.session_id, exc)
        self.terminate(reason="transport_error")

    def is_acceptable_delay(self, delay: float) -> bool:
        return self.metrics.is_acceptable(delay)

    # -------------------------
    # DISPATCH
    # -------------------------

    async def handle_event(self, event: TransportEvent) -> SpeakerState:
        if event.type == EventType.CALL_START:
            self.reset()
            log_event("interruption", "call_started", self.session_id)
            return self.state

        if self.terminated:
            return self.state

        if event.type == EventType.CALL_END:
            self.terminate(reason="call_ended")
            return self.state

        if event.type == EventType.ERROR:
            self.handle_transport_error(event.error or "transport reported error")
            return self.state

        if event.type == EventType.SPEECH_START and event.role == ASSISTANT:
            self.state = SpeakerState.AI_SPEAKING
            self.ai_speech_start_time = self.clock()
            return self.state

        if event.type == EventType.SPEECH_END and event.role == ASSISTANT:
            if self.state == SpeakerState.AI_SPEAKING:
                self.state = SpeakerState.IDLE
            self.ai_speech_start_time = None
            return self.state

        if event.is_user_final:
            if self.state == SpeakerState.USER_SPEAKING:
                self.state = SpeakerState.IDLE
            if self.on_utterance is not None and event.transcript.strip():
                await self.on_utterance(event.transcript.strip())
            return self.state

        if event.is_interruption_signal:
            delay = self._begin_interruption()
            if delay is not None:
                await self._cancel_ai_speech()
                if self.on_interruption is not None:
                    await self.on_interruption(delay)
            return self.state

        return self.state

    # -------------------------
    # INTERRUPTION
    # -------------------------

    def _begin_interruption(self) -> Optional[float]:
        if self.state != SpeakerState.AI_SPEAKING or self.ai_speech_start_time is None:
            return None

        now = self.clock()
        delay = max(0.0, now - self.ai_speech_start_time)
        self.state = SpeakerState.USER_SPEAKING
        self.ai_speech_start_time = None

        within_target = self.metrics.is_acceptable(delay)
        if self.config.enable_metrics:
            self.metrics.record(delay, at=now)
            observe_interruption_delay_ms(delay, within_target)
        log_event(
            "interruption",
            "barge_in",
            self.session_id,
            delay_ms=round(delay, 1),
            within_target=within_target,
        )
        return delay

    async def _cancel_ai_speech(self) -> None:
        timeout_sec = max(0.001, float(self.config.speech_cancellation_timeout_ms) / 1000.0)
        try:
            await asyncio.wait_for(self.transport.stop_speaking(), timeout=timeout_sec)
        except asyncio.TimeoutError:
            self.metrics.record_failed_cancellation("timeout")
            increment_metric("cancellations_failed")
            return
        except Exception as exc:
            self.metrics.record_failed_cancellation(str(exc))
            increment_metric("cancellations_failed")
            return
        self.metrics.record_successful_cancellation()
        increment_metric("cancellations_succeeded")
