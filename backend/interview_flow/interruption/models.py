from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SpeakerState(str, Enum):
    IDLE = "idle"
    AI_SPEAKING = "ai_speaking"
    USER_SPEAKING = "user_speaking"


class EventType(str, Enum):
    CALL_START = "call-start"
    CALL_END = "call-end"
    SPEECH_START = "speech-start"
    SPEECH_END = "speech-end"
    TRANSCRIPT = "transcript"
    USER_INTERRUPTED = "user-interrupted"
    VOICE_INPUT = "voice-input"
    SPEECH_UPDATE = "speech-update"
    ERROR = "error"
    UNKNOWN = "unknown"


ASSISTANT = "assistant"
USER = "user"


@dataclass(frozen=True)
class TransportEvent:
    """
    One event emitted by the voice transport.
    Unknown event types are kept as UNKNOWN and ignored by the controller.
    """
    type: EventType
    role: Optional[str] = None
    transcript_type: Optional[str] = None
    transcript: str = ""
    status: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict) -> "TransportEvent":
        raw_type = str((payload or {}).get("type") or "").strip().lower()
        try:
            event_type = EventType(raw_type)
        except ValueError:
            event_type = EventType.UNKNOWN

        error = payload.get("error")
        if isinstance(error, dict):
            error = error.get("message") or str(error)

        return cls(
            type=event_type,
            role=(str(payload.get("role")).strip().lower() if payload.get("role") else None),
            transcript_type=(
                str(payload.get("transcriptType")).strip().lower() if payload.get("transcriptType") else None
            ),
            transcript=str(payload.get("transcript") or ""),
            status=(str(payload.get("status")).strip().lower() if payload.get("status") else None),
            error=str(error) if error else None,
        )

    @property
    def is_user_partial(self) -> bool:
        return (
            self.type == EventType.TRANSCRIPT
            and self.role == USER
            and self.transcript_type == "partial"
            and bool(self.transcript.strip())
        )

    @property
    def is_user_final(self) -> bool:
        return self.type == EventType.TRANSCRIPT and self.role == USER and self.transcript_type == "final"

    @property
    def is_interruption_signal(self) -> bool:
        if self.is_user_partial:
            return True
        if self.type in (EventType.USER_INTERRUPTED, EventType.VOICE_INPUT):
            return True
        return self.type == EventType.SPEECH_UPDATE and self.role == USER and self.status == "started"
