from interview_flow.interruption.config import InterruptionConfig
from interview_flow.interruption.controller import InterruptionController
from interview_flow.interruption.metrics import MetricsRecorder
from interview_flow.interruption.models import EventType, SpeakerState, TransportEvent
from interview_flow.interruption.transport import VoiceTransport, WebSocketVoiceTransport

__all__ = [
    "EventType",
    "InterruptionConfig",
    "InterruptionController",
    "MetricsRecorder",
    "SpeakerState",
    "TransportEvent",
    "VoiceTransport",
    "WebSocketVoiceTransport",
]
