from dataclasses import asdict, dataclass

from interview_flow.core.config import MAX_INTERRUPTION_DELAY_MS, SPEECH_CANCELLATION_TIMEOUT_MS

# Short utterances that usually mean "let me talk".
INTERRUPTION_KEYWORDS = [
    "hello", "hi", "yes", "no", "okay", "wait", "stop", "excuse me",
    "sorry", "actually", "well", "um", "uh", "but", "however",
]


@dataclass
class InterruptionConfig:
    # Voice activity detection
    vad_sensitivity: float = 0.8
    silence_threshold_ms: int = 150
    speech_start_threshold: float = 0.1

    # Interruption timing
    max_interruption_delay_ms: float = MAX_INTERRUPTION_DELAY_MS
    speech_cancellation_timeout_ms: float = SPEECH_CANCELLATION_TIMEOUT_MS

    enable_logging: bool = True
    enable_metrics: bool = True

    def to_dict(self) -> dict:
        return asdict(self)

    def transcriber_settings(self) -> dict:
        """Transcriber tuned for fast barge-in detection."""
        return {
            "provider": "deepgram",
            "model": "nova-2",
            "language": "en",
            "keywords": list(INTERRUPTION_KEYWORDS),
            # Shorter endpointing means faster speech-end detection.
            "endpointing": self.silence_threshold_ms,
        }

    def voice_settings(self) -> dict:
        """Streaming voice settings; streamed audio cancels faster."""
        return {
            "provider": "11labs",
            "voiceId": "sarah",
            "stability": 0.4,
            "similarityBoost": 0.8,
            "speed": 1.1,
            "style": 0.5,
            "useSpeakerBoost": True,
            "optimizeStreamingLatency": 4,
        }

    def build_assistant_config(self, base: dict | None = None) -> dict:
        base = dict(base or {})
        return {
            **base,
            "transcriber": {**dict(base.get("transcriber") or {}), **self.transcriber_settings()},
            "voice": {**dict(base.get("voice") or {}), **self.voice_settings()},
        }
