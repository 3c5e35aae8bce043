from __future__ import annotations

import time
from dataclasses import dataclass, field
from threading import Lock
from typing import Any


@dataclass
class LiveCall:
    session_id: str
    interruption_controller: Any
    call_controller: Any
    started_at: float = field(default_factory=time.time)
    last_event_at: float = field(default_factory=time.time)
    active: bool = True
    end_reason: str = ""


class SessionRegistry:
    """Live voice calls known to this process. Never persisted."""

    def __init__(self):
        self._lock = Lock()
        self._calls: dict[str, LiveCall] = {}

    def register(self, session_id: str, interruption_controller, call_controller) -> LiveCall:
        call = LiveCall(
            session_id=session_id,
            interruption_controller=interruption_controller,
            call_controller=call_controller,
        )
        with self._lock:
            self._calls[session_id] = call
        return call

    def touch(self, session_id: str) -> None:
        with self._lock:
            call = self._calls.get(session_id)
            if call is not None:
                call.last_event_at = time.time()

    def mark_ended(self, session_id: str, reason: str = "") -> None:
        with self._lock:
            call = self._calls.get(session_id)
            if call is not None:
                call.active = False
                call.end_reason = str(reason or "")
                call.last_event_at = time.time()

    def get(self, session_id: str) -> LiveCall | None:
        with self._lock:
            return self._calls.get(session_id)

    def active_count(self) -> int:
        with self._lock:
            return sum(1 for call in self._calls.values() if call.active)

    def cleanup_ended(self, ttl_sec: float) -> int:
        """Drop ended calls idle for longer than ttl_sec (floored at 30s)."""
        cutoff = time.time() - max(30.0, float(ttl_sec or 900.0))
        with self._lock:
            stale = [
                session_id
                for session_id, call in self._calls.items()
                if not call.active and call.last_event_at <= cutoff
            ]
            for session_id in stale:
                self._calls.pop(session_id, None)
        return len(stale)


session_registry = SessionRegistry()
