from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager


class SessionLockRegistry:
    """One asyncio.Lock per session id.

    Callers for the same session queue behind each other; different
    sessions never contend.
    """

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    def is_locked(self, session_id: str) -> bool:
        lock = self._locks.get(session_id)
        return bool(lock and lock.locked())

    def active_sessions(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, session_id: str):
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._waiters[session_id] = self._waiters.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._waiters.get(session_id, 1) - 1
            if remaining <= 0:
                self._waiters.pop(session_id, None)
                self._locks.pop(session_id, None)
            else:
                self._waiters[session_id] = remaining
