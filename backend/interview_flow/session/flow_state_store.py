from __future__ import annotations

import asyncio
import json
import logging
from typing import Protocol

from interview_flow.core.config import REDIS_URL, USE_REDIS_FLOW_STATE
from interview_flow.flow.models import FlowState

logger = logging.getLogger("interview_flow.session.flow_state_store")


class FlowStateStore(Protocol):
    async def get(self, session_id: str) -> FlowState | None:
        ...

    async def set(self, state: FlowState) -> None:
        ...

    async def delete(self, session_id: str) -> bool:
        ...


class LocalFlowStateStore:
    """In-process store. Keeps serialized documents so callers never share objects."""

    def __init__(self):
        self._lock = asyncio.Lock()
        self._documents: dict[str, str] = {}

    async def get(self, session_id: str) -> FlowState | None:
        if not session_id:
            return None
        async with self._lock:
            document = self._documents.get(session_id)
        if document is None:
            return None
        return FlowState.from_dict(json.loads(document))

    async def set(self, state: FlowState) -> None:
        document = json.dumps(state.to_dict())
        async with self._lock:
            self._documents[state.session_id] = document

    async def delete(self, session_id: str) -> bool:
        async with self._lock:
            return self._documents.pop(session_id, None) is not None


class RedisFlowStateStore:
    """Redis-backed flow state.

    Keys:
    - flow:{session_id}:state (string, full JSON document)
    """

    def __init__(self, redis_url: str):
        try:
            import redis.asyncio as redis_async  # type: ignore
        except Exception as exc:
            raise RuntimeError("redis package not installed; install 'redis' to enable distributed flow state") from exc

        self._redis = redis_async.from_url(redis_url, decode_responses=True)

    @staticmethod
    def _state_key(session_id: str) -> str:
        return f"flow:{session_id}:state"

    async def get(self, session_id: str) -> FlowState | None:
        if not session_id:
            return None
        document = await self._redis.get(self._state_key(session_id))
        if not document:
            return None
        return FlowState.from_dict(json.loads(document))

    async def set(self, state: FlowState) -> None:
        # SET replaces the whole document atomically.
        await self._redis.set(self._state_key(state.session_id), json.dumps(state.to_dict()))

    async def delete(self, session_id: str) -> bool:
        removed = await self._redis.delete(self._state_key(session_id))
        return bool(removed)


def build_flow_state_store() -> FlowStateStore:
    if not USE_REDIS_FLOW_STATE:
        return LocalFlowStateStore()

    if not REDIS_URL:
        raise RuntimeError("USE_REDIS_FLOW_STATE=true requires REDIS_URL")
    logger.info("Using Redis flow state store")
    return RedisFlowStateStore(REDIS_URL)
