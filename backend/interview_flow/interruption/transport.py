from __future__ import annotations

import json
from typing import Awaitable, Callable, Protocol

from starlette.websockets import WebSocket, WebSocketState

from interview_flow.core.errors import TransportError

STOP_NOW_MESSAGE = "User is speaking - stop current response immediately"


class VoiceTransport(Protocol):
    async def stop_speaking(self) -> None:
        ...

    async def send_system_message(self, content: str) -> None:
        ...

    async def say(self, text: str) -> None:
        ...


SendFn = Callable[[str], Awaitable[None]]


class WebSocketVoiceTransport:
    """
    Voice transport commands sent as JSON over the call's WebSocket.
    The client-side voice bridge executes them against the voice SDK.
    """

    def __init__(self, websocket: WebSocket, send_fn: SendFn | None = None):
        self.websocket = websocket
        self._send_fn = send_fn or websocket.send_text

    async def _send(self, payload: dict) -> None:
        if self.websocket.client_state != WebSocketState.CONNECTED:
            raise TransportError("voice socket is not connected")
        try:
            await self._send_fn(json.dumps(payload))
        except Exception as exc:
            raise TransportError(f"voice command send failed: {exc}") from exc

    async def stop_speaking(self) -> None:
        await self._send({"type": "stop-speaking"})
        await self.send_system_message(STOP_NOW_MESSAGE)

    async def send_system_message(self, content: str) -> None:
        await self._send({
            "type": "add-message",
            "message": {"role": "system", "content": content},
        })

    async def say(self, text: str) -> None:
        await self._send({"type": "say", "text": text})
