"""
FastAPI websocket adapter for the replication layer.
"""

from __future__ import annotations

import json
from typing import Any, Dict

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from banker.exceptions import ConnectionClosed
from banker.transport import Connection


class WebSocketConnection(Connection):
    """Wraps an accepted websocket as a peer connection."""

    def __init__(self, websocket: WebSocket):
        super().__init__()
        self.websocket = websocket

    async def send(self, message: Dict[str, Any]) -> None:
        if self.websocket.application_state != WebSocketState.CONNECTED:
            raise ConnectionClosed(f"{self.connection_id} is closed")
        try:
            await self.websocket.send_json(message)
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            raise ConnectionClosed(f"{self.connection_id} is closed") from e

    async def receive(self) -> Any:
        try:
            message = await self.websocket.receive()
        except (WebSocketDisconnect, RuntimeError) as e:
            raise ConnectionClosed(f"{self.connection_id} is closed") from e
        if message["type"] == "websocket.disconnect":
            raise ConnectionClosed(f"{self.connection_id} disconnected ({message.get('code')})")

        text = message.get("text")
        if text is None:
            # Binary frames are left to the protocol layer to reject
            return message.get("bytes")
        try:
            return json.loads(text)
        except ValueError:
            # Left to the protocol layer to reject
            return text

    async def close(self) -> None:
        if self.websocket.application_state == WebSocketState.CONNECTED:
            await self.websocket.close()
