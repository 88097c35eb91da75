"""
WebSocket Manager - pushes mind-map change events to connected clients.

Every engine change is announced as a small `mindmap_updated` event; clients
re-fetch GET /api/mindmap when they need the new state.
"""
import asyncio
import json
import logging
from typing import Optional

from fastapi import WebSocket

from mindmap_core.engine import OPERATION_KINDS

logger = logging.getLogger(__name__)

# Operations outside the engine's table that still change the document
_DOCUMENT_EVENTS = {"undo": "history", "redo": "history", "load": "document", "new": "document"}


def change_event(operation: Optional[str]) -> dict:
    """Build the broadcast payload for an engine operation name."""
    kind = OPERATION_KINDS.get(operation) or _DOCUMENT_EVENTS.get(operation)
    return {"type": "mindmap_updated", "operation": operation, "kind": kind}


class WebSocketManager:
    """Tracks open sockets and fans events out to them."""

    def __init__(self):
        self._clients: set[WebSocket] = set()
        self._lock = asyncio.Lock()

    @property
    def connection_count(self) -> int:
        return len(self._clients)

    async def connect(self, websocket: WebSocket):
        """Accept a socket and start sending it events."""
        await websocket.accept()
        async with self._lock:
            self._clients.add(websocket)
        logger.info("WebSocket connected (%d open)", len(self._clients))

    async def disconnect(self, websocket: WebSocket):
        async with self._lock:
            self._clients.discard(websocket)
        logger.info("WebSocket disconnected (%d open)", len(self._clients))

    async def _send(self, websocket: WebSocket, text: str) -> Optional[WebSocket]:
        try:
            await websocket.send_text(text)
        except Exception:
            logger.debug("Dropping WebSocket after failed send", exc_info=True)
            return websocket
        return None

    async def broadcast(self, message: dict):
        """
        Send message to every client concurrently.

        Clients whose send fails are removed.
        """
        async with self._lock:
            clients = list(self._clients)
        if not clients:
            return

        text = json.dumps(message)
        results = await asyncio.gather(*(self._send(ws, text) for ws in clients))

        dead = {ws for ws in results if ws is not None}
        if dead:
            async with self._lock:
                self._clients -= dead

    async def notify_mindmap_updated(self, operation: Optional[str] = None):
        await self.broadcast(change_event(operation))
