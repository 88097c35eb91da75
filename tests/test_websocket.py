"""Tests for change broadcasting over WebSockets."""

import asyncio
import json

from fastapi.testclient import TestClient

from mindmap_backend import MindMapManager, WebSocketManager
from mindmap_backend.main import create_app
from mindmap_backend.websocket_manager import change_event


class FakeSocket:
    def __init__(self, fail=False):
        self.fail = fail
        self.accepted = False
        self.sent = []

    async def accept(self):
        self.accepted = True

    async def send_text(self, text):
        if self.fail:
            raise RuntimeError("closed")
        self.sent.append(json.loads(text))


def test_change_event_kinds():
    assert change_event("create_node")["kind"] == "significant"
    assert change_event("zoom_in")["kind"] == "transient"
    assert change_event("undo")["kind"] == "history"
    assert change_event("load") == {"type": "mindmap_updated", "operation": "load", "kind": "document"}


def test_broadcast_reaches_clients_and_drops_failures():
    manager = WebSocketManager()
    good, bad = FakeSocket(), FakeSocket(fail=True)

    async def scenario():
        await manager.connect(good)
        await manager.connect(bad)
        await manager.notify_mindmap_updated("rename_node")

    asyncio.run(scenario())

    assert good.accepted
    assert good.sent == [{"type": "mindmap_updated", "operation": "rename_node", "kind": "significant"}]
    assert manager.connection_count == 1


def test_broadcast_without_clients_is_noop():
    asyncio.run(WebSocketManager().broadcast({"type": "mindmap_updated"}))


def test_ping_pong(tmp_path):
    client = TestClient(create_app(MindMapManager(storage_path=tmp_path / "m.json")))

    with client.websocket_connect("/ws") as websocket:
        websocket.send_text("ping")
        assert websocket.receive_json() == {"type": "pong"}
