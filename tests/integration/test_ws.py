"""End-to-end WebSocket tests through the FastAPI route."""
from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from pong_chat.app import create_app
from pong_chat.infrastructure.ws.manager import ConnectionManager
from pong_chat.infrastructure.ws.presence import PresenceRegistry
from pong_chat.infrastructure.ws.relay import RelayHandler
from tests.conftest import FakeDirectory, FakeUoW, StepClock, uow_factory_for


@pytest.fixture
def directory() -> FakeDirectory:
    return FakeDirectory(users={"u1": "Alice", "u2": "Bob"})


@pytest.fixture
def uow() -> FakeUoW:
    return FakeUoW()


@pytest.fixture
def client(directory, uow):
    app = create_app()
    app.state.relay = RelayHandler(
        ConnectionManager(),
        PresenceRegistry(),
        directory,
        uow_factory_for(uow),
        clock=StepClock(),
    )
    return TestClient(app)


def _send(ws, event_type: str, data: dict | None = None) -> None:
    ws.send_text(json.dumps({"type": event_type, "data": data or {}}))


def _identify(ws, user_id: str) -> dict:
    _send(ws, "identify", {"userId": user_id})
    reply = ws.receive_json()
    if reply["type"] == "identify-success":
        online = ws.receive_json()
        assert online["type"] == "online-users"
    return reply


def test_identify_and_ping(client, directory):
    with client.websocket_connect("/ws/chat?token=abc") as ws:
        reply = _identify(ws, "u1")
        _send(ws, "ping")

        assert reply == {"type": "identify-success", "data": {"userId": "u1", "displayName": "Alice"}}
        assert ws.receive_json() == {"type": "pong", "data": {}}
    assert directory.calls == [("u1", "Bearer abc")]


def test_unknown_user_can_retry(client):
    with client.websocket_connect("/ws/chat") as ws:
        assert _identify(ws, "ghost") == {"type": "identify-error", "data": {"error": "User not found"}}
        assert _identify(ws, "u1")["type"] == "identify-success"


def test_message_between_two_sockets(client, uow):
    with client.websocket_connect("/ws/chat") as alice, client.websocket_connect("/ws/chat") as bob:
        _identify(alice, "u1")
        _identify(bob, "u2")
        assert alice.receive_json() == {"type": "online-users", "data": {"userIds": ["u1", "u2"]}}

        _send(alice, "send-message", {"senderId": "u1", "receiverId": "u2", "content": "gg"})

        delivered = bob.receive_json()
        confirmed = alice.receive_json()
        assert delivered["type"] == "new-message"
        assert confirmed["type"] == "send-confirmed"
        assert delivered["data"]["content"] == "gg"
        assert delivered["data"]["senderName"] == "Alice"
        assert delivered["data"]["id"] == confirmed["data"]["id"]

    assert [m.content for m in uow.messages._messages] == ["gg"]


def test_disconnect_updates_online_users(client):
    with client.websocket_connect("/ws/chat") as alice:
        _identify(alice, "u1")
        with client.websocket_connect("/ws/chat") as bob:
            _identify(bob, "u2")
            assert alice.receive_json()["data"] == {"userIds": ["u1", "u2"]}

        assert alice.receive_json() == {"type": "online-users", "data": {"userIds": ["u1"]}}


def test_malformed_frame_keeps_connection_open(client):
    with client.websocket_connect("/ws/chat") as ws:
        ws.send_text("{broken")
        assert ws.receive_json() == {"type": "error", "data": {"code": "invalid_payload"}}

        _send(ws, "get-online-users")
        assert ws.receive_json() == {"type": "online-users", "data": {"userIds": []}}


def test_binary_frames_are_parsed_like_text(client):
    with client.websocket_connect("/ws/chat") as ws:
        _identify(ws, "u1")

        ws.send_bytes(b'{"type":"ping","data":{}}')
        assert ws.receive_json() == {"type": "pong", "data": {}}

        ws.send_bytes(b"\xff\xfe not json")
        assert ws.receive_json() == {"type": "error", "data": {"code": "invalid_payload"}}

        _send(ws, "get-online-users")
        assert ws.receive_json() == {"type": "online-users", "data": {"userIds": ["u1"]}}
