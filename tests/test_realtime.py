from __future__ import annotations

import asyncio
from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient
from starlette.websockets import WebSocketDisconnect, WebSocketState

from taskshare.app.core.config import get_settings
from taskshare.app.db import set_document_client
from taskshare.app.main import create_app
from taskshare.app.models import NotificationType
from taskshare.app.realtime import ConnectionLimitExceeded, NotificationBroker, NotificationEvent, broker

from .conftest import TEST_PASSWORD


@pytest.fixture()
def sync_client(mongo_client: AsyncMongoMockClient) -> Iterator[TestClient]:
    asyncio.run(broker.reset())
    set_document_client(mongo_client)
    with TestClient(create_app()) as test_client:
        yield test_client
    asyncio.run(broker.reset())


def _register(client: TestClient, name: str) -> dict:
    response = client.post(
        "/api/users",
        json={"name": name, "email": f"{name.lower()}@example.com", "password": TEST_PASSWORD},
    )
    assert response.status_code == 201, response.text
    payload = response.json()
    return {"id": payload["user"]["id"], "token": payload["token"]}


def test_websocket_requires_token(sync_client: TestClient) -> None:
    with pytest.raises(WebSocketDisconnect) as exc:
        sync_client.websocket_connect("/ws/notifications")
    assert exc.value.code == 4401


def test_websocket_rejects_invalid_token(sync_client: TestClient) -> None:
    with pytest.raises(WebSocketDisconnect) as exc:
        sync_client.websocket_connect("/ws/notifications?token=forged")
    assert exc.value.code == 4401


def test_share_pushes_notification_to_connected_recipient(sync_client: TestClient) -> None:
    alice = _register(sync_client, "Alice")
    bob = _register(sync_client, "Bob")
    alice_headers = {"Authorization": f"Bearer {alice['token']}"}
    task = sync_client.post("/api/tasks", json={"title": "Draft"}, headers=alice_headers).json()

    with sync_client.websocket_connect(f"/ws/notifications?token={bob['token']}") as websocket:
        response = sync_client.put(
            f"/api/tasks/{task['id']}/share",
            json={"user_ids": [bob["id"]]},
            headers=alice_headers,
        )
        frame = websocket.receive_json()

    assert response.status_code == 200
    assert frame == {
        "event": "notification",
        "data": {
            "type": "task_shared",
            "message": 'Alice shared the task "Draft" with you',
            "task_id": task["id"],
        },
    }


def test_websocket_accepts_bearer_header(sync_client: TestClient) -> None:
    bob = _register(sync_client, "Bob")

    with sync_client.websocket_connect(
        "/ws/notifications",
        headers={"Authorization": f"Bearer {bob['token']}"},
    ):
        assert asyncio.run(broker.connection_count(bob["id"])) == 1


def test_connection_limit_closes_extra_sockets(
    sync_client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    bob = _register(sync_client, "Bob")
    monkeypatch.setenv("TASKSHARE_WEBSOCKET_MAX_CONNECTIONS", "1")
    get_settings.cache_clear()

    with sync_client.websocket_connect(f"/ws/notifications?token={bob['token']}"):
        with pytest.raises(WebSocketDisconnect) as exc:
            sync_client.websocket_connect(f"/ws/notifications?token={bob['token']}")
    assert exc.value.code == 1013


class _StubSocket:
    def __init__(self, *, fail: bool = False) -> None:
        self.application_state = WebSocketState.CONNECTING
        self.frames: list[dict] = []
        self._fail = fail

    async def accept(self) -> None:
        self.application_state = WebSocketState.CONNECTED

    async def send_json(self, frame: dict) -> None:
        if self._fail:
            raise RuntimeError("socket closed")
        self.frames.append(frame)


EVENT = NotificationEvent(type=NotificationType.TASK_UPDATED, message="changed", task_id="abc")


@pytest.mark.asyncio
async def test_publish_to_offline_user_delivers_nothing() -> None:
    local_broker = NotificationBroker()

    assert await local_broker.publish("nobody", EVENT) == 0


@pytest.mark.asyncio
async def test_publish_prunes_stale_sockets() -> None:
    local_broker = NotificationBroker()
    settings = get_settings()
    healthy, broken, closed = _StubSocket(), _StubSocket(fail=True), _StubSocket()
    for socket in (healthy, broken, closed):
        await local_broker.connect("user", socket, settings)
    closed.application_state = WebSocketState.DISCONNECTED

    delivered = await local_broker.publish("user", EVENT)

    assert delivered == 1
    assert healthy.frames == [EVENT.to_frame()]
    assert await local_broker.connection_count("user") == 1


class _SlowAcceptSocket(_StubSocket):
    def __init__(self) -> None:
        super().__init__()
        self.accepting = asyncio.Event()
        self.release = asyncio.Event()

    async def accept(self) -> None:
        self.accepting.set()
        await self.release.wait()
        await super().accept()


@pytest.mark.asyncio
async def test_publish_during_handshake_keeps_socket() -> None:
    local_broker = NotificationBroker()
    socket = _SlowAcceptSocket()
    joining = asyncio.create_task(local_broker.connect("user", socket, get_settings()))
    await socket.accepting.wait()

    publishing = asyncio.create_task(local_broker.publish("user", EVENT))
    await asyncio.sleep(0)
    socket.release.set()
    await joining

    assert await publishing == 1
    assert await local_broker.publish("user", EVENT) == 1
    assert socket.frames == [EVENT.to_frame(), EVENT.to_frame()]
    assert await local_broker.connection_count("user") == 1


@pytest.mark.asyncio
async def test_connect_enforces_global_limit(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TASKSHARE_WEBSOCKET_MAX_CONNECTIONS", "2")
    get_settings.cache_clear()
    local_broker = NotificationBroker()
    settings = get_settings()
    await local_broker.connect("a", _StubSocket(), settings)
    await local_broker.connect("b", _StubSocket(), settings)

    with pytest.raises(ConnectionLimitExceeded):
        await local_broker.connect("c", _StubSocket(), settings)
    assert await local_broker.connection_count() == 2
