"""Per-user websocket channels used to push notification events."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict

from pydantic import BaseModel
from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from .core.config import Settings
from .models import NotificationType

logger = logging.getLogger(__name__)

NOTIFICATION_EVENT = "notification"


class ConnectionLimitExceeded(RuntimeError):
    """Raised when the websocket connection pool is exhausted."""


class NotificationEvent(BaseModel):
    """Transient payload pushed to a recipient's channel."""

    type: NotificationType
    message: str
    task_id: str | None = None

    def to_frame(self) -> dict[str, object]:
        return {"event": NOTIFICATION_EVENT, "data": self.model_dump(mode="json")}


class NotificationBroker:
    """Tracks websocket connections keyed by user id."""

    def __init__(self) -> None:
        self._channels: dict[str, set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def connect(self, user_id: str, websocket: WebSocket, settings: Settings) -> int:
        """Accept ``websocket`` and join it to the channel for ``user_id``."""

        async with self._lock:
            total_connections = sum(len(connections) for connections in self._channels.values())
            if total_connections >= settings.websocket_max_connections:
                raise ConnectionLimitExceeded("Websocket connection limit reached.")
            # Joined only once accepted; publish prunes sockets that are not connected.
            await websocket.accept()
            self._channels[user_id].add(websocket)
            active = len(self._channels[user_id])
        logger.info("Realtime channel joined", extra={"user_id": user_id, "connections": active})
        return active

    async def disconnect(self, user_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            connections = self._channels.get(user_id)
            if not connections:
                return
            connections.discard(websocket)
            if not connections:
                self._channels.pop(user_id, None)
        logger.info("Realtime channel left", extra={"user_id": user_id})

    async def publish(self, user_id: str, event: NotificationEvent) -> int:
        """Send ``event`` to every socket on the user's channel.

        Returns the number of sockets the frame was written to. Sockets that
        fail are pruned; nothing is queued for users who are offline.
        """

        async with self._lock:
            connections = list(self._channels.get(user_id, set()))

        frame = event.to_frame()
        delivered = 0
        stale: list[WebSocket] = []
        for websocket in connections:
            if websocket.application_state != WebSocketState.CONNECTED:
                stale.append(websocket)
                continue
            try:
                await websocket.send_json(frame)
            except WebSocketDisconnect:
                stale.append(websocket)
            except RuntimeError:
                stale.append(websocket)
            else:
                delivered += 1

        if stale:
            async with self._lock:
                clients = self._channels.get(user_id)
                if clients is not None:
                    clients.difference_update(stale)
                    if not clients:
                        self._channels.pop(user_id, None)
        return delivered

    async def connection_count(self, user_id: str | None = None) -> int:
        async with self._lock:
            if user_id is not None:
                return len(self._channels.get(user_id, set()))
            return sum(len(connections) for connections in self._channels.values())

    async def reset(self) -> None:
        """Drop every tracked websocket (used by tests)."""

        async with self._lock:
            self._channels.clear()


broker = NotificationBroker()

__all__ = [
    "ConnectionLimitExceeded",
    "NOTIFICATION_EVENT",
    "NotificationBroker",
    "NotificationEvent",
    "broker",
]
