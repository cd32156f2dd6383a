"""Websocket listener that feeds pushed notifications into the inbox store."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

import httpx
import websockets

from .http import ApiClient
from .stores import NotificationStore

logger = logging.getLogger(__name__)

NOTIFICATION_PATH = "/ws/notifications"
NOTIFICATION_EVENT = "notification"


def build_notification_url(api_base_url: str, token: str) -> str:
    """Derive the websocket URL from the REST base URL.

    ``http://host:5000/api`` becomes ``ws://host:5000/ws/notifications?token=...``.
    """

    url = httpx.URL(api_base_url)
    scheme = "wss" if url.scheme == "https" else "ws"
    return str(url.copy_with(scheme=scheme, path=NOTIFICATION_PATH).copy_set_param("token", token))


class NotificationListener:
    """Relays ``notification`` frames from the server to a :class:`NotificationStore`."""

    def __init__(
        self,
        url: str,
        store: NotificationStore,
        *,
        on_event: Callable[[dict[str, Any]], None] | None = None,
    ) -> None:
        self.url = url
        self._store = store
        self._on_event = on_event

    @classmethod
    def for_client(cls, api: ApiClient, store: NotificationStore, **kwargs: Any) -> "NotificationListener":
        if not api.token:
            raise ValueError("A signed-in client is required to open the notification channel.")
        return cls(build_notification_url(api.base_url, api.token), store, **kwargs)

    def handle_frame(self, raw: str | bytes) -> dict[str, Any] | None:
        """Decode one frame; returns the stored entry for notification events."""

        try:
            frame = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed realtime frame")
            return None
        if not isinstance(frame, dict) or frame.get("event") != NOTIFICATION_EVENT:
            return None
        entry = self._store.receive_push(frame)
        if self._on_event is not None:
            self._on_event(entry)
        return entry

    async def run(self) -> None:
        """Listen until the server closes the connection."""

        async with websockets.connect(self.url) as websocket:
            logger.info("Notification channel open")
            try:
                async for raw in websocket:
                    self.handle_frame(raw)
            except websockets.ConnectionClosed:
                logger.info("Notification channel closed")


__all__ = ["NotificationListener", "build_notification_url"]
