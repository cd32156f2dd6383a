"""ASGI middleware tagging HTTP requests and websocket sessions with a correlation id."""

from __future__ import annotations

import uuid

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .context import REQUEST_ID_HEADER, bind_request_id, reset_context

_TAGGED_SCOPES = frozenset({"http", "websocket"})


class CorrelationIdMiddleware:
    """Reuse the caller's ``X-Request-ID`` or mint one, and echo it back.

    The id is stored on ``scope["state"]`` so ``request.state.request_id``
    resolves in exception handlers that run outside this middleware.
    """

    def __init__(self, app: ASGIApp, header_name: str = REQUEST_ID_HEADER) -> None:
        self.app = app
        self.header_name = header_name

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in _TAGGED_SCOPES:
            await self.app(scope, receive, send)
            return

        request_id = Headers(scope=scope).get(self.header_name) or uuid.uuid4().hex
        scope.setdefault("state", {})["request_id"] = request_id

        async def send_with_request_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                if self.header_name not in headers:
                    headers.append(self.header_name, request_id)
            await send(message)

        token = bind_request_id(request_id)
        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            reset_context(token)


__all__ = ["CorrelationIdMiddleware"]
