"""Websocket endpoint delivering notification pushes."""

from __future__ import annotations

import logging
from typing import Mapping

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from ...core.context import bind_actor_id
from ...deps import DatabaseDependency, SettingsDependency
from ...errors import UnauthenticatedError
from ...models import UserDocument
from ...realtime import ConnectionLimitExceeded, broker
from ...services import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])

UNAUTHORIZED_CLOSE_CODE = 4401


def _extract_authorization_token(headers: Mapping[str, str]) -> str | None:
    """Pull a bearer token out of the provided header mapping."""

    auth = headers.get("authorization") or headers.get("Authorization")
    if not auth:
        return None
    scheme, _, token = auth.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


async def _authenticate(websocket: WebSocket, service: AuthService) -> UserDocument | None:
    token = websocket.query_params.get("token") or _extract_authorization_token(websocket.headers)
    if not token:
        return None
    try:
        return await service.resolve_token(token)
    except UnauthenticatedError:
        return None


@router.websocket("/ws/notifications")
async def notification_stream(
    websocket: WebSocket,
    database: DatabaseDependency,
    settings: SettingsDependency,
) -> None:
    """Join the caller's channel and hold it open until the client leaves."""

    user = await _authenticate(websocket, AuthService(database, settings))
    if user is None:
        await websocket.close(code=UNAUTHORIZED_CLOSE_CODE)
        return

    user_id = str(user.id)
    bind_actor_id(user_id)
    try:
        await broker.connect(user_id, websocket, settings)
    except ConnectionLimitExceeded:
        await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER)
        return

    try:
        while True:
            # Inbound frames carry nothing; reading keeps disconnects observable.
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await broker.disconnect(user_id, websocket)
