"""Reusable FastAPI dependencies."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from motor.motor_asyncio import AsyncIOMotorDatabase

from .core.config import Settings, get_settings
from .core.context import bind_actor_id
from .db import get_database
from .errors import UnauthenticatedError
from .models import UserDocument
from .realtime import broker
from .services import (
    AnalyticsService,
    AuthService,
    NotificationService,
    TaskService,
    UserService,
)

SettingsDependency = Annotated[Settings, Depends(get_settings)]
DatabaseDependency = Annotated[AsyncIOMotorDatabase, Depends(get_database)]

_bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    database: DatabaseDependency,
    settings: SettingsDependency,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> UserDocument:
    """Resolve the bearer token on the request to a stored user."""

    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError("Not authorized, no token")
    user = await AuthService(database, settings).resolve_token(credentials.credentials)
    bind_actor_id(str(user.id))
    return user


CurrentUserDependency = Annotated[UserDocument, Depends(get_current_user)]


def get_auth_service(database: DatabaseDependency, settings: SettingsDependency) -> AuthService:
    return AuthService(database, settings)


def get_user_service(database: DatabaseDependency) -> UserService:
    return UserService(database)


def get_notification_service(
    database: DatabaseDependency,
    settings: SettingsDependency,
) -> NotificationService:
    return NotificationService(
        database,
        broker=broker,
        inbox_limit=settings.notification_inbox_limit,
    )


def get_task_service(
    database: DatabaseDependency,
    notifications: Annotated[NotificationService, Depends(get_notification_service)],
) -> TaskService:
    return TaskService(database, notifications)


def get_analytics_service(database: DatabaseDependency) -> AnalyticsService:
    return AnalyticsService(database)


AuthServiceDependency = Annotated[AuthService, Depends(get_auth_service)]
UserServiceDependency = Annotated[UserService, Depends(get_user_service)]
NotificationServiceDependency = Annotated[NotificationService, Depends(get_notification_service)]
TaskServiceDependency = Annotated[TaskService, Depends(get_task_service)]
AnalyticsServiceDependency = Annotated[AnalyticsService, Depends(get_analytics_service)]


__all__ = [
    "AnalyticsServiceDependency",
    "AuthServiceDependency",
    "CurrentUserDependency",
    "DatabaseDependency",
    "NotificationServiceDependency",
    "SettingsDependency",
    "TaskServiceDependency",
    "UserServiceDependency",
    "get_current_user",
    "get_notification_service",
]
