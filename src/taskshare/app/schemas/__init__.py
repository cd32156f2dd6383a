"""Pydantic schemas for public interfaces."""

from __future__ import annotations

from .analytics import AnalyticsOverview, AnalyticsTrends, TrendPeriod, TrendPoint
from .auth import AuthResponse, LoginRequest, RegisterRequest, TokenPayload
from .notification import (
    MarkAllReadResponse,
    NotificationRead,
    NotificationSender,
    NotificationTask,
)
from .system import ErrorResponse, HealthCheckResponse, MessageResponse, RootResponse
from .task import TaskCreate, TaskRead, TaskShareRequest, TaskUpdate
from .user import UserPublic

__all__ = [
    "AnalyticsOverview",
    "AnalyticsTrends",
    "AuthResponse",
    "ErrorResponse",
    "HealthCheckResponse",
    "LoginRequest",
    "MarkAllReadResponse",
    "MessageResponse",
    "NotificationRead",
    "NotificationSender",
    "NotificationTask",
    "RegisterRequest",
    "RootResponse",
    "TaskCreate",
    "TaskRead",
    "TaskShareRequest",
    "TaskUpdate",
    "TokenPayload",
    "TrendPeriod",
    "TrendPoint",
    "UserPublic",
]
