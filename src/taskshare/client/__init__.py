"""Client state layer for the taskshare API."""

from __future__ import annotations

from .http import ApiClient, ApiError
from .realtime import NotificationListener, build_notification_url
from .results import Result
from .stores import AnalyticsStore, AppState, AuthStore, NotificationStore, TaskStore

__all__ = [
    "AnalyticsStore",
    "ApiClient",
    "ApiError",
    "AppState",
    "AuthStore",
    "NotificationListener",
    "NotificationStore",
    "Result",
    "TaskStore",
    "build_notification_url",
]
