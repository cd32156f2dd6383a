"""Domain service layer package."""

from __future__ import annotations

from .analytics import AnalyticsService
from .auth import AuthService
from .notifications import NotificationService
from .tasks import TaskService
from .users import UserService

__all__ = ["AnalyticsService", "AuthService", "NotificationService", "TaskService", "UserService"]
