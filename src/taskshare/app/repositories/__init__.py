"""Repositories encapsulating MongoDB persistence logic."""

from __future__ import annotations

from .notifications import NotificationRepository
from .tasks import TaskRepository, association_filter
from .users import UserRepository

__all__ = ["NotificationRepository", "TaskRepository", "UserRepository", "association_filter"]
