"""Notification inbox schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from ..models import NotificationType
from .common import IdStr

UNKNOWN_SENDER_NAME = "Unknown user"
DELETED_TASK_TITLE = "Deleted task"


class NotificationSender(BaseModel):
    """Display fields for the user who triggered a notification."""

    id: IdStr
    name: str
    email: str | None = None
    exists: bool = True


class NotificationTask(BaseModel):
    """Display fields for the task a notification refers to."""

    id: IdStr
    title: str
    exists: bool = True


class NotificationRead(BaseModel):
    id: IdStr
    type: NotificationType
    message: str
    read: bool
    created_at: datetime
    sender: NotificationSender
    task: NotificationTask | None = None


class MarkAllReadResponse(BaseModel):
    message: str = "All notifications marked as read"
    updated: int = Field(ge=0)


__all__ = [
    "DELETED_TASK_TITLE",
    "MarkAllReadResponse",
    "NotificationRead",
    "NotificationSender",
    "NotificationTask",
    "UNKNOWN_SENDER_NAME",
]
