from __future__ import annotations

from enum import Enum

from pydantic import Field

from .common import MongoDocument, ObjectIdField, UtcDatetime, utcnow


class NotificationType(str, Enum):
    TASK_SHARED = "task_shared"
    TASK_UPDATED = "task_updated"
    TASK_COMPLETED = "task_completed"


class NotificationDocument(MongoDocument):
    """An inbox entry delivered to ``recipient_id``."""

    collection_name = "notifications"

    recipient_id: ObjectIdField
    sender_id: ObjectIdField
    type: NotificationType
    message: str
    task_id: ObjectIdField | None = None
    read: bool = False
    created_at: UtcDatetime = Field(default_factory=utcnow)


__all__ = ["NotificationDocument", "NotificationType"]
