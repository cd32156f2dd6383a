"""Document models persisted in MongoDB."""

from __future__ import annotations

from .common import MongoDocument, ObjectIdField, parse_object_id, try_object_id, utcnow
from .notification import NotificationDocument, NotificationType
from .task import (
    ANALYTICS_ASSOCIATIONS,
    VISIBILITY_ASSOCIATIONS,
    Attachment,
    TaskAssociation,
    TaskDocument,
    TaskStatus,
)
from .user import UserDocument

__all__ = [
    "ANALYTICS_ASSOCIATIONS",
    "Attachment",
    "MongoDocument",
    "NotificationDocument",
    "NotificationType",
    "ObjectIdField",
    "TaskAssociation",
    "TaskDocument",
    "TaskStatus",
    "UserDocument",
    "VISIBILITY_ASSOCIATIONS",
    "parse_object_id",
    "try_object_id",
    "utcnow",
]
