"""Task document and its association rules."""

from __future__ import annotations

from enum import Enum

from bson import ObjectId
from pydantic import BaseModel, Field

from .common import MongoDocument, ObjectIdField, UtcDatetime, utcnow


class TaskStatus(str, Enum):
    """Lifecycle states a task can take."""

    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class TaskAssociation(str, Enum):
    """Reasons a user can be associated with a task.

    ``LEGACY_ASSIGNEE`` refers to the single ``user_id`` field older records
    carry next to ``owner_id``. Both may be populated independently, so the
    reasons are kept apart instead of collapsed into one field.
    """

    OWNER = "owner"
    LEGACY_ASSIGNEE = "legacy_assignee"
    SHARED = "shared"


VISIBILITY_ASSOCIATIONS = frozenset({TaskAssociation.OWNER, TaskAssociation.SHARED})
ANALYTICS_ASSOCIATIONS = frozenset(TaskAssociation)


class Attachment(BaseModel):
    """Metadata describing a file attached to a task."""

    filename: str
    original_name: str
    mimetype: str
    size: int = Field(ge=0)
    url: str


class TaskDocument(MongoDocument):
    collection_name = "tasks"

    owner_id: ObjectIdField
    user_id: ObjectIdField | None = None
    title: str
    description: str | None = None
    status: TaskStatus = TaskStatus.PENDING
    due_date: UtcDatetime | None = None
    shared_with: list[ObjectIdField] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)
    created_at: UtcDatetime = Field(default_factory=utcnow)
    updated_at: UtcDatetime = Field(default_factory=utcnow)

    def associations(self, user_id: ObjectId) -> set[TaskAssociation]:
        """Return every reason ``user_id`` is associated with this task."""

        reasons: set[TaskAssociation] = set()
        if self.owner_id == user_id:
            reasons.add(TaskAssociation.OWNER)
        if self.user_id is not None and self.user_id == user_id:
            reasons.add(TaskAssociation.LEGACY_ASSIGNEE)
        if user_id in self.shared_with:
            reasons.add(TaskAssociation.SHARED)
        return reasons

    def is_visible_to(self, user_id: ObjectId) -> bool:
        return bool(self.associations(user_id) & VISIBILITY_ASSOCIATIONS)

    def is_owned_by(self, user_id: ObjectId) -> bool:
        return self.owner_id == user_id


__all__ = [
    "ANALYTICS_ASSOCIATIONS",
    "Attachment",
    "TaskAssociation",
    "TaskDocument",
    "TaskStatus",
    "VISIBILITY_ASSOCIATIONS",
]
