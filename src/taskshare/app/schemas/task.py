"""Task-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models import Attachment, TaskStatus
from .common import IdStr

TASK_READ_EXAMPLE = {
    "id": "6650c0ffee0000000000a001",
    "owner_id": "6650c0ffee0000000000b001",
    "user_id": None,
    "title": "Draft product documentation",
    "description": "Outline sections for the public API guide.",
    "status": TaskStatus.PENDING.value,
    "due_date": "2024-06-01T17:00:00Z",
    "shared_with": ["6650c0ffee0000000000b002"],
    "attachments": [],
    "created_at": "2024-05-24T12:00:00Z",
    "updated_at": "2024-05-24T12:00:00Z",
}


class TaskCreate(BaseModel):
    """Payload for creating a new task."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Draft product documentation",
                "description": "Outline sections for the public API guide.",
                "status": TaskStatus.PENDING.value,
            }
        }
    )

    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None)
    status: TaskStatus = Field(default=TaskStatus.PENDING)
    due_date: datetime | None = Field(default=None)
    attachments: list[Attachment] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def _reject_blank_title(cls, value: str) -> str:
        title = value.strip()
        if not title:
            raise ValueError("Title must not be blank.")
        return title


class TaskUpdate(BaseModel):
    """Payload for partially updating an existing task.

    Absent, null, empty and other falsy values are accepted here and treated
    as "leave unchanged" by the service layer, so an empty body is a no-op.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Update API documentation",
                "status": TaskStatus.IN_PROGRESS.value,
            }
        }
    )

    title: str | None = Field(default=None, max_length=255)
    description: str | None = Field(default=None)
    status: TaskStatus | None = Field(default=None)
    due_date: datetime | None = Field(default=None)
    attachments: list[Attachment] | None = Field(default=None)


class TaskShareRequest(BaseModel):
    """Users to add to a task's share list."""

    model_config = ConfigDict(
        json_schema_extra={"example": {"user_ids": ["6650c0ffee0000000000b002"]}}
    )

    user_ids: list[str] = Field(default_factory=list)


class TaskRead(BaseModel):
    """Public representation of a task."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={"example": TASK_READ_EXAMPLE},
    )

    id: IdStr
    owner_id: IdStr
    user_id: IdStr | None = None
    title: str
    description: str | None = None
    status: TaskStatus
    due_date: datetime | None = None
    shared_with: list[IdStr] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


__all__ = ["TaskCreate", "TaskRead", "TaskShareRequest", "TaskUpdate"]
