"""Task workflows: visibility, ownership and sharing rules."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from ..errors import ForbiddenError, NotFoundError, ValidationError
from ..models import (
    VISIBILITY_ASSOCIATIONS,
    Attachment,
    NotificationType,
    TaskAssociation,
    TaskDocument,
    TaskStatus,
    UserDocument,
    parse_object_id,
    try_object_id,
    utcnow,
)
from ..repositories import TaskRepository, UserRepository
from .notifications import NotificationService, share_message, status_change_message

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = ("title", "description", "status", "due_date", "attachments")


def _serialise_change(value: Any) -> Any:
    if isinstance(value, TaskStatus):
        return value.value
    if isinstance(value, list):
        return [item.model_dump() if isinstance(item, Attachment) else item for item in value]
    return value


class TaskService:
    """Business logic for task CRUD and sharing."""

    def __init__(
        self,
        database: AsyncIOMotorDatabase,
        notifications: NotificationService | None = None,
    ) -> None:
        self._repository = TaskRepository(database)
        self._users = UserRepository(database)
        self._notifications = notifications or NotificationService(database)

    async def list_tasks(self, requester: UserDocument) -> list[TaskDocument]:
        """Return tasks owned by or shared with ``requester`` in insertion order."""
        return await self._repository.list_associated(requester.id, VISIBILITY_ASSOCIATIONS)

    async def list_shared_tasks(self, requester: UserDocument) -> list[TaskDocument]:
        return await self._repository.list_associated(requester.id, {TaskAssociation.SHARED})

    async def get_task(self, task_id: str, requester: UserDocument) -> TaskDocument:
        """Return the task if visible to ``requester``.

        Tasks that exist but are not visible raise the same ``NotFoundError``
        as tasks that do not exist.
        """

        object_id = try_object_id(task_id)
        task = await self._repository.get(object_id) if object_id is not None else None
        if task is None or not task.is_visible_to(requester.id):
            raise NotFoundError("Task not found")
        return task

    async def create_task(
        self,
        requester: UserDocument,
        *,
        title: str,
        description: str | None = None,
        status: TaskStatus | str | None = None,
        due_date: datetime | None = None,
        attachments: Sequence[Attachment] = (),
    ) -> TaskDocument:
        cleaned_title = (title or "").strip()
        if not cleaned_title:
            raise ValidationError("Title is required")
        try:
            resolved_status = TaskStatus(status) if status else TaskStatus.PENDING
        except ValueError as exc:
            raise ValidationError(f"Invalid status: {status}") from exc

        now = utcnow()
        task = TaskDocument(
            owner_id=requester.id,
            title=cleaned_title,
            description=description,
            status=resolved_status,
            due_date=due_date,
            attachments=list(attachments),
            created_at=now,
            updated_at=now,
        )
        await self._repository.add(task)
        logger.info("Task created", extra={"task_id": str(task.id), "owner_id": str(requester.id)})
        return task

    async def update_task(self, task_id: str, requester: UserDocument, **patch: Any) -> TaskDocument:
        """Apply the truthy fields of ``patch`` to a visible task.

        Falsy values mean "leave unchanged", so a field cannot be cleared
        through this call. A status change notifies every shared member
        except the actor.
        """

        # Shared members edit as well as the owner; delete and share stay owner-only.
        task = await self.get_task(task_id, requester)

        changes: dict[str, Any] = {}
        for field in _UPDATABLE_FIELDS:
            value = patch.get(field)
            if value:
                changes[field] = _serialise_change(value)
        if "title" in changes:
            changes["title"] = changes["title"].strip()
            if not changes["title"]:
                del changes["title"]
        if "status" in changes:
            try:
                changes["status"] = TaskStatus(changes["status"]).value
            except ValueError as exc:
                raise ValidationError(f"Invalid status: {changes['status']}") from exc
        if not changes:
            return task

        now = utcnow()
        before = await self._repository.apply_changes(task.id, changes, updated_at=now)
        if before is None:
            raise NotFoundError("Task not found")
        updated = TaskDocument.model_validate({**before.model_dump(), **changes, "updated_at": now})
        logger.info(
            "Task updated",
            extra={"task_id": str(task.id), "actor_id": str(requester.id), "fields": sorted(changes)},
        )

        if "status" in changes and before.status != updated.status:
            notification_type = (
                NotificationType.TASK_COMPLETED
                if updated.status == TaskStatus.COMPLETED
                else NotificationType.TASK_UPDATED
            )
            await self._notifications.fan_out(
                actor=requester,
                task=updated,
                recipients=[member for member in updated.shared_with if member != requester.id],
                notification_type=notification_type,
                message=status_change_message(updated),
            )
        return updated

    async def delete_task(self, task_id: str, requester: UserDocument) -> None:
        """Remove a task owned by ``requester``; notifications are left in place."""

        object_id = try_object_id(task_id)
        task = await self._repository.get(object_id) if object_id is not None else None
        if task is None or not task.is_owned_by(requester.id):
            raise NotFoundError("Task not found")
        await self._repository.delete(task.id)
        logger.info("Task deleted", extra={"task_id": str(task.id), "owner_id": str(requester.id)})

    async def share_task(
        self,
        task_id: str,
        requester: UserDocument,
        user_ids: Sequence[str],
    ) -> TaskDocument:
        """Add users to the share list of a task owned by ``requester``."""

        task = await self.get_task(task_id, requester)
        if not task.is_owned_by(requester.id):
            raise ForbiddenError("Only the task owner can share this task")
        if not user_ids:
            raise ValidationError("Please provide at least one user to share with")

        targets = self._parse_targets(user_ids)
        if requester.id in targets:
            raise ValidationError("You cannot share a task with yourself")

        found = {user.id for user in await self._users.list_by_ids(targets)}
        missing = [str(target) for target in targets if target not in found]
        if missing:
            raise ValidationError("One or more users were not found", details={"missing": missing})

        new_targets = [target for target in targets if target not in task.shared_with]
        if not new_targets:
            raise ValidationError("Task is already shared with the selected users")

        now = utcnow()
        before = await self._repository.add_shared_members(task.id, requester.id, new_targets, updated_at=now)
        if before is None:
            raise NotFoundError("Task not found")

        # A concurrent share may have added some of these already; only the
        # members this write introduced are notified.
        added = [target for target in new_targets if target not in before.shared_with]
        if not added:
            raise ValidationError("Task is already shared with the selected users")

        shared = TaskDocument.model_validate(
            {**before.model_dump(), "shared_with": [*before.shared_with, *added], "updated_at": now}
        )
        logger.info(
            "Task shared",
            extra={"task_id": str(task.id), "owner_id": str(requester.id), "added": len(added)},
        )
        await self._notifications.fan_out(
            actor=requester,
            task=shared,
            recipients=added,
            notification_type=NotificationType.TASK_SHARED,
            message=share_message(requester, shared),
        )
        return shared

    @staticmethod
    def _parse_targets(user_ids: Sequence[str]) -> list[ObjectId]:
        targets: list[ObjectId] = []
        for raw in user_ids:
            try:
                targets.append(parse_object_id(raw))
            except ValueError as exc:
                raise ValidationError(f"Invalid user id: {raw}") from exc
        return list(dict.fromkeys(targets))


__all__ = ["TaskService"]
