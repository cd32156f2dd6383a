"""Notification fan-out and inbox workflows."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from ..errors import ForbiddenError, NotFoundError
from ..models import (
    NotificationDocument,
    NotificationType,
    TaskDocument,
    TaskStatus,
    UserDocument,
    try_object_id,
)
from ..realtime import NotificationBroker, NotificationEvent
from ..repositories import NotificationRepository, TaskRepository, UserRepository
from ..schemas.notification import (
    DELETED_TASK_TITLE,
    UNKNOWN_SENDER_NAME,
    MarkAllReadResponse,
    NotificationRead,
    NotificationSender,
    NotificationTask,
)

logger = logging.getLogger(__name__)

DEFAULT_INBOX_LIMIT = 50


def share_message(actor: UserDocument, task: TaskDocument) -> str:
    return f'{actor.name} shared the task "{task.title}" with you'


def status_change_message(task: TaskDocument) -> str:
    return f'Task "{task.title}" status changed to {TaskStatus(task.status).value}'


class NotificationService:
    """Persists notifications and relays them to realtime channels."""

    def __init__(
        self,
        database: AsyncIOMotorDatabase,
        *,
        broker: NotificationBroker | None = None,
        inbox_limit: int = DEFAULT_INBOX_LIMIT,
    ) -> None:
        self._repository = NotificationRepository(database)
        self._users = UserRepository(database)
        self._tasks = TaskRepository(database)
        self._broker = broker
        self._inbox_limit = max(inbox_limit, 1)

    async def fan_out(
        self,
        *,
        actor: UserDocument,
        task: TaskDocument,
        recipients: Sequence[ObjectId],
        notification_type: NotificationType,
        message: str,
    ) -> list[NotificationDocument]:
        """Record one notification per recipient, then push each one.

        The batch insert is a separate write from the task mutation that
        triggered it. If it fails the error propagates and nothing is pushed.
        Pushes are best effort.
        """

        unique_recipients = [
            recipient for recipient in dict.fromkeys(recipients) if recipient != actor.id
        ]
        if not unique_recipients:
            return []

        records = [
            NotificationDocument(
                recipient_id=recipient,
                sender_id=actor.id,
                type=notification_type,
                message=message,
                task_id=task.id,
            )
            for recipient in unique_recipients
        ]
        await self._repository.add_many(records)
        logger.info(
            "Notifications recorded",
            extra={
                "task_id": str(task.id),
                "type": NotificationType(notification_type).value,
                "recipients": len(records),
            },
        )

        if self._broker is not None:
            event = NotificationEvent(type=notification_type, message=message, task_id=str(task.id))
            for recipient in unique_recipients:
                try:
                    await self._broker.publish(str(recipient), event)
                except Exception:
                    logger.warning(
                        "Realtime push failed",
                        exc_info=True,
                        extra={"recipient_id": str(recipient), "task_id": str(task.id)},
                    )
        return records

    async def list_inbox(self, recipient: UserDocument) -> list[NotificationRead]:
        """Return the newest notifications for ``recipient`` with display fields."""

        notifications = await self._repository.list_for_recipient(recipient.id, limit=self._inbox_limit)
        return await self._render(notifications)

    async def mark_read(self, notification_id: str, recipient: UserDocument) -> NotificationRead:
        object_id = try_object_id(notification_id)
        notification = await self._repository.get(object_id) if object_id is not None else None
        if notification is None:
            raise NotFoundError("Notification not found")
        if notification.recipient_id != recipient.id:
            raise ForbiddenError("Not authorized")
        if not notification.read:
            await self._repository.mark_read(notification.id)
            notification = notification.model_copy(update={"read": True})
        rendered = await self._render([notification])
        return rendered[0]

    async def mark_all_read(self, recipient: UserDocument) -> MarkAllReadResponse:
        updated = await self._repository.mark_all_read(recipient.id)
        return MarkAllReadResponse(updated=updated)

    async def _render(self, notifications: Sequence[NotificationDocument]) -> list[NotificationRead]:
        # Senders and tasks may have been deleted; render placeholders instead.
        senders = {
            user.id: user
            for user in await self._users.list_by_ids(item.sender_id for item in notifications)
        }
        tasks = {
            task.id: task
            for task in await self._tasks.list_by_ids(
                item.task_id for item in notifications if item.task_id is not None
            )
        }

        rendered: list[NotificationRead] = []
        for item in notifications:
            sender = senders.get(item.sender_id)
            if sender is None:
                sender_view = NotificationSender(id=item.sender_id, name=UNKNOWN_SENDER_NAME, exists=False)
            else:
                sender_view = NotificationSender(id=sender.id, name=sender.name, email=sender.email)

            task_view: NotificationTask | None = None
            if item.task_id is not None:
                task = tasks.get(item.task_id)
                if task is None:
                    task_view = NotificationTask(id=item.task_id, title=DELETED_TASK_TITLE, exists=False)
                else:
                    task_view = NotificationTask(id=task.id, title=task.title)

            rendered.append(
                NotificationRead(
                    id=item.id,
                    type=item.type,
                    message=item.message,
                    read=item.read,
                    created_at=item.created_at,
                    sender=sender_view,
                    task=task_view,
                )
            )
        return rendered


__all__ = [
    "DEFAULT_INBOX_LIMIT",
    "NotificationService",
    "share_message",
    "status_change_message",
]
