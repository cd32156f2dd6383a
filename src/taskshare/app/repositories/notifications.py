"""Repository for notification inbox entries."""

from __future__ import annotations

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING

from ..models import NotificationDocument
from .base import BaseRepository

NEWEST_FIRST = [("created_at", DESCENDING), ("_id", DESCENDING)]


class NotificationRepository(BaseRepository[NotificationDocument]):
    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        super().__init__(database, NotificationDocument)

    async def list_for_recipient(self, recipient_id: ObjectId, *, limit: int) -> list[NotificationDocument]:
        """Return the newest ``limit`` notifications addressed to ``recipient_id``."""
        return await self.find({"recipient_id": recipient_id}, sort=NEWEST_FIRST, limit=limit)

    async def mark_read(self, notification_id: ObjectId) -> None:
        await self.collection.update_one({"_id": notification_id}, {"$set": {"read": True}})

    async def mark_all_read(self, recipient_id: ObjectId) -> int:
        """Flag every unread notification for ``recipient_id`` as read."""
        result = await self.collection.update_many(
            {"recipient_id": recipient_id, "read": False},
            {"$set": {"read": True}},
        )
        return result.modified_count
