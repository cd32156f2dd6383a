"""Repository for registered users."""

from __future__ import annotations

from typing import Iterable

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from ..models import UserDocument
from .base import BaseRepository


class UserRepository(BaseRepository[UserDocument]):
    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        super().__init__(database, UserDocument)

    async def get_by_email(self, email: str) -> UserDocument | None:
        """Return the user registered under ``email`` if any."""
        return self._load(await self.collection.find_one({"email": email.strip().lower()}))

    async def list_by_ids(self, ids: Iterable[ObjectId]) -> list[UserDocument]:
        unique = list(dict.fromkeys(ids))
        if not unique:
            return []
        return await self.find({"_id": {"$in": unique}})
