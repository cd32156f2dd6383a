"""Repository for task documents."""

from __future__ import annotations

from collections.abc import Collection, Iterable
from datetime import datetime
from typing import Any, Mapping

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, ReturnDocument

from ..models import TaskAssociation, TaskDocument
from .base import BaseRepository

_ASSOCIATION_FIELDS: dict[TaskAssociation, str] = {
    TaskAssociation.OWNER: "owner_id",
    TaskAssociation.LEGACY_ASSIGNEE: "user_id",
    TaskAssociation.SHARED: "shared_with",
}

INSERTION_ORDER = [("_id", ASCENDING)]


def association_filter(user_id: ObjectId, reasons: Collection[TaskAssociation]) -> dict[str, Any]:
    """Build a query matching tasks associated with ``user_id`` for any of ``reasons``."""

    clauses = [
        {_ASSOCIATION_FIELDS[reason]: user_id}
        for reason in TaskAssociation
        if reason in reasons
    ]
    if not clauses:
        raise ValueError("At least one association reason is required.")
    if len(clauses) == 1:
        return clauses[0]
    return {"$or": clauses}


class TaskRepository(BaseRepository[TaskDocument]):
    """Persistence operations for ``TaskDocument`` records."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        super().__init__(database, TaskDocument)

    async def list_associated(
        self,
        user_id: ObjectId,
        reasons: Collection[TaskAssociation],
    ) -> list[TaskDocument]:
        return await self.find(association_filter(user_id, reasons), sort=INSERTION_ORDER)

    async def list_by_ids(self, ids: Iterable[ObjectId]) -> list[TaskDocument]:
        unique = list(dict.fromkeys(ids))
        if not unique:
            return []
        return await self.find({"_id": {"$in": unique}})

    async def apply_changes(
        self,
        task_id: ObjectId,
        changes: Mapping[str, Any],
        *,
        updated_at: datetime,
    ) -> TaskDocument | None:
        """Atomically ``$set`` the changes and return the pre-image.

        Concurrent writers are last-writer-wins; the returned document is the
        state this write replaced.
        """

        raw = await self.collection.find_one_and_update(
            {"_id": task_id},
            {"$set": {**changes, "updated_at": updated_at}},
            return_document=ReturnDocument.BEFORE,
        )
        return self._load(raw)

    async def add_shared_members(
        self,
        task_id: ObjectId,
        owner_id: ObjectId,
        member_ids: Iterable[ObjectId],
        *,
        updated_at: datetime,
    ) -> TaskDocument | None:
        """Append members with a single set-union write and return the pre-image.

        The write is conditioned on ``owner_id`` so a non-owner can never grow
        the list. Callers diff the returned ``shared_with`` against the
        requested ids to learn which members this call actually added.
        """

        raw = await self.collection.find_one_and_update(
            {"_id": task_id, "owner_id": owner_id},
            {
                "$addToSet": {"shared_with": {"$each": list(member_ids)}},
                "$set": {"updated_at": updated_at},
            },
            return_document=ReturnDocument.BEFORE,
        )
        return self._load(raw)

    async def aggregate(self, pipeline: list[dict[str, Any]]) -> list[dict[str, Any]]:
        cursor = self.collection.aggregate(pipeline)
        return await cursor.to_list(length=None)
