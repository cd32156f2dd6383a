"""Base repository implementation over motor collections."""

from __future__ import annotations

from typing import Any, Generic, Mapping, Sequence, TypeVar

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase

from ..models.common import MongoDocument

DocumentType = TypeVar("DocumentType", bound=MongoDocument)

SortSpec = Sequence[tuple[str, int]]


class BaseRepository(Generic[DocumentType]):
    """Provide shared persistence helpers for repositories."""

    def __init__(self, database: AsyncIOMotorDatabase, document_type: type[DocumentType]) -> None:
        self._database = database
        self._document_type = document_type

    @property
    def collection(self) -> AsyncIOMotorCollection:
        """Return the collection backing the repository's document type."""
        return self._database[self._document_type.collection_name]

    def _load(self, raw: Mapping[str, Any] | None) -> DocumentType | None:
        if raw is None:
            return None
        return self._document_type.from_mongo(raw)

    async def get(self, document_id: ObjectId) -> DocumentType | None:
        """Retrieve a document by its primary key."""
        return self._load(await self.collection.find_one({"_id": document_id}))

    async def find(
        self,
        query: Mapping[str, Any],
        *,
        sort: SortSpec | None = None,
        limit: int | None = None,
    ) -> list[DocumentType]:
        """Return every document matching ``query``."""
        cursor = self.collection.find(dict(query))
        if sort:
            cursor = cursor.sort(list(sort))
        if limit:
            cursor = cursor.limit(limit)
        return [self._document_type.from_mongo(raw) async for raw in cursor]

    async def count(self, query: Mapping[str, Any]) -> int:
        return await self.collection.count_documents(dict(query))

    async def add(self, document: DocumentType) -> DocumentType:
        """Insert a new document."""
        await self.collection.insert_one(document.to_mongo())
        return document

    async def add_many(self, documents: Sequence[DocumentType]) -> list[DocumentType]:
        """Insert several documents as a single batch write."""
        if not documents:
            return []
        await self.collection.insert_many([document.to_mongo() for document in documents])
        return list(documents)

    async def delete(self, document_id: ObjectId) -> bool:
        result = await self.collection.delete_one({"_id": document_id})
        return result.deleted_count > 0
