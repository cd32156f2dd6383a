from __future__ import annotations

import asyncio
import logging
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from ..core.config import get_settings

logger = logging.getLogger(__name__)

_client: AsyncIOMotorClient | Any | None = None
_database: AsyncIOMotorDatabase | Any | None = None
_initialized = False
_lock = asyncio.Lock()


def set_document_client(client: AsyncIOMotorClient | Any | None) -> None:
    """Inject a custom motor-compatible client instance (primarily for tests)."""

    global _client, _database, _initialized
    _client = client
    _database = None
    _initialized = False


async def _ensure_indexes(database: AsyncIOMotorDatabase) -> None:
    await database["users"].create_index([("email", ASCENDING)], unique=True, name="users_email_unique")
    await database["tasks"].create_index([("owner_id", ASCENDING)], name="tasks_owner")
    await database["tasks"].create_index([("shared_with", ASCENDING)], name="tasks_shared_with")
    await database["tasks"].create_index([("user_id", ASCENDING)], name="tasks_legacy_user")
    await database["notifications"].create_index(
        [("recipient_id", ASCENDING), ("created_at", DESCENDING)],
        name="notifications_inbox",
    )


async def init_document_store(*, client: AsyncIOMotorClient | Any | None = None, force: bool = False) -> None:
    """Connect to MongoDB and make sure the collection indexes exist."""

    global _client, _database, _initialized

    async with _lock:
        if client is not None:
            set_document_client(client)

        if _initialized and not force:
            return

        settings = get_settings()
        if _client is None:
            _client = AsyncIOMotorClient(settings.mongo_url, tz_aware=True, uuidRepresentation="standard")
        _database = _client[settings.mongo_database]
        await _ensure_indexes(_database)
        _initialized = True
        logger.info("Document store initialised", extra={"database": settings.mongo_database})


async def close_document_store() -> None:
    """Dispose the MongoDB client."""

    global _client, _database, _initialized
    client = _client
    if client is not None:
        client.close()
    _client = None
    _database = None
    _initialized = False


def get_database() -> AsyncIOMotorDatabase:
    """FastAPI dependency returning the active database handle."""

    if _database is None:
        raise RuntimeError("Document store has not been initialised.")
    return _database
