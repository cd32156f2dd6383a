"""Service helpers for managing user accounts."""

from __future__ import annotations

import logging
from typing import Iterable

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from ..core.security import get_password_hash
from ..errors import NotFoundError, ValidationError
from ..models import UserDocument, try_object_id
from ..repositories import UserRepository

logger = logging.getLogger(__name__)


class UserService:
    """Encapsulates user-specific business logic."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._repository = UserRepository(database)

    async def create_user(self, *, name: str, email: str, password: str) -> UserDocument:
        """Persist a new account with a hashed password."""

        user = UserDocument(
            name=name.strip(),
            email=email,
            password_hash=get_password_hash(password),
        )
        try:
            await self._repository.add(user)
        except DuplicateKeyError as exc:
            raise ValidationError("User already exists", code="user_exists") from exc
        logger.info("User registered", extra={"user_id": str(user.id)})
        return user

    async def get_user(self, user_id: ObjectId | str) -> UserDocument | None:
        object_id = try_object_id(user_id)
        if object_id is None:
            return None
        return await self._repository.get(object_id)

    async def get_user_by_email(self, email: str) -> UserDocument | None:
        return await self._repository.get_by_email(email)

    async def lookup_by_email(self, email: str) -> UserDocument:
        """Resolve a user by email, failing with ``NotFoundError``."""

        user = await self._repository.get_by_email(email)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def list_by_ids(self, ids: Iterable[ObjectId]) -> list[UserDocument]:
        return await self._repository.list_by_ids(ids)


__all__ = ["UserService"]
