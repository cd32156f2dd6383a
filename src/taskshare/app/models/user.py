from __future__ import annotations

from pydantic import Field, field_validator

from .common import MongoDocument, UtcDatetime, utcnow


class UserDocument(MongoDocument):
    """Registered account."""

    collection_name = "users"

    name: str
    email: str
    password_hash: str
    created_at: UtcDatetime = Field(default_factory=utcnow)

    @field_validator("email", mode="before")
    @classmethod
    def _normalise_email(cls, value: object) -> str:
        return str(value or "").strip().lower()


__all__ = ["UserDocument"]
