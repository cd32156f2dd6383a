"""Shared document helpers for MongoDB-backed models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, ClassVar, Mapping

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer, PlainValidator, WithJsonSchema


def utcnow() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def ensure_tzaware(timestamp: datetime) -> datetime:
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp


def parse_object_id(value: Any) -> ObjectId:
    """Coerce ``value`` into an ``ObjectId`` or raise ``ValueError``."""

    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str):
        try:
            return ObjectId(value)
        except InvalidId as exc:
            raise ValueError(f"'{value}' is not a valid identifier") from exc
    raise ValueError("identifier must be a 24 character hex string")


def try_object_id(value: Any) -> ObjectId | None:
    """Return ``value`` as an ``ObjectId`` or ``None`` when malformed."""

    try:
        return parse_object_id(value)
    except ValueError:
        return None


ObjectIdField = Annotated[
    ObjectId,
    PlainValidator(parse_object_id),
    PlainSerializer(str, when_used="json"),
    WithJsonSchema({"type": "string", "pattern": "^[0-9a-f]{24}$"}),
]

UtcDatetime = Annotated[datetime, AfterValidator(ensure_tzaware)]


class MongoDocument(BaseModel):
    """Base class for models persisted as MongoDB documents."""

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        populate_by_name=True,
        use_enum_values=True,
    )

    collection_name: ClassVar[str]

    id: ObjectIdField = Field(default_factory=ObjectId, alias="_id")

    @classmethod
    def from_mongo(cls, raw: Mapping[str, Any]):
        return cls.model_validate(dict(raw))

    def to_mongo(self) -> dict[str, Any]:
        """Return the document as stored, keeping BSON-native values."""
        return self.model_dump(by_alias=True)


__all__ = [
    "MongoDocument",
    "ObjectIdField",
    "UtcDatetime",
    "ensure_tzaware",
    "parse_object_id",
    "try_object_id",
    "utcnow",
]
