"""Schemas describing registration and login payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .user import UserPublic


class RegisterRequest(BaseModel):
    """Incoming payload for registering a new user."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"name": "Ada Lovelace", "email": "ada@example.com", "password": "engine42"}
        }
    )

    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(min_length=6)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        name = value.strip()
        if not name:
            raise ValueError("Name must not be blank.")
        return name


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class AuthResponse(BaseModel):
    """Issued access token together with the authenticated user."""

    user: UserPublic
    token: str
    token_type: str = Field(default="bearer", frozen=True)
    expires_in: int


class TokenPayload(BaseModel):
    """Validated JWT payload."""

    model_config = ConfigDict(extra="ignore")

    sub: str
    exp: datetime
    iat: datetime
    jti: str


__all__ = ["AuthResponse", "LoginRequest", "RegisterRequest", "TokenPayload"]
