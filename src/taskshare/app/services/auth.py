"""Registration, login and token resolution workflows."""

from __future__ import annotations

from jose import JWTError
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError as PydanticValidationError

from ..core.config import Settings
from ..core.security import GeneratedToken, create_access_token, decode_token, verify_password
from ..errors import UnauthenticatedError, ValidationError
from ..models import UserDocument
from ..schemas.auth import TokenPayload
from .users import UserService


class AuthService:
    """High-level authentication workflows."""

    def __init__(self, database: AsyncIOMotorDatabase, settings: Settings) -> None:
        self._settings = settings
        self._user_service = UserService(database)

    async def register_user(self, *, name: str, email: str, password: str) -> UserDocument:
        existing = await self._user_service.get_user_by_email(email)
        if existing is not None:
            raise ValidationError("User already exists", code="user_exists")
        return await self._user_service.create_user(name=name, email=email, password=password)

    async def authenticate_user(self, email: str, password: str) -> UserDocument:
        """Return the user owning the credentials or raise ``UnauthenticatedError``."""

        user = await self._user_service.get_user_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            raise UnauthenticatedError("Invalid email or password", code="invalid_credentials")
        return user

    def build_token(self, user: UserDocument) -> GeneratedToken:
        return create_access_token(subject=str(user.id), settings=self._settings)

    async def resolve_token(self, token: str) -> UserDocument:
        """Decode an access token and load the user it was issued to."""

        try:
            payload = decode_token(
                token=token,
                secret=self._settings.jwt_secret_key,
                algorithm=self._settings.jwt_algorithm,
            )
            token_payload = TokenPayload.model_validate(payload)
        except (JWTError, PydanticValidationError) as exc:
            raise UnauthenticatedError("Not authorized, token failed") from exc

        user = await self._user_service.get_user(token_payload.sub)
        if user is None:
            raise UnauthenticatedError("Not authorized, user not found")
        return user


__all__ = ["AuthService"]
