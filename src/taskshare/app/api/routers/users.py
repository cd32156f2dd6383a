"""Routes for registration, login and user lookups."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query, status
from pydantic import EmailStr

from ...core.config import Settings
from ...deps import (
    AuthServiceDependency,
    CurrentUserDependency,
    SettingsDependency,
    UserServiceDependency,
)
from ...models import UserDocument
from ...schemas import AuthResponse, LoginRequest, RegisterRequest, UserPublic
from ...services import AuthService

router = APIRouter(prefix="/users", tags=["users"])


def _map_user(user: UserDocument) -> UserPublic:
    return UserPublic.model_validate(user)


def _auth_response(service: AuthService, user: UserDocument, settings: Settings) -> AuthResponse:
    token = service.build_token(user)
    return AuthResponse(
        user=_map_user(user),
        token=token.token,
        expires_in=int(settings.access_token_ttl.total_seconds()),
    )


@router.post(
    "",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user account",
)
async def register(
    payload: RegisterRequest,
    service: AuthServiceDependency,
    settings: SettingsDependency,
) -> AuthResponse:
    user = await service.register_user(
        name=payload.name,
        email=payload.email,
        password=payload.password,
    )
    return _auth_response(service, user, settings)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Authenticate using email and password",
)
async def login(
    payload: LoginRequest,
    service: AuthServiceDependency,
    settings: SettingsDependency,
) -> AuthResponse:
    user = await service.authenticate_user(payload.email, payload.password)
    return _auth_response(service, user, settings)


@router.get("/profile", response_model=UserPublic, summary="Current user profile")
async def read_profile(current_user: CurrentUserDependency) -> UserPublic:
    return _map_user(current_user)


@router.get("/lookup", response_model=UserPublic, summary="Find a user by email address")
async def lookup_user(
    email: Annotated[EmailStr, Query(description="Email address of the user to resolve.")],
    service: UserServiceDependency,
    _: CurrentUserDependency,
) -> UserPublic:
    """Resolve a user so tasks can be shared by email address."""
    return _map_user(await service.lookup_by_email(email))
