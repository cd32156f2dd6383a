from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from dataclasses import dataclass
from itertools import count

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient
from motor.motor_asyncio import AsyncIOMotorDatabase

from taskshare.app.core.config import get_settings
from taskshare.app.db import close_document_store, init_document_store
from taskshare.app.main import create_app
from taskshare.app.realtime import broker

TEST_PASSWORD = "secret-pass"


@dataclass(slots=True)
class AuthenticatedUser:
    id: str
    name: str
    email: str
    password: str
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


UserFactory = Callable[..., Awaitable[AuthenticatedUser]]


@pytest.fixture(autouse=True)
def configure_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("TASKSHARE_ENVIRONMENT", "test")
    monkeypatch.setenv("TASKSHARE_JWT_SECRET_KEY", "test-secret-key")
    monkeypatch.setenv("TASKSHARE_WEBSOCKET_MAX_CONNECTIONS", "10")
    get_settings.cache_clear()
    try:
        yield
    finally:
        get_settings.cache_clear()


@pytest.fixture()
def mongo_client() -> AsyncMongoMockClient:
    return AsyncMongoMockClient(tz_aware=True)


@pytest.fixture()
def database(mongo_client: AsyncMongoMockClient) -> AsyncIOMotorDatabase:
    return mongo_client[get_settings().mongo_database]


@pytest_asyncio.fixture
async def app(mongo_client: AsyncMongoMockClient) -> AsyncIterator[FastAPI]:
    await broker.reset()
    await init_document_store(client=mongo_client, force=True)
    application = create_app()
    try:
        yield application
    finally:
        await broker.reset()
        await close_document_store()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as http_client:
        yield http_client


@pytest_asyncio.fixture
async def authenticated_user(client: AsyncClient) -> AsyncIterator[UserFactory]:
    counter = count()

    async def _factory(
        *,
        name: str | None = None,
        email: str | None = None,
        password: str = TEST_PASSWORD,
    ) -> AuthenticatedUser:
        index = next(counter)
        actual_name = name or f"User {index}"
        actual_email = email or f"user-{index}@example.com"
        response = await client.post(
            "/api/users",
            json={"name": actual_name, "email": actual_email, "password": password},
        )
        assert response.status_code == 201, response.text
        payload = response.json()
        return AuthenticatedUser(
            id=payload["user"]["id"],
            name=actual_name,
            email=actual_email,
            password=password,
            token=payload["token"],
        )

    yield _factory
