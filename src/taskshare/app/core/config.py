"""Environment-driven settings for the taskshare API.

Values come from ``TASKSHARE_*`` environment variables or the repository
``.env`` file. ``TASKSHARE_ENVIRONMENT`` picks a profile whose defaults fill
in anything not set explicitly.
"""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from ... import __version__ as package_version

REPOSITORY_ROOT = Path(__file__).resolve().parents[4]

EnvironmentName = Literal["development", "test", "ci"]

_ENVIRONMENT_ALIASES: dict[str, EnvironmentName] = {
    "dev": "development",
    "development": "development",
    "local": "development",
    "test": "test",
    "testing": "test",
    "ci": "ci",
}

PROFILE_DEFAULTS: dict[EnvironmentName, dict[str, Any]] = {
    "development": {"log_level": "DEBUG", "reload": True, "mongo_database": "taskshare"},
    "test": {"log_level": "WARNING", "reload": False, "mongo_database": "taskshare_test"},
    "ci": {"log_level": "INFO", "reload": False, "mongo_database": "taskshare_ci"},
}

CommaSeparated = Annotated[list[str], NoDecode]


def resolve_environment(value: object) -> EnvironmentName:
    """Map free-form environment names onto a known profile."""

    normalized = value.strip().lower() if isinstance(value, str) else ""
    return _ENVIRONMENT_ALIASES.get(normalized, "development")


class Settings(BaseSettings):
    """Runtime configuration for the taskshare API."""

    model_config = SettingsConfigDict(
        env_prefix="TASKSHARE_",
        env_file=(REPOSITORY_ROOT / ".env",),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    project_name: str = "Taskshare"
    environment: EnvironmentName = "development"
    version: str = package_version
    api_prefix: str = "/api"
    app_host: str = "0.0.0.0"
    app_port: int = 5000
    reload: bool = False
    log_level: str = "INFO"

    mongo_url: str = "mongodb://localhost:27017"
    mongo_database: str = "taskshare"

    cors_allow_origins: CommaSeparated = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"],
    )
    cors_allow_credentials: bool = True
    cors_allow_methods: CommaSeparated = Field(default_factory=lambda: ["*"])
    cors_allow_headers: CommaSeparated = Field(default_factory=lambda: ["*"])

    jwt_secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(default=60 * 24 * 7, gt=0)

    websocket_max_connections: int = 500
    notification_inbox_limit: int = 50

    @model_validator(mode="before")
    @classmethod
    def _fill_profile_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        environment = resolve_environment(data.get("environment"))
        return {**PROFILE_DEFAULTS[environment], **data, "environment": environment}

    @field_validator("cors_allow_origins", "cors_allow_methods", "cors_allow_headers", mode="before")
    @classmethod
    def _split_comma_separated(cls, value: object) -> list[str]:
        items = value.split(",") if isinstance(value, str) else value
        if not isinstance(items, (list, tuple, set)):
            return []
        return [str(item).strip() for item in items if str(item).strip()]

    @field_validator("websocket_max_connections", "notification_inbox_limit", mode="before")
    @classmethod
    def _at_least_one(cls, value: object) -> int:
        try:
            return max(int(value), 1)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 1

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> str:
        return value.upper() if isinstance(value, str) else "INFO"

    @property
    def access_token_ttl(self) -> timedelta:
        return timedelta(minutes=self.access_token_expire_minutes)

    @property
    def router_prefix(self) -> str:
        """``api_prefix`` with one leading slash and no trailing slash; ``""`` for root."""

        stripped = self.api_prefix.strip().strip("/")
        return f"/{stripped}" if stripped else ""


@lru_cache()
def get_settings() -> Settings:
    """Return a cached ``Settings`` instance."""

    return Settings()
