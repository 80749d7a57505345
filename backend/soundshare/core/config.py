"""Application configuration management."""
from __future__ import annotations

import json
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

_DEFAULT_ORIGINS = ["http://localhost", "http://localhost:8081"]


class Settings(BaseSettings):
    """Typed application settings loaded from the environment."""

    db_url: str = Field(default="sqlite+aiosqlite:///./soundshare.db", validation_alias="DB_URL")
    jwt_secret: SecretStr = Field(validation_alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
    env: Literal["local", "dev", "prod"] = Field(default="local", validation_alias="ENV")
    git_sha: str | None = Field(default=None, validation_alias="GIT_SHA")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    cors_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(_DEFAULT_ORIGINS),
        validation_alias="CORS_ALLOWED_ORIGINS",
    )

    push_provider: Literal["expo", "fcm", "disabled"] = Field(default="expo", validation_alias="PUSH_PROVIDER")
    expo_push_url: str = Field(
        default="https://exp.host/--/api/v2/push/send",
        validation_alias="EXPO_PUSH_URL",
    )
    expo_access_token: SecretStr | None = Field(default=None, validation_alias="EXPO_ACCESS_TOKEN")
    firebase_credentials: str | None = Field(default=None, validation_alias="FIREBASE_CREDENTIALS")
    push_timeout_seconds: float = Field(default=10.0, gt=0, validation_alias="PUSH_TIMEOUT_SECONDS")
    push_max_concurrency: int = Field(default=8, ge=1, validation_alias="PUSH_MAX_CONCURRENCY")
    push_prune_unregistered: bool = Field(default=True, validation_alias="PUSH_PRUNE_UNREGISTERED")
    notify_on_unfollow: bool = Field(default=True, validation_alias="NOTIFY_ON_UNFOLLOW")
    notification_drain_seconds: float = Field(default=30.0, gt=0, validation_alias="NOTIFICATION_DRAIN_SECONDS")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore", case_sensitive=False)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_cors(cls, value: object) -> list[str]:
        if isinstance(value, str) and value.strip().startswith("["):
            return json.loads(value)
        if isinstance(value, str):
            origins = [item.strip() for item in value.split(",") if item.strip()]
            return origins or list(_DEFAULT_ORIGINS)
        return value  # type: ignore[return-value]

    @property
    def is_local(self) -> bool:
        return self.env == "local"

    def require_production_secrets(self) -> None:
        if self.is_local:
            return
        if self.jwt_secret.get_secret_value() in {"", "CHANGE_ME"}:
            raise ValueError("JWT_SECRET must be set to a secure value in non-local environments.")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached settings instance."""

    settings = Settings()
    settings.require_production_secrets()
    return settings
