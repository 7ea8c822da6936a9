"""Application settings loaded from the environment."""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the notification service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "notification-queue"
    app_env: str = "development"
    database_url: str = "sqlite+aiosqlite:///./notifications.db"
    log_level: str = "INFO"
    enabled_feature_flags: Annotated[list[str], NoDecode] = Field(default_factory=list)
    notification_requirement_timeout_seconds: float | None = Field(default=None, gt=0)

    @field_validator("enabled_feature_flags", mode="before")
    @classmethod
    def _split_feature_flags(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [flag.strip() for flag in value.split(",") if flag.strip()]
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"


settings = Settings()
