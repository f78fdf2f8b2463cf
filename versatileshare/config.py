"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    secret_key: str = Field(
        description="Secret key for signing JWT tokens", min_length=1
    )
    access_token_expire_minutes: int = Field(
        description="Number of minutes before access tokens expire",
        gt=0,
    )
    app_timezone: str = Field(
        default="UTC",
        description="IANA name or UTC offset used to localize timestamps",
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:8080"],
        description="Origins allowed to reach the API and the notification socket",
    )
    notification_history_limit: int = Field(
        default=50,
        description="Maximum number of notifications returned by the history endpoint",
        gt=0,
    )
    log_level: str = Field(default="INFO", description="Level for the package logger")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"


class ClientSettings(BaseSettings):
    """Connection settings for the notification client agent."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding=ENV_FILE_ENCODING,
        env_prefix="VERSATILESHARE_CLIENT_",
        extra="ignore",
    )

    server_url: str = Field(
        default="ws://localhost:8000/notifications/ws",
        description="Websocket endpoint that streams notifications",
    )
    reconnect_attempts: int = Field(default=5, gt=0)
    reconnect_delay: float = Field(default=3.0, ge=0)
    reconnect_max_delay: float = Field(default=30.0, ge=0)
    handshake_timeout: float = Field(default=10.0, gt=0)
    dedupe_capacity: int = Field(default=500, gt=0)


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["ClientSettings", "Settings", "get_settings", "reset_settings_cache"]
