"""Centralized application configuration using Pydantic settings."""
from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven configuration for the reservation service."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    database_url: str = Field(
        default="sqlite:///./reservations.db",
        description="SQLAlchemy database URL holding the room snapshot.",
    )
    persistence_enabled: bool = Field(
        default=True,
        description="Persist snapshots to the database; when off, snapshots live in memory only.",
    )
    snapshot_key: str = Field(default="rooms", description="Key under which the room snapshot is stored")
    view_cache_ttl: int = Field(default=300, description="TTL (s) for rendered room/reservation views")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], description="Allowed CORS origins")
    default_rate_limit: str = Field(default="60/minute", description="Global rate limiting rule")
    reserve_rate_limit: str = Field(default="20/minute", description="Limit for reservation submissions and cancellations")
    rate_limiting_enabled: bool = Field(default=True, description="Toggle to disable SlowAPI limits (useful in tests)")
    collapse_error_messages: bool = Field(
        default=True,
        description="Report every rejected reservation with one generic user-facing message.",
    )
    log_dir: str = Field(default="logs", description="Directory for the HTTP audit log")


@lru_cache
def get_settings() -> Settings:
    """Return a cached instance of the Settings object."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the cached Settings instance (useful for tests)."""

    get_settings.cache_clear()
