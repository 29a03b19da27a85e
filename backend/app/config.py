"""
Application configuration using Pydantic Settings.
Loads from environment variables and .env file.
"""

from functools import lru_cache
from typing import Optional

import pytz
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_EVENTS_TIMEZONE = "Europe/Rome"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Nightdesk"
    app_env: str = "development"  # development, staging, production
    debug: bool = True
    log_level: str = "INFO"

    # Database
    database_url: str = "postgresql://localhost:5432/nightdesk"

    # Event dates and times are wall-clock values in this zone
    events_timezone: str = DEFAULT_EVENTS_TIMEZONE
    debug_events: bool = False

    # JWT Authentication
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60 * 24 * 7  # 7 days

    # Scheduler trigger for the status sweep (GET /api/events/sync-status)
    cron_secret: Optional[str] = None

    # In-process status sweep, 0 = disabled (use an external scheduler)
    status_sync_interval_seconds: int = 0
    status_sync_days_back: int = 2
    status_sync_days_forward: int = 2

    @field_validator("events_timezone", mode="before")
    @classmethod
    def _validate_timezone(cls, value: Optional[str]) -> str:
        if not value:
            return DEFAULT_EVENTS_TIMEZONE
        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"Unknown EVENTS_TIMEZONE: {value}") from exc
        return value

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
