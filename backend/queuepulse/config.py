"""
Application configuration using Pydantic Settings.
Loads from environment variables and .env file.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "QueuePulse"
    app_env: str = "development"  # development, staging, production
    debug: bool = True
    log_level: str = "INFO"

    # Database
    database_url: str = "postgresql://localhost:5432/queuepulse"

    # Admin API
    admin_api_key: Optional[str] = None  # When set, admin routes require X-Admin-API-Key

    # Frontend origins allowed by CORS
    cors_origins: list[str] = [
        "http://localhost:3000",  # Local web dev
        "http://localhost:8081",  # Expo web
        "http://localhost:19006",  # Expo web alt
    ]

    # Prediction engine
    live_window_minutes: int = 60
    checkin_cooldown_minutes: int = 15
    default_service_time: int = 5  # minutes per person ahead
    default_timezone: str = "UTC"

    @property
    def async_database_url(self) -> str:
        """Database URL using the asyncpg driver."""
        if self.database_url.startswith("postgresql://"):
            return self.database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return self.database_url

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
