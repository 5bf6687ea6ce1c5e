"""
Configuration settings for the dashboard.

Reads the same repository-level .env file as the backend.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


ENV_FILE = Path(__file__).parent.parent.parent / ".env"


class DashboardSettings(BaseSettings):
    """Dashboard settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_base: str = Field(
        default="http://localhost:10000",
        alias="PROTOCOL_API_BASE",
        description="Base URL of the protocol extraction backend"
    )
    api_timeout: float = Field(
        default=15.0,
        alias="PROTOCOL_API_TIMEOUT",
        description="Seconds before a backend request is abandoned"
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    success_message_seconds: float = Field(
        default=3.0,
        alias="SUCCESS_MESSAGE_SECONDS",
        description="How long toast confirmations stay visible"
    )


@lru_cache()
def get_dashboard_settings() -> DashboardSettings:
    """Get cached settings instance."""
    return DashboardSettings()
