"""
Configuration settings for the protocol extraction backend.

Reads settings from the repository-level .env file and provides typed settings.
"""

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Resolve paths
BACKEND_DIR = Path(__file__).parent.parent
PROJECT_ROOT = BACKEND_DIR.parent
ENV_FILE = PROJECT_ROOT / ".env"

PRODUCTION_FRONTEND_ORIGIN = "https://protocol-extraction-5gcv.vercel.app"


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database - any SQLAlchemy URL; PostgreSQL in production, SQLite locally
    database_url: str = Field(
        default="sqlite:///./protocol_extraction.db",
        alias="DATABASE_URL",
        description="SQLAlchemy connection URL"
    )

    # Application settings
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=10000, alias="PORT")

    # CORS
    cors_allowed_origins: List[str] = Field(
        default=[PRODUCTION_FRONTEND_ORIGIN, "http://localhost:3000"],
        alias="CORS_ALLOWED_ORIGINS",
        description="Origins allowed to call the API (JSON list in .env)"
    )
    cors_fallback_origin: str = Field(
        default=PRODUCTION_FRONTEND_ORIGIN,
        alias="CORS_FALLBACK_ORIGIN",
        description="Origin logged as the expected caller when a request is rejected"
    )

    # Upload limits
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        alias="MAX_UPLOAD_BYTES",
        description="Largest accepted protocol JSON upload"
    )

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def database_host(self) -> str:
        """Host part of the database URL, safe to log."""
        url = self.database_url
        if "@" in url:
            return url.split("@")[1].split("/")[0]
        return url.split("///")[-1] if self.is_sqlite else "unknown"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience accessors
settings = get_settings()
