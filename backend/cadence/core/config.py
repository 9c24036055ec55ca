"""
Application Configuration
=========================

Centralized configuration using Pydantic Settings.
All configuration is loaded from environment variables with sensible defaults.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Settings are validated using Pydantic and cached for performance.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------
    APP_NAME: str = "Cadence"
    APP_ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        if v is None:
            return "INFO"
        return str(v).strip().upper()

    # -------------------------------------------------------------------------
    # Database
    # -------------------------------------------------------------------------
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "cadence"
    POSTGRES_PASSWORD: str = "cadence_dev_password"
    POSTGRES_DB: str = "cadence"

    # Full async DSN override, e.g. sqlite+aiosqlite:///./cadence.db
    DATABASE_URL_OVERRIDE: Optional[str] = None

    # Test-only DB overrides (used by pytest fixtures)
    TEST_DATABASE_URL: Optional[str] = None

    @property
    def DATABASE_URL(self) -> str:
        """Build the async database URL."""
        if self.APP_ENV == "test" and self.TEST_DATABASE_URL:
            return self.TEST_DATABASE_URL
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def DATABASE_URL_SYNC(self) -> str:
        """Build the sync database URL (for Alembic)."""
        url = self.DATABASE_URL
        return (
            url.replace("postgresql+asyncpg://", "postgresql://", 1)
            .replace("sqlite+aiosqlite://", "sqlite://", 1)
        )

    # -------------------------------------------------------------------------
    # Check-ins
    # -------------------------------------------------------------------------
    # A check-in whose confidence moves at least this many points away from
    # the previous week's value publishes a confidence moment.
    CHECK_IN_MOMENT_DELTA: int = Field(default=20, ge=0, le=100)

    # Confidence recorded when only a reason is given and no earlier
    # check-in exists to copy the number from.
    REASON_ONLY_DEFAULT_CONFIDENCE: int = Field(default=5, ge=0, le=100)

    # -------------------------------------------------------------------------
    # Goal creation
    # -------------------------------------------------------------------------
    # Children created in bulk under a parent without a target date are due
    # this many days from today.
    DEFAULT_CHILD_TARGET_DAYS: int = 90


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once and reused.

    Returns:
        Settings: Validated settings instance
    """
    return Settings()


# Global settings instance
settings = get_settings()
