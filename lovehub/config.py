"""
LoveHub — Application Configuration

Loads all configuration from environment variables (and an optional .env file)
using Pydantic Settings.  A cached ``get_settings()`` helper is provided so that
FastAPI dependency-injection (and any other call-site) always receives the same
validated instance without re-parsing the environment on every request.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the LoveHub matching backend."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------ #
    # Entity store
    # ------------------------------------------------------------------ #
    STORE_BACKEND: str = "memory"  # memory / sql
    DATABASE_URL: str = ""
    STRICT_STORAGE: bool = True  # False: unreadable blobs load as empty
    SEED_ON_STARTUP: bool = True

    # ------------------------------------------------------------------ #
    # Redis – optional pub/sub fan-out for chat subscriptions
    # ------------------------------------------------------------------ #
    REDIS_URL: str = ""

    # ------------------------------------------------------------------ #
    # Conversation log
    # ------------------------------------------------------------------ #
    IMAGE_PLACEHOLDER: str = "Sent an image"
    CHAT_KEEPALIVE_SECONDS: float = 15.0

    # ------------------------------------------------------------------ #
    # Runtime environment
    # ------------------------------------------------------------------ #
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    REQUEST_TIMEOUT_SECONDS: float = 30.0

    # ------------------------------------------------------------------ #
    # CORS
    # ------------------------------------------------------------------ #
    ALLOWED_ORIGINS: str = "*"

    # ------------------------------------------------------------------ #
    # Derived helpers
    # ------------------------------------------------------------------ #
    @property
    def allowed_origins_list(self) -> list[str]:
        """Return ALLOWED_ORIGINS as a list split on commas."""
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",")]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @field_validator("STORE_BACKEND")
    @classmethod
    def _backend_must_be_known(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("memory", "sql"):
            raise ValueError(f"STORE_BACKEND must be 'memory' or 'sql', got {v!r}")
        return v

    @field_validator("CHAT_KEEPALIVE_SECONDS", "REQUEST_TIMEOUT_SECONDS")
    @classmethod
    def _interval_must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Interval must be positive, got {v}")
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached, validated ``Settings`` instance.

    Using ``@lru_cache`` guarantees the .env file is read and validated
    exactly once per process lifetime.  Import this function anywhere you
    need access to configuration::

        from lovehub.config import get_settings
        settings = get_settings()
    """
    return Settings()
