"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Force DEBUG log level regardless of LOG_LEVEL",
    )
    api_key_required: bool = Field(
        True,
        description="Whether every /v1 endpoint (quota, usage and premium) requires an API key",
    )
    api_keys: str | None = Field(
        None,
        description="Comma-separated list of valid operator API keys",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class QuotaSettings(BaseSettings):
    """Freemium quota policy."""

    free_limit: int = Field(
        3,
        description="Actions allowed per rolling window for free users",
        ge=1,
    )
    window_seconds: int = Field(
        24 * 60 * 60,
        description="Length of the rolling usage window in seconds",
        ge=1,
    )
    usage_retention_seconds: int = Field(
        48 * 60 * 60,
        description="Store TTL applied to a user's usage log on every write",
        ge=1,
    )
    premium_default_days: int = Field(
        365,
        description="Premium duration used when a grant does not specify one",
        ge=1,
    )
    premium_grace_days: int = Field(
        7,
        description="Days the store keeps a premium record past its expiry",
        ge=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="QUOTA_",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def _retention_covers_window(self) -> QuotaSettings:
        # The usage log must outlive the window it is counted over
        if self.usage_retention_seconds < self.window_seconds:
            raise ValueError(
                "usage_retention_seconds must be greater than or equal to window_seconds"
            )
        return self


class StoreSettings(BaseSettings):
    """Key-value store backend selection."""

    backend: str = Field(
        "memory",
        description="Key-value backend: 'memory' (single process) or 'redis'",
    )
    redis_url: str = Field(
        "redis://localhost:6379/0",
        description="Redis connection URL when backend=redis",
    )
    socket_timeout_seconds: float = Field(
        2.0,
        description="Per-operation Redis socket timeout in seconds",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: 'json' or 'plain'")
    output: str = Field("stdout", description="Log destination: 'stdout' or 'file'")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int | None = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (None disables rotation)",
    )
    backup_count: int = Field(5, description="Rotated log files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Nested settings are created via default_factory so env loading works.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=AppSettings)
    quota: QuotaSettings = Field(default_factory=QuotaSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
