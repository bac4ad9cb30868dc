"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

``settings.storage`` is a startup snapshot. The HTTP layer calls
``load_storage_settings()`` per request so durable-store credentials can
change without a restart.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production injects via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings.
# Nested BaseSettings don't inherit env_file.
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_log_settings() -> "LogSettings":
    return LogSettings()


def _build_app_settings() -> "AppSettings":
    return AppSettings()


def _build_storage_settings() -> "StorageSettings":
    return StorageSettings()  # type: ignore[call-arg]


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(
        None,
        description="Log file path when output=file (default logs/app.log)",
    )
    max_bytes: int = Field(
        0,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated log files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read/propagate the correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    admission_enabled: bool = Field(
        True,
        description="Suppress repeated counts from the same client within a window",
    )
    admission_window_seconds: float = Field(
        60.0,
        description="Admission window size in seconds",
        ge=1,
    )
    admission_max_clients: int = Field(
        10_000,
        description="Maximum tracked client identifiers (0 for unbounded)",
        ge=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class StorageSettings(BaseSettings):
    """Counter storage configuration.

    The durable store is identified by an endpoint URL and an access token,
    accepted under two naming conventions. The standard ``KV_REST_API_*``
    pair is checked first, then the legacy ``VERCEL_REST_API_*`` pair. A pair
    only counts when both of its members are set.
    """

    kv_rest_api_url: str | None = Field(
        None,
        validation_alias=AliasChoices("kv_rest_api_url", "KV_REST_API_URL"),
    )
    kv_rest_api_token: str | None = Field(
        None,
        validation_alias=AliasChoices("kv_rest_api_token", "KV_REST_API_TOKEN"),
    )
    vercel_rest_api_url: str | None = Field(
        None,
        validation_alias=AliasChoices("vercel_rest_api_url", "VERCEL_REST_API_URL"),
    )
    vercel_rest_api_token: str | None = Field(
        None,
        validation_alias=AliasChoices("vercel_rest_api_token", "VERCEL_REST_API_TOKEN"),
    )
    kv_url: str | None = Field(
        None,
        description="Redis connection URL; selects the Redis client over REST",
        validation_alias=AliasChoices("kv_url", "KV_URL"),
    )
    counter_key: str = Field(
        "visit-counter",
        description="Logical key holding the counter",
        validation_alias=AliasChoices("counter_key", "COUNTER_KEY"),
    )
    counter_file: str = Field(
        "counter.json",
        description="Local counter file, relative to the working directory",
        validation_alias=AliasChoices("counter_file", "COUNTER_FILE"),
    )
    request_timeout_seconds: float = Field(
        10.0,
        description="Timeout for durable-store calls in seconds",
        gt=0,
        validation_alias=AliasChoices(
            "request_timeout_seconds", "COUNTER_REQUEST_TIMEOUT_SECONDS"
        ),
    )

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )

    def durable_credentials(self) -> tuple[str, str] | None:
        """Return the first complete ``(endpoint, token)`` pair, if any."""

        if self.kv_rest_api_url and self.kv_rest_api_token:
            return self.kv_rest_api_url, self.kv_rest_api_token
        if self.vercel_rest_api_url and self.vercel_rest_api_token:
            return self.vercel_rest_api_url, self.vercel_rest_api_token
        return None

    def cache_key(self) -> tuple:
        """Hashable snapshot used to detect configuration changes."""

        return (
            self.durable_credentials(),
            self.kv_url,
            self.counter_key,
            self.counter_file,
            self.request_timeout_seconds,
        )


def load_storage_settings() -> StorageSettings:
    """Read storage settings from the current environment."""

    return _build_storage_settings()


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.

    Environments:
    - development: Local development, file-backed counter by default
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    log: LogSettings = Field(default_factory=_build_log_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    storage: StorageSettings = Field(default_factory=_build_storage_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
