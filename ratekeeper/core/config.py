"""Library configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file, resolved from the
  caller's working directory

Nothing is read at import time: settings are built on first use by
get_settings(), so a malformed RATELIMIT_* variable only affects callers
that build a limiter from configuration.
"""

from __future__ import annotations

import functools
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Map environments to their respective .env files (relative to the working directory)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}


def _app_env() -> str:
    return os.getenv("APP_ENV", "development")


def load_env_file(base_dir: Path | None = None) -> Path | None:
    """Load the .env file for the current APP_ENV into os.environ.

    Variables already present in the environment win over the file.

    Args:
        base_dir: Directory holding the .env files (default: working directory).

    Returns:
        Path of the loaded file, or None when there is nothing to load.
    """

    if os.getenv("TESTING"):
        return None

    env_path = (base_dir or Path.cwd()) / ENV_FILE_MAP.get(_app_env(), ".env.development")
    if not env_path.is_file():
        return None

    load_dotenv(env_path, override=False)
    return env_path


def _build_rate_limit_settings() -> "RateLimitSettings":
    """Build rate limit settings from environment."""

    return RateLimitSettings()


def _build_log_settings() -> "LogSettings":
    """Build log settings from environment."""

    return LogSettings()


class RateLimitSettings(BaseSettings):
    """Rate limiter configuration shared by every client of one limiter."""

    enabled: bool = Field(
        True,
        description="Enable admission control; when false every request is admitted",
    )
    strategy: str = Field(
        "token_bucket",
        description="Algorithm: token_bucket, sliding_window or fixed_window",
    )
    capacity: int = Field(
        10,
        description="Maximum number of requests admitted per window (per client)",
        ge=1,
    )
    window_seconds: float = Field(
        60.0,
        description="Window duration in seconds",
        gt=0,
    )
    max_clients: int | None = Field(
        None,
        description="Bound on tracked clients (LRU eviction); unset means unbounded",
        ge=1,
    )
    include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATELIMIT_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Level for the ratekeeper logger")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(
        None,
        description="Log file path when output=file (default logs/ratekeeper.log)",
    )
    max_bytes: int = Field(
        0,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(
        5,
        description="Number of rotated log files to keep",
        ge=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main settings container.

    Build it through get_settings(), which loads the .env.{APP_ENV} file first.
    Raises validation errors when built if settings are malformed.
    """

    app_env: str = Field(default_factory=_app_env)
    rate_limit: RateLimitSettings = Field(default_factory=_build_rate_limit_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, built on first call.

    Raises:
        pydantic.ValidationError: If the environment holds malformed values.
    """

    load_env_file()
    return Settings()
