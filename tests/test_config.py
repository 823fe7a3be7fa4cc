"""Tests for environment-driven settings."""

import os
import subprocess
import sys

import pytest
from pydantic import ValidationError

from ratekeeper.core.config import (
    LogSettings,
    RateLimitSettings,
    Settings,
    get_settings,
    load_env_file,
)


def test_rate_limit_defaults() -> None:
    cfg = RateLimitSettings()

    assert cfg.enabled is True
    assert cfg.strategy == "token_bucket"
    assert cfg.capacity == 10
    assert cfg.window_seconds == 60.0
    assert cfg.max_clients is None
    assert cfg.include_headers is True


def test_rate_limit_reads_prefixed_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RATELIMIT_STRATEGY", "sliding_window")
    monkeypatch.setenv("RATELIMIT_CAPACITY", "3")
    monkeypatch.setenv("RATELIMIT_WINDOW_SECONDS", "5")
    monkeypatch.setenv("RATELIMIT_MAX_CLIENTS", "1000")
    monkeypatch.setenv("RATELIMIT_ENABLED", "false")

    cfg = RateLimitSettings()

    assert cfg.strategy == "sliding_window"
    assert cfg.capacity == 3
    assert cfg.window_seconds == 5.0
    assert cfg.max_clients == 1000
    assert cfg.enabled is False


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("RATELIMIT_CAPACITY", "0"),
        ("RATELIMIT_WINDOW_SECONDS", "0"),
        ("RATELIMIT_MAX_CLIENTS", "0"),
    ],
)
def test_rate_limit_rejects_non_positive_values(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str
) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        RateLimitSettings()


def test_log_settings_read_prefixed_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("LOG_FORMAT", "plain")

    cfg = LogSettings()

    assert cfg.level == "debug"
    assert cfg.format == "plain"
    assert cfg.output == "stdout"


def test_settings_composes_sections(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RATELIMIT_CAPACITY", "7")

    cfg = Settings()

    assert cfg.rate_limit.capacity == 7
    assert isinstance(cfg.log, LogSettings)


def test_get_settings_is_built_once_and_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RATELIMIT_CAPACITY", "4")

    first = get_settings()
    monkeypatch.setenv("RATELIMIT_CAPACITY", "9")

    assert get_settings() is first
    assert first.rate_limit.capacity == 4


def test_malformed_env_only_fails_configuration_users(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RATELIMIT_CAPACITY", "0")

    from ratekeeper import RateLimiter, Rule, Strategy

    limiter = RateLimiter(Strategy.TOKEN_BUCKET, Rule(capacity=1, window_seconds=1.0))
    assert limiter.handle_request("user-1", now=0.0) is True

    with pytest.raises(ValidationError):
        get_settings()
    with pytest.raises(ValidationError):
        RateLimiter.from_settings()


def test_package_imports_with_malformed_env() -> None:
    env = {**os.environ, "RATELIMIT_CAPACITY": "0", "RATELIMIT_WINDOW_SECONDS": "soon"}

    completed = subprocess.run(
        [sys.executable, "-c", "import ratekeeper, ratekeeper.integrations.fastapi"],
        env=env,
        capture_output=True,
        text=True,
        check=False,
    )

    assert completed.returncode == 0, completed.stderr


def test_load_env_file_reads_app_env_file(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.delenv("TESTING", raising=False)
    monkeypatch.setenv("APP_ENV", "staging")
    monkeypatch.setenv("RATELIMIT_STRATEGY", "fixed_window")
    monkeypatch.delenv("RATELIMIT_CAPACITY", raising=False)
    env_file = tmp_path / ".env.staging"
    env_file.write_text("RATELIMIT_CAPACITY=42\nRATELIMIT_STRATEGY=sliding_window\n")

    try:
        assert load_env_file(tmp_path) == env_file
        assert os.environ["RATELIMIT_CAPACITY"] == "42"
        assert os.environ["RATELIMIT_STRATEGY"] == "fixed_window"
    finally:
        os.environ.pop("RATELIMIT_CAPACITY", None)


def test_load_env_file_uses_working_directory(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.delenv("TESTING", raising=False)
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.chdir(tmp_path)

    assert load_env_file() is None

    (tmp_path / ".env.production").write_text("")
    assert load_env_file() == tmp_path / ".env.production"


def test_load_env_file_skipped_under_testing(tmp_path) -> None:
    (tmp_path / ".env.development").write_text("RATELIMIT_CAPACITY=42\n")

    assert load_env_file(tmp_path) is None
