"""Tests for client identifier hashing and structured log output."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from ratekeeper import RateLimiter, Rule, Strategy, configure_logging
from ratekeeper.core.config import LogSettings
from ratekeeper.core.logging import (
    ClientIdHashingFilter,
    JsonFormatter,
    hash_client_id,
    record_extras,
)


def _capture(name: str) -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(ClientIdHashingFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


@pytest.fixture
def restore_library_logger():
    logger = logging.getLogger("ratekeeper")
    handlers, level = list(logger.handlers), logger.level
    yield logger
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)


def test_filter_replaces_client_identifiers_with_their_hash():
    logger, stream = _capture("test_hashing")

    logger.info(
        "rate_limit.exceeded",
        extra={
            "client_id": "alice@example.com",
            "rate_limit_key": "ip:10.0.0.1",
            "strategy": "token_bucket",
        },
    )

    payload = json.loads(stream.getvalue())
    assert payload["client_id"] == hash_client_id("alice@example.com")
    assert payload["rate_limit_key"] == hash_client_id("ip:10.0.0.1")
    assert payload["strategy"] == "token_bucket"
    assert "alice@example.com" not in stream.getvalue()


def test_filter_hashes_nested_identifiers():
    logger, stream = _capture("test_nested")

    logger.info(
        "nested_event",
        extra={"headers": {"X-API-Key": "secret-key", "user-agent": "pytest"}},
    )

    payload = json.loads(stream.getvalue())
    assert payload["headers"]["X-API-Key"] == hash_client_id("secret-key")
    assert payload["headers"]["user-agent"] == "pytest"


def test_filter_leaves_unrelated_fields_alone():
    logger, stream = _capture("test_untouched")

    logger.info("event", extra={"password": "hunter2", "client_hash": "abcd1234"})

    payload = json.loads(stream.getvalue())
    assert payload["password"] == "hunter2"
    assert payload["client_hash"] == "abcd1234"


def test_filter_accepts_custom_identifier_keys():
    record = logging.LogRecord("t", logging.INFO, __file__, 1, "msg", (), None)
    record.tenant = "acme"
    record.client_id = "alice"

    ClientIdHashingFilter(identifier_keys=["Tenant"]).filter(record)

    assert record.tenant == hash_client_id("acme")
    assert record.client_id == "alice"


def test_record_extras_skips_standard_attributes():
    record = logging.LogRecord("t", logging.INFO, __file__, 1, "msg", (), None)
    record.strategy = "fixed_window"

    assert record_extras(record) == {"strategy": "fixed_window"}


def test_json_formatter_emits_structured_fields():
    logger, stream = _capture("test_json")

    logger.info("rate_limit.rejected", extra={"strategy": "fixed_window", "remaining": 0})

    payload = json.loads(stream.getvalue())
    assert payload["message"] == "rate_limit.rejected"
    assert payload["level"] == "info"
    assert payload["logger"] == "test_json"
    assert payload["strategy"] == "fixed_window"
    assert payload["remaining"] == 0


def test_hash_client_id_is_stable_and_short():
    assert hash_client_id("user-1") == hash_client_id("user-1")
    assert hash_client_id("user-1") != hash_client_id("User-1")
    assert len(hash_client_id("user-1")) == 16


def test_limiter_decisions_reach_configured_handler_hashed(restore_library_logger, capsys):
    configure_logging(LogSettings(level="debug"))
    limiter = RateLimiter(Strategy.FIXED_WINDOW, Rule(capacity=1, window_seconds=5.0))

    limiter.handle_request("alice@example.com", now=0.0)
    limiter.handle_request("alice@example.com", now=1.0)

    out = capsys.readouterr().out
    events = [json.loads(line) for line in out.splitlines()]
    decisions = [e for e in events if e["message"].startswith("rate_limit.")]

    assert [e["message"] for e in decisions] == ["rate_limit.allowed", "rate_limit.rejected"]
    assert all(e["client_hash"] == hash_client_id("alice@example.com") for e in decisions)
    assert decisions[0]["logger"] == "ratekeeper.services.rate_limiter"
    assert "alice@example.com" not in out


def test_configure_logging_only_touches_library_logger(restore_library_logger):
    root = logging.getLogger()
    root_handlers = list(root.handlers)

    handler = configure_logging(LogSettings(level="warning", format="plain"))

    assert handler in restore_library_logger.handlers
    assert restore_library_logger.level == logging.WARNING
    assert root.handlers == root_handlers
    assert not isinstance(handler.formatter, JsonFormatter)


def test_configure_logging_replaces_its_own_handler(restore_library_logger):
    own = logging.NullHandler()
    restore_library_logger.addHandler(own)

    first = configure_logging(LogSettings())
    second = configure_logging(LogSettings())

    assert first not in restore_library_logger.handlers
    assert second in restore_library_logger.handlers
    assert own in restore_library_logger.handlers


def test_configure_logging_rotating_file(restore_library_logger, tmp_path):
    log_file = tmp_path / "logs" / "ratekeeper.log"

    handler = configure_logging(
        LogSettings(output="file", file_path=str(log_file), max_bytes=1024)
    )
    logging.getLogger("ratekeeper.test").warning("hello", extra={"client_id": "bob"})
    handler.flush()

    assert log_file.is_file()
    payload = json.loads(log_file.read_text().splitlines()[-1])
    assert payload["message"] == "hello"
    assert payload["client_id"] == hash_client_id("bob")
