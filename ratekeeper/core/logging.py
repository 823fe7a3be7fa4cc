"""Logging helpers for ratekeeper.

The library never logs raw client identifiers: call sites pass
``hash_client_id(client_id)`` as ``client_hash``. Callers that attach their
own identifiers to records (``client_id``, ``rate_limit_key``, ``api_key``)
get the same hash substituted by ClientIdHashingFilter, so their lines and
the limiter's lines correlate without exposing the key.

configure_logging() installs one handler on the ``ratekeeper`` logger and
leaves the host application's root logger alone.
"""

from __future__ import annotations

import hashlib
import json
import logging
import sys
from datetime import datetime, timezone
from logging import LogRecord
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Mapping

from ratekeeper.core.config import LogSettings, get_settings

LIBRARY_LOGGER = "ratekeeper"

# Record fields that carry client identifiers and must never be written raw
IDENTIFIER_KEYS: frozenset[str] = frozenset(
    {"client_id", "rate_limit_key", "api_key", "x-api-key"}
)

# Attributes every LogRecord has; anything else on a record came from ``extra``
_RESERVED_ATTRS = frozenset(
    vars(LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}

_HANDLER_MARKER = "_ratekeeper_handler"


def hash_client_id(client_id: str) -> str:
    """Hash a client identifier for logging without exposing it."""

    return hashlib.sha256(client_id.encode()).hexdigest()[:16]


def _hash_identifiers(value: Any, identifier_keys: frozenset[str]) -> Any:
    if isinstance(value, Mapping):
        return {
            k: hash_client_id(str(v))
            if k.lower() in identifier_keys and v is not None
            else _hash_identifiers(v, identifier_keys)
            for k, v in value.items()
        }
    return value


def record_extras(record: LogRecord) -> dict[str, Any]:
    """Return the structured fields a call site passed via ``extra``."""

    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class ClientIdHashingFilter(logging.Filter):
    """Replace client identifiers on a record with their short hash."""

    def __init__(self, identifier_keys: Iterable[str] | None = None) -> None:
        super().__init__()
        self.identifier_keys = frozenset(
            key.lower() for key in (identifier_keys or IDENTIFIER_KEYS)
        )

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        for key, value in record_extras(record).items():
            if key.lower() in self.identifier_keys and value is not None:
                setattr(record, key, hash_client_id(str(value)))
            elif isinstance(value, Mapping):
                setattr(record, key, _hash_identifiers(value, self.identifier_keys))
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record: envelope fields plus the record's extras."""

    def __init__(self, *, ensure_ascii: bool = True) -> None:
        super().__init__()
        self.ensure_ascii = ensure_ascii

    def format(self, record: LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(record_extras(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, ensure_ascii=self.ensure_ascii)


def _build_handler(log_settings: LogSettings) -> logging.Handler:
    """Stdout handler, or a (rotating) file handler when output=file."""

    if log_settings.output.lower() != "file":
        return logging.StreamHandler(sys.stdout)

    file_path = Path(log_settings.file_path or "logs/ratekeeper.log")
    file_path.parent.mkdir(parents=True, exist_ok=True)
    if log_settings.max_bytes:
        return RotatingFileHandler(
            file_path,
            maxBytes=log_settings.max_bytes,
            backupCount=log_settings.backup_count,
            encoding="utf-8",
        )
    return logging.FileHandler(file_path, encoding="utf-8")


def configure_logging(
    log_settings: LogSettings | None = None,
    *,
    logger_name: str = LIBRARY_LOGGER,
) -> logging.Handler:
    """Attach a hashing, formatted handler to the library logger.

    Calling it again replaces the handler installed by the previous call;
    handlers added by the application are kept.

    Args:
        log_settings: Optional log settings; built from the environment if omitted.
        logger_name: Logger to configure (default ``ratekeeper``).

    Returns:
        The installed handler.
    """

    cfg = log_settings or get_settings().log

    handler = _build_handler(cfg)
    handler.addFilter(ClientIdHashingFilter())
    if cfg.format.lower() == "plain":
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    else:
        handler.setFormatter(JsonFormatter())
    setattr(handler, _HANDLER_MARKER, True)

    logger = logging.getLogger(logger_name)
    for previous in [h for h in logger.handlers if getattr(h, _HANDLER_MARKER, False)]:
        logger.removeHandler(previous)
        previous.close()
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, cfg.level.upper(), logging.INFO))

    return handler
