"""Library-level exception types.

This module defines the errors raised by rate limiter construction and
admission calls, enabling consistent handling and logging by callers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and callers.

    Fields are optional; each error fills the ones relevant to it.
    """

    code: str
    message: str
    hint: str
    field: str
    actual_value: Any
    strategy: str
    supported: list[str]
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for rate limiter failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class InvalidRuleError(ValidationAppError):
    """Raised when a Rule is built with a non-positive capacity or window."""


class UnknownStrategyError(AppError):
    """Raised when a limiter is configured with an unrecognized algorithm tag."""


class ClockUnavailableError(AppError):
    """Raised when the time source cannot provide a usable instant."""
