"""Rate limiter orchestrator.

Selects the algorithm family once at construction, routes every request to
the calling client's own strategy instance and returns the decision.

Design goals:
- One algorithm and one Rule per limiter, fixed for its lifetime.
- No per-request branching on the algorithm tag.
- Time is read from an injected clock so tests control ``now``.
"""

from __future__ import annotations

import functools
import logging
import math
from numbers import Real
from typing import Any

from ratekeeper.adapters.rate_limit.base import RateLimitResult, Rule
from ratekeeper.adapters.rate_limit.factory import Strategy, get_strategy_class, resolve_strategy
from ratekeeper.core.clock import Clock, monotonic_clock
from ratekeeper.core.config import RateLimitSettings, get_settings
from ratekeeper.core.errors import ClockUnavailableError, InvalidRuleError, ValidationAppError
from ratekeeper.core.logging import hash_client_id
from ratekeeper.services.client_registry import ClientRegistry

logger = logging.getLogger(__name__)


class RateLimiter:
    """Per-client admission control with a pluggable algorithm.

    Usage:
        limiter = RateLimiter(Strategy.TOKEN_BUCKET, Rule(capacity=5, window_seconds=60))

        if limiter.handle_request("user-123"):
            # Process request
            pass
        else:
            # Reject (e.g. HTTP 429)
            pass
    """

    def __init__(
        self,
        strategy: Strategy | str,
        rule: Rule,
        *,
        clock: Clock = monotonic_clock,
        max_clients: int | None = None,
    ) -> None:
        """Initialize the limiter.

        Args:
            strategy: Algorithm family shared by all clients.
            rule: Capacity and window shared by all clients.
            clock: Time source returning seconds as a float.
            max_clients: Optional LRU bound on tracked clients.

        Raises:
            UnknownStrategyError: If the strategy tag is not recognized.
            InvalidRuleError: If rule is not a Rule.
        """
        if not isinstance(rule, Rule):
            raise InvalidRuleError(
                code="invalid_rule",
                message=f"rule must be a Rule, got {type(rule).__name__}",
            )

        self._strategy = resolve_strategy(strategy)
        self._rule = rule
        self._clock = clock
        self._registry = ClientRegistry(
            functools.partial(get_strategy_class(self._strategy), rule),
            max_clients=max_clients,
        )

    @classmethod
    def from_settings(
        cls,
        rate_limit_settings: RateLimitSettings | None = None,
        *,
        clock: Clock = monotonic_clock,
    ) -> "RateLimiter":
        """Build a limiter from configuration (defaults to global settings)."""

        cfg = rate_limit_settings or get_settings().rate_limit
        return cls(
            cfg.strategy,
            Rule(capacity=cfg.capacity, window_seconds=cfg.window_seconds),
            clock=clock,
            max_clients=cfg.max_clients,
        )

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"RateLimiter(strategy={self._strategy.value}, capacity={self._rule.capacity}, "
            f"window_seconds={self._rule.window_seconds}, clients={len(self._registry)})"
        )

    @property
    def strategy(self) -> Strategy:
        return self._strategy

    @property
    def rule(self) -> Rule:
        return self._rule

    @property
    def registry(self) -> ClientRegistry:
        return self._registry

    def handle_request(self, client_id: str, now: float | None = None) -> bool:
        """Check whether a client's request is admitted.

        Args:
            client_id: Rate limit key (e.g., user ID, API key, IP address).
            now: Explicit instant in seconds; read from the clock when omitted.

        Returns:
            True if admitted, False if rate limited.
        """
        return self.check(client_id, now).allowed

    def check(self, client_id: str, now: float | None = None) -> RateLimitResult:
        """Check the rate limit and get a detailed result.

        Args:
            client_id: Rate limit key.
            now: Explicit instant in seconds; read from the clock when omitted.

        Returns:
            RateLimitResult with the decision and remaining budget.

        Raises:
            ValidationAppError: If client_id is empty or now is not a finite number.
            ClockUnavailableError: If the clock fails or returns garbage.
        """
        if not isinstance(client_id, str) or not client_id:
            raise ValidationAppError(
                code="invalid_client_id",
                message="client_id must be a non-empty string",
            )

        instant = self._read_clock() if now is None else self._validate_instant(now)
        result = None
        while result is None:
            # An eviction between lookup and decision retires the instance;
            # look the client up again rather than deciding on a dropped one.
            strategy = self._registry.get_or_create(client_id, instant)
            result = strategy.try_check(instant)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "rate_limit.allowed" if result.allowed else "rate_limit.rejected",
                extra={
                    "client_hash": hash_client_id(client_id),
                    "strategy": self._strategy.value,
                    "limit": result.limit,
                    "remaining": result.remaining,
                    "retry_after_s": result.retry_after_seconds,
                },
            )

        return result

    def stats(self) -> dict[str, Any]:
        """Return limiter configuration and registry counters."""

        return {
            "strategy": self._strategy.value,
            "capacity": self._rule.capacity,
            "window_seconds": self._rule.window_seconds,
            **self._registry.stats(),
        }

    def _read_clock(self) -> float:
        try:
            value = self._clock()
        except Exception as exc:
            logger.error(
                "rate_limit.clock_failed",
                extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            raise ClockUnavailableError(
                code="clock_unavailable",
                message="Time source failed; cannot decide admission",
            ) from exc

        if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
            raise ClockUnavailableError(
                code="clock_unavailable",
                message=f"Time source returned an unusable instant: {value!r}",
            )
        return float(value)

    @staticmethod
    def _validate_instant(now: float) -> float:
        if isinstance(now, bool) or not isinstance(now, Real) or not math.isfinite(now):
            raise ValidationAppError(
                code="invalid_instant",
                message=f"now must be a finite number of seconds, got {now!r}",
            )
        return float(now)
