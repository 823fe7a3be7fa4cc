"""Rate limiting strategy interfaces.

The limiter depends on this abstraction (not the concrete algorithms) so the
algorithm family can be selected once at construction and swapped freely.
"""

from __future__ import annotations

import math
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from numbers import Real

from ratekeeper.core.errors import InvalidRuleError


@dataclass(frozen=True)
class Rule:
    """Capacity and window shared by every client of one limiter.

    Attributes:
        capacity: Maximum number of requests admitted per window.
        window_seconds: Duration of the window in seconds.

    Raises:
        InvalidRuleError: If capacity or window_seconds is not positive.
    """

    capacity: int
    window_seconds: float

    def __post_init__(self) -> None:
        if isinstance(self.capacity, bool) or not isinstance(self.capacity, int):
            raise InvalidRuleError(
                code="invalid_rule",
                message="capacity must be an integer",
                details={"field": "capacity", "actual_value": self.capacity},
            )
        if self.capacity < 1:
            raise InvalidRuleError(
                code="invalid_rule",
                message="capacity must be >= 1",
                details={"field": "capacity", "actual_value": self.capacity},
            )
        if isinstance(self.window_seconds, bool) or not isinstance(self.window_seconds, Real):
            raise InvalidRuleError(
                code="invalid_rule",
                message="window_seconds must be a number",
                details={"field": "window_seconds", "actual_value": self.window_seconds},
            )
        if not math.isfinite(self.window_seconds) or self.window_seconds <= 0:
            raise InvalidRuleError(
                code="invalid_rule",
                message="window_seconds must be a finite number > 0",
                details={"field": "window_seconds", "actual_value": self.window_seconds},
            )


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Requests still admissible right now (0 when blocked).
        retry_after_seconds: Wait before another request would be admitted
            when blocked; None when allowed.
    """

    allowed: bool
    limit: int
    remaining: int
    retry_after_seconds: float | None


class AbstractRateLimitStrategy(ABC):
    """Per-client admission state for one algorithm.

    Each instance guards its own state with a lock, so calls for the same
    client are serialized while different clients never contend.

    Precondition: ``now`` is non-decreasing across calls on one instance.
    """

    name: str = "abstract"

    def __init__(self, rule: Rule, now: float) -> None:
        self._rule = rule
        self._lock = threading.Lock()
        self._retired = False

    @property
    def rule(self) -> Rule:
        return self._rule

    @property
    def capacity(self) -> int:
        return self._rule.capacity

    @property
    def window_seconds(self) -> float:
        return self._rule.window_seconds

    @property
    def retired(self) -> bool:
        """True once the registry has dropped this instance."""
        return self._retired

    def retire(self) -> None:
        """Stop admitting through this instance.

        Waits for an in-flight decision to finish, so every decision made on
        this instance happens before the registry can hand out a replacement.
        """

        with self._lock:
            self._retired = True

    def allow_request(self, now: float) -> bool:
        """Decide whether a request arriving at ``now`` is admitted.

        Args:
            now: Current instant in seconds, from the limiter's clock.

        Returns:
            True when admitted, False when rejected or retired.
        """

        with self._lock:
            if self._retired:
                return False
            return self._allow_locked(now)

    def check(self, now: float) -> RateLimitResult:
        """Decide like allow_request and report the remaining budget."""

        result = self.try_check(now)
        if result is None:
            return RateLimitResult(
                allowed=False,
                limit=self.capacity,
                remaining=0,
                retry_after_seconds=0.0,
            )
        return result

    def try_check(self, now: float) -> RateLimitResult | None:
        """Like check, but return None instead of deciding on a retired instance."""

        with self._lock:
            if self._retired:
                return None
            allowed = self._allow_locked(now)
            remaining = max(0, self._remaining_locked())
            retry_after = None if allowed else max(0.0, self._retry_after_locked(now))

        return RateLimitResult(
            allowed=allowed,
            limit=self.capacity,
            remaining=remaining,
            retry_after_seconds=retry_after,
        )

    @abstractmethod
    def _allow_locked(self, now: float) -> bool:
        """Apply the algorithm; called with the instance lock held."""
        raise NotImplementedError

    @abstractmethod
    def _remaining_locked(self) -> int:
        """Requests admissible right after the last decision."""
        raise NotImplementedError

    @abstractmethod
    def _retry_after_locked(self, now: float) -> float:
        """Seconds until one more request would be admitted."""
        raise NotImplementedError
