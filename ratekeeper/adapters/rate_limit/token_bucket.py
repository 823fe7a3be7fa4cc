"""Token bucket strategy.

Notes:
- The bucket starts full and refills continuously at capacity / window tokens
  per second, so an empty bucket is full again after exactly one window.
- Tokens are floats: fractional refill between calls is carried over.
"""

from __future__ import annotations

import math

from ratekeeper.adapters.rate_limit.base import AbstractRateLimitStrategy, Rule


class TokenBucketStrategy(AbstractRateLimitStrategy):
    """Each admitted request consumes one token from a refilling bucket."""

    name = "token_bucket"

    def __init__(self, rule: Rule, now: float) -> None:
        super().__init__(rule, now)
        self._tokens = float(rule.capacity)
        self._refill_rate = rule.capacity / rule.window_seconds
        self._last_refill = now

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"TokenBucketStrategy(capacity={self.capacity}, tokens={self._tokens:.3f}, "
            f"refill_rate={self._refill_rate:.6f})"
        )

    @property
    def tokens(self) -> float:
        return self._tokens

    @property
    def refill_rate(self) -> float:
        """Tokens added per second."""
        return self._refill_rate

    @property
    def last_refill(self) -> float:
        return self._last_refill

    def _refill_locked(self, now: float) -> None:
        # A clock that steps backwards must never drain the bucket.
        elapsed = max(0.0, now - self._last_refill)
        self._tokens = min(float(self.capacity), self._tokens + elapsed * self._refill_rate)
        self._last_refill = max(self._last_refill, now)

    def _allow_locked(self, now: float) -> bool:
        self._refill_locked(now)

        if self._tokens >= 1:
            self._tokens -= 1
            return True
        return False

    def _remaining_locked(self) -> int:
        return int(math.floor(self._tokens))

    def _retry_after_locked(self, now: float) -> float:
        missing = 1 - self._tokens
        if missing <= 0:
            return 0.0
        return missing / self._refill_rate
