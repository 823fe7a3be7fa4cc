"""Fixed window counter strategy.

Notes:
- O(1) state: a window start and a counter.
- A late request anchors the next window at its own arrival; windows never
  catch up through empty intervals.
- Up to 2 * capacity requests can pass around a window boundary. That is a
  property of the algorithm, not a defect.
"""

from __future__ import annotations

from ratekeeper.adapters.rate_limit.base import AbstractRateLimitStrategy, Rule


class FixedWindowCounterStrategy(AbstractRateLimitStrategy):
    """Count admissions per window and reset when the window has elapsed."""

    name = "fixed_window"

    def __init__(self, rule: Rule, now: float) -> None:
        super().__init__(rule, now)
        self._window_start = now
        self._count = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"FixedWindowCounterStrategy(capacity={self.capacity}, "
            f"window_start={self._window_start}, count={self._count})"
        )

    @property
    def window_start(self) -> float:
        return self._window_start

    @property
    def count(self) -> int:
        return self._count

    def _allow_locked(self, now: float) -> bool:
        if now - self._window_start >= self.window_seconds:
            self._window_start = now
            self._count = 0

        if self._count < self.capacity:
            self._count += 1
            return True
        return False

    def _remaining_locked(self) -> int:
        return self.capacity - self._count

    def _retry_after_locked(self, now: float) -> float:
        return self._window_start + self.window_seconds - now
