"""Sliding window log strategy.

Keeps the instant of every admitted request still inside the window. Exact,
at the cost of O(capacity) timestamps per client.
"""

from __future__ import annotations

from collections import deque

from ratekeeper.adapters.rate_limit.base import AbstractRateLimitStrategy, Rule


class SlidingWindowLogStrategy(AbstractRateLimitStrategy):
    """Admit while fewer than ``capacity`` admissions lie in the trailing window."""

    name = "sliding_window"

    def __init__(self, rule: Rule, now: float) -> None:
        super().__init__(rule, now)
        self._timestamps: deque[float] = deque()

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"SlidingWindowLogStrategy(capacity={self.capacity}, "
            f"window_seconds={self.window_seconds}, logged={len(self._timestamps)})"
        )

    @property
    def timestamps(self) -> tuple[float, ...]:
        """Snapshot of the retained admission instants, oldest first."""
        with self._lock:
            return tuple(self._timestamps)

    def _prune_locked(self, now: float) -> None:
        window_start = now - self.window_seconds
        # Entries at exactly window_start have expired.
        while self._timestamps and self._timestamps[0] <= window_start:
            self._timestamps.popleft()

    def _allow_locked(self, now: float) -> bool:
        self._prune_locked(now)

        if len(self._timestamps) < self.capacity:
            self._timestamps.append(now)
            return True
        return False

    def _remaining_locked(self) -> int:
        return self.capacity - len(self._timestamps)

    def _retry_after_locked(self, now: float) -> float:
        if len(self._timestamps) < self.capacity:
            return 0.0
        return self._timestamps[0] + self.window_seconds - now
