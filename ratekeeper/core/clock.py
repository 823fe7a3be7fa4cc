"""Time sources for rate limiting.

Every limiter reads time through a zero-argument callable returning seconds
as a float. Production code uses a monotonic clock; tests inject a
ManualClock (or a Mock) and advance it explicitly.
"""

from __future__ import annotations

import threading
import time
from typing import Callable

Clock = Callable[[], float]


def monotonic_clock() -> float:
    """Return the current monotonic time in seconds."""

    return time.monotonic()


class ManualClock:
    """Deterministic clock that only moves when told to.

    Attributes:
        current: Current instant in seconds.
    """

    def __init__(self, start: float = 0.0) -> None:
        self.current = float(start)
        self._lock = threading.Lock()

    def __call__(self) -> float:
        return self.current

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"ManualClock(current={self.current})"

    def advance(self, seconds: float) -> float:
        """Move the clock forward and return the new instant.

        Raises:
            ValueError: If seconds is negative.
        """

        if seconds < 0:
            raise ValueError("seconds must be >= 0")
        with self._lock:
            self.current += seconds
            return self.current

    def set(self, instant: float) -> None:
        """Jump to an absolute instant (may go backwards; use with care)."""

        with self._lock:
            self.current = float(instant)
