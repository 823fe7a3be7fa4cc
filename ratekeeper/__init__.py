"""ratekeeper - pluggable per-client rate limiting.

Usage:
    from ratekeeper import RateLimiter, Rule, Strategy

    limiter = RateLimiter(Strategy.SLIDING_WINDOW, Rule(capacity=3, window_seconds=5))
    limiter.handle_request("user-1")  # True
"""

__version__ = "0.1.0"

from ratekeeper.adapters.rate_limit import (
    AbstractRateLimitStrategy,
    FixedWindowCounterStrategy,
    RateLimitResult,
    Rule,
    SlidingWindowLogStrategy,
    Strategy,
    TokenBucketStrategy,
    create_strategy,
)
from ratekeeper.core.clock import Clock, ManualClock, monotonic_clock
from ratekeeper.core.errors import (
    AppError,
    ClockUnavailableError,
    InvalidRuleError,
    UnknownStrategyError,
    ValidationAppError,
)
from ratekeeper.core.config import get_settings
from ratekeeper.core.logging import ClientIdHashingFilter, JsonFormatter, configure_logging, hash_client_id
from ratekeeper.services import ClientRegistry, RateLimiter

__all__ = [
    "__version__",
    "AbstractRateLimitStrategy",
    "FixedWindowCounterStrategy",
    "RateLimitResult",
    "Rule",
    "SlidingWindowLogStrategy",
    "Strategy",
    "TokenBucketStrategy",
    "create_strategy",
    "Clock",
    "ManualClock",
    "monotonic_clock",
    "AppError",
    "ClockUnavailableError",
    "InvalidRuleError",
    "UnknownStrategyError",
    "ValidationAppError",
    "get_settings",
    "ClientIdHashingFilter",
    "JsonFormatter",
    "configure_logging",
    "hash_client_id",
    "ClientRegistry",
    "RateLimiter",
]
