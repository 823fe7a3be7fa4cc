"""Rate limiting strategies - interchangeable admission algorithms."""

from ratekeeper.adapters.rate_limit.base import (
    AbstractRateLimitStrategy,
    RateLimitResult,
    Rule,
)
from ratekeeper.adapters.rate_limit.factory import (
    Strategy,
    create_strategy,
    get_strategy_class,
    resolve_strategy,
)
from ratekeeper.adapters.rate_limit.fixed_window import FixedWindowCounterStrategy
from ratekeeper.adapters.rate_limit.sliding_window import SlidingWindowLogStrategy
from ratekeeper.adapters.rate_limit.token_bucket import TokenBucketStrategy

__all__ = [
    "AbstractRateLimitStrategy",
    "RateLimitResult",
    "Rule",
    "Strategy",
    "create_strategy",
    "get_strategy_class",
    "resolve_strategy",
    "TokenBucketStrategy",
    "SlidingWindowLogStrategy",
    "FixedWindowCounterStrategy",
]
