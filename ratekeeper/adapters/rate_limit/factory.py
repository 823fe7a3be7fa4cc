"""Factory pattern for creating rate limiting strategy instances."""

from __future__ import annotations

from enum import Enum

from ratekeeper.adapters.rate_limit.base import AbstractRateLimitStrategy, Rule
from ratekeeper.adapters.rate_limit.fixed_window import FixedWindowCounterStrategy
from ratekeeper.adapters.rate_limit.sliding_window import SlidingWindowLogStrategy
from ratekeeper.adapters.rate_limit.token_bucket import TokenBucketStrategy
from ratekeeper.core.errors import UnknownStrategyError


class Strategy(str, Enum):
    """Supported algorithm families."""

    TOKEN_BUCKET = "token_bucket"
    SLIDING_WINDOW = "sliding_window"
    FIXED_WINDOW = "fixed_window"


_STRATEGY_CLASSES: dict[Strategy, type[AbstractRateLimitStrategy]] = {
    Strategy.TOKEN_BUCKET: TokenBucketStrategy,
    Strategy.SLIDING_WINDOW: SlidingWindowLogStrategy,
    Strategy.FIXED_WINDOW: FixedWindowCounterStrategy,
}


def resolve_strategy(strategy: Strategy | str) -> Strategy:
    """Normalize an algorithm tag to a Strategy member.

    Accepts enum members or their values/names in any case
    (e.g. "token_bucket", "TOKEN_BUCKET").

    Raises:
        UnknownStrategyError: If the tag names no supported algorithm.
    """

    if isinstance(strategy, Strategy):
        return strategy

    if isinstance(strategy, str):
        normalized = strategy.strip().lower()
        for member in Strategy:
            if member.value == normalized:
                return member

    supported = [member.value for member in Strategy]
    raise UnknownStrategyError(
        code="unknown_strategy",
        message=(
            f"Unknown rate limit strategy: {strategy!r}. "
            f"Supported strategies: {', '.join(supported)}"
        ),
        details={"strategy": str(strategy), "supported": supported},
    )


def get_strategy_class(strategy: Strategy | str) -> type[AbstractRateLimitStrategy]:
    """Return the implementation class for an algorithm tag."""

    return _STRATEGY_CLASSES[resolve_strategy(strategy)]


def create_strategy(
    strategy: Strategy | str,
    rule: Rule,
    now: float,
) -> AbstractRateLimitStrategy:
    """Instantiate a fresh per-client strategy seeded from ``rule``.

    Args:
        strategy: Algorithm tag.
        rule: Capacity and window shared by the limiter's clients.
        now: Creation instant (starts the bucket refill or first window).

    Returns:
        AbstractRateLimitStrategy: New strategy instance.

    Raises:
        UnknownStrategyError: If the tag is not recognized.
    """

    return get_strategy_class(strategy)(rule, now)
