"""Rate limiting dependency for FastAPI routes.

This module wires a RateLimiter into the HTTP layer of a caller's app. The
limiter itself stays protocol-agnostic; this is a thin adapter.

Keying strategy:
- Per API key when the X-API-Key header is present.
- Otherwise fall back to the client IP.

Usage:
    limiter_dep = RateLimitDependency()
    app.get("/items", dependencies=[Depends(limiter_dep)])
"""

import logging
import math
from typing import Annotated

from fastapi import Header, HTTPException, Request, status

from ratekeeper.adapters.rate_limit.base import RateLimitResult
from ratekeeper.core.config import RateLimitSettings, get_settings
from ratekeeper.core.logging import hash_client_id
from ratekeeper.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def build_rate_limit_key(request: Request, x_api_key: str | None) -> str:
    """Build the limiter key for the current request.

    Args:
        request: FastAPI request.
        x_api_key: API key value from the X-API-Key header.

    Returns:
        str: Namespaced limiter key.
    """

    if x_api_key:
        return f"api_key:{x_api_key}"

    client_host = request.client.host if request.client else "unknown"
    return f"ip:{client_host}"


def build_rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Translate a rejected result into Retry-After and X-RateLimit-* headers."""

    retry_after = int(math.ceil(result.retry_after_seconds or 0))
    return {
        "Retry-After": str(retry_after),
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
    }


class RateLimitDependency:
    """FastAPI dependency enforcing per-client rate limits.

    When enabled, each request consumes one admission from the requester's
    budget. If the requester is over the limit, raises HTTP 429.
    """

    def __init__(
        self,
        limiter: RateLimiter | None = None,
        *,
        rate_limit_settings: RateLimitSettings | None = None,
    ) -> None:
        self._settings = rate_limit_settings or get_settings().rate_limit
        self._limiter = limiter or RateLimiter.from_settings(self._settings)

    @property
    def limiter(self) -> RateLimiter:
        return self._limiter

    async def __call__(
        self,
        request: Request,
        x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
    ) -> None:
        """Consume one admission or raise 429.

        Args:
            request: FastAPI request.
            x_api_key: API key from X-API-Key header.

        Raises:
            HTTPException: 429 Too Many Requests when rate limit is exceeded.
        """

        if not self._settings.enabled:
            return

        key = build_rate_limit_key(request, x_api_key)
        result = self._limiter.check(key)
        if result.allowed:
            return

        logger.warning(
            "rate_limit.exceeded",
            extra={
                "key_type": "api_key" if x_api_key else "ip",
                "key_hash": hash_client_id(key),
                "strategy": self._limiter.strategy.value,
                "limit": result.limit,
                "remaining": result.remaining,
                "retry_after_s": result.retry_after_seconds,
            },
        )

        headers = build_rate_limit_headers(result) if self._settings.include_headers else None

        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded. Try again later.",
            headers=headers,
        )
