"""Limiter services: client registry and orchestrator."""

from ratekeeper.services.client_registry import ClientRegistry
from ratekeeper.services.rate_limiter import RateLimiter

__all__ = [
    "ClientRegistry",
    "RateLimiter",
]
