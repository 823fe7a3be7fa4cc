"""Per-client strategy registry.

Lazily creates one strategy instance per client identifier and hands the
same instance back on every later lookup. Thread-safe: creation of a new
entry happens once even when several threads race on an unseen key.

Unbounded by default. With ``max_clients`` set, the least recently used
client is evicted once the bound is exceeded; an evicted client that comes
back starts over with a fresh strategy (full budget). Dropped instances are
retired first, so a caller still holding one can never admit through it
alongside its replacement.

Lock order: registry lock, then a strategy lock. Never the reverse.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Callable

from ratekeeper.adapters.rate_limit.base import AbstractRateLimitStrategy
from ratekeeper.core.logging import hash_client_id

logger = logging.getLogger(__name__)


StrategyFactory = Callable[[float], AbstractRateLimitStrategy]


class ClientRegistry:
    """Thread-safe mapping of client identifier to strategy instance.

    Attributes:
        max_clients: Maximum number of tracked clients (None for unlimited).
    """

    def __init__(
        self,
        factory: StrategyFactory,
        *,
        max_clients: int | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            factory: Builds a fresh strategy given the creation instant.
            max_clients: Optional LRU bound on tracked clients.

        Raises:
            ValueError: If max_clients is not positive.
        """
        if max_clients is not None and max_clients < 1:
            raise ValueError("max_clients must be >= 1")

        self._factory = factory
        self._max_clients = max_clients
        self._entries: OrderedDict[str, AbstractRateLimitStrategy] = OrderedDict()
        self._lock = threading.RLock()
        self._created = 0
        self._evictions = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"ClientRegistry(max_clients={self._max_clients}, size={len(self._entries)}, "
            f"created={self._created}, evictions={self._evictions})"
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, client_id: object) -> bool:
        with self._lock:
            return client_id in self._entries

    @property
    def max_clients(self) -> int | None:
        return self._max_clients

    def get_or_create(self, client_id: str, now: float) -> AbstractRateLimitStrategy:
        """Return the client's strategy, creating it on first sight.

        Args:
            client_id: Opaque, case-sensitive client identifier.
            now: Current instant, used to seed a newly created strategy.

        Returns:
            The strategy instance owned by this client.
        """

        with self._lock:
            strategy = self._entries.get(client_id)
            if strategy is not None:
                if self._max_clients is not None:
                    self._entries.move_to_end(client_id)  # mark as recently used
                return strategy

            strategy = self._factory(now)
            self._entries[client_id] = strategy
            self._created += 1
            logger.debug(
                "client_registry.created",
                extra={
                    "client_hash": hash_client_id(client_id),
                    "strategy": strategy.name,
                    "size": len(self._entries),
                },
            )
            self._evict_if_over_capacity_locked()
            return strategy

    def get(self, client_id: str) -> AbstractRateLimitStrategy | None:
        """Look up a client's strategy without creating it or touching LRU order."""

        with self._lock:
            return self._entries.get(client_id)

    def clear(self) -> None:
        """Drop every tracked client and reset counters."""

        with self._lock:
            for strategy in self._entries.values():
                strategy.retire()
            self._entries.clear()
            self._created = 0
            self._evictions = 0

    def stats(self) -> dict[str, int | None]:
        """Return registry counters without exposing client identifiers."""

        with self._lock:
            return {
                "max_clients": self._max_clients,
                "entries": len(self._entries),
                "created": self._created,
                "evictions": self._evictions,
            }

    def _evict_if_over_capacity_locked(self) -> None:
        if self._max_clients is None:
            return

        while len(self._entries) > self._max_clients:
            # popitem(last=False) removes the least recently used entry
            client_id, strategy = self._entries.popitem(last=False)
            strategy.retire()
            self._evictions += 1
            logger.debug(
                "client_registry.evicted",
                extra={
                    "client_hash": hash_client_id(client_id),
                    "size": len(self._entries),
                },
            )
