"""Single-value TTL cache slot with explicit invalidation.

Holds one computed value (the display-ready meeting list) for a fixed TTL.
Concurrent readers of an expired slot share one recomputation. Invalidation
bumps a generation counter so a recomputation that started before the
invalidation cannot repopulate the slot with stale data.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

import structlog

from src.meeting_intel.core.monitoring import display_cache_recomputes_total

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class TTLCacheSlot(Generic[T]):
    """One cached value with an insertion time and a TTL.

    Args:
        ttl_seconds: Lifetime of a computed value.
        clock: Monotonic clock in seconds, injectable for tests.
        name: Label used in log events.
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        name: str = "cache",
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.name = name
        self._clock = clock
        self._value: T | None = None
        self._inserted_at: float | None = None
        self._generation = 0
        self._lock = asyncio.Lock()

    @property
    def generation(self) -> int:
        return self._generation

    def is_fresh(self) -> bool:
        if self._inserted_at is None:
            return False
        return self._clock() - self._inserted_at < self.ttl_seconds

    def peek(self) -> T | None:
        """Current value if fresh, without computing."""
        return self._value if self.is_fresh() else None

    async def get_or_compute(self, factory: Callable[[], Awaitable[T]]) -> T:
        """Return the cached value, recomputing under the lock when expired."""
        if self.is_fresh():
            return self._value  # type: ignore[return-value]

        async with self._lock:
            if self.is_fresh():
                return self._value  # type: ignore[return-value]

            started_generation = self._generation
            value = await factory()
            display_cache_recomputes_total.inc()

            if started_generation == self._generation:
                self._value = value
                self._inserted_at = self._clock()
            else:
                logger.info(
                    "ttl_cache.stale_result_discarded",
                    cache=self.name,
                    started_generation=started_generation,
                    current_generation=self._generation,
                )
            return value

    def invalidate(self) -> None:
        """Drop the value immediately. Safe to call from sync hooks."""
        self._generation += 1
        self._value = None
        self._inserted_at = None
        logger.debug("ttl_cache.invalidated", cache=self.name, generation=self._generation)


__all__ = ["TTLCacheSlot"]
