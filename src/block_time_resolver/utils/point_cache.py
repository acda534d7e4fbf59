"""Append-only memoization of "timestamp at index" lookups.

One cache exists per chain and lives as long as the process. An index's
timestamp never changes once the chain has produced it, so entries are
never evicted or refreshed.
"""

import logging
from collections.abc import Awaitable, Callable

from .retry import DEFAULT_DELAY_MS, DEFAULT_MAX_ATTEMPTS, retry

logger = logging.getLogger(__name__)


class PointCache:
    """Per-chain cache of index -> timestamp, filled through ``retry``.

    Concurrent misses on the same key are not coalesced: both callers fetch
    and both store the same value.
    """

    def __init__(
        self,
        name: str,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        delay_ms: float = DEFAULT_DELAY_MS,
    ) -> None:
        self.name = name
        self.max_attempts = max_attempts
        self.delay_ms = delay_ms
        self._points: dict[int, int] = {}

        self.hits = 0
        self.misses = 0

    def __contains__(self, key: int) -> bool:
        return key in self._points

    def __len__(self) -> int:
        return len(self._points)

    def get(self, key: int) -> int | None:
        return self._points.get(key)

    async def get_cached(
        self, key: int, fetch: Callable[[], Awaitable[int]]
    ) -> int:
        """Return the value for ``key``, fetching it on first use.

        Args:
            key: Chain index
            fetch: Zero-argument coroutine factory producing the timestamp

        Returns:
            The cached or freshly fetched timestamp

        Raises:
            MaxRetriesExceeded: If the fetch failed on every attempt
        """
        if key in self._points:
            self.hits += 1
            return self._points[key]

        self.misses += 1
        value = await retry(fetch, self.max_attempts, self.delay_ms)
        self._points[key] = value
        logger.debug(f"[{self.name}] cached index {key} -> {value}")
        return value

    def log_metrics(self) -> None:
        """Log cache size and hit ratio."""
        total = self.hits + self.misses
        ratio = (self.hits / total * 100) if total else 0.0
        logger.info(
            f"[{self.name}] point cache: {len(self._points)} entries, "
            f"{self.hits} hits, {self.misses} misses ({ratio:.1f}% hit rate)"
        )
