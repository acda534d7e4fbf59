#!/usr/bin/env python3
"""Batch resolution of timestamps for one chain.

This module resolves a list of timestamps one after another, memoizes
settled answers and isolates per-item failures: a failed item yields
``None`` and never aborts the rest of the batch.
"""

import logging
from collections.abc import Awaitable, Callable

from .errors import BadInput

# Get logger for this module
logger = logging.getLogger(__name__)


def parse_timestamp(raw: str) -> int:
    """Parse one item of a comma-separated timestamp list.

    Raises:
        BadInput: If the item is not an integer
    """
    try:
        return int(raw.strip())
    except ValueError:
        raise BadInput(f"Invalid timestamp: {raw!r}") from None


class TimestampBatchProcessor:
    """Resolves timestamps to indexes for a single chain.

    This class is responsible for:
    - Parsing raw timestamp items
    - Answering repeated timestamps from its result cache, except answers
      pinned to a chain head that has since moved on
    - Turning per-item failures into ``None`` results
    - Maintaining metrics on processed items
    """

    def __init__(
        self,
        chain: str,
        resolve: Callable[[int], Awaitable[tuple[int, bool]]]
    ) -> None:
        """Initialize the processor.

        Args:
            chain: Chain name, used in log lines
            resolve: Coroutine resolving one timestamp to an index and
                whether that answer is settled
        """
        self.chain = chain
        self.resolve = resolve

        # Settled timestamp -> index, kept for the life of the process
        self.results: dict[int, int] = {}

        # Metrics tracking
        self.items_resolved = 0
        self.items_cached = 0
        self.items_failed = 0
        self.items_invalid = 0

    async def process(self, raw_items: list[str]) -> dict[str, int | None]:
        """Resolve every item, keyed by the trimmed item text.

        Args:
            raw_items: Timestamp strings as received

        Returns:
            Mapping of each item to its index, or None if it failed
        """
        results: dict[str, int | None] = {}

        for raw in raw_items:
            key = raw.strip()
            try:
                timestamp = parse_timestamp(key)
            except BadInput as e:
                self.items_invalid += 1
                logger.error(f"Failed to fetch block for timestamp {key} on chain {self.chain}: {e}")
                results[key] = None
                continue

            results[key] = await self._resolve_one(key, timestamp)

        return results

    async def _resolve_one(self, key: str, timestamp: int) -> int | None:
        if timestamp in self.results:
            self.items_cached += 1
            return self.results[timestamp]

        try:
            index, settled = await self.resolve(timestamp)
        except Exception as e:
            self.items_failed += 1
            logger.error(f"Failed to fetch block for timestamp {key} on chain {self.chain}: {e}")
            return None

        if settled:
            self.results[timestamp] = index
        else:
            logger.debug(f"Not caching timestamp {timestamp} on chain {self.chain}: it is past head {index}")
        self.items_resolved += 1
        logger.info(f"Chain: {self.chain}, Block number: {index}, Timestamp: {timestamp}")
        return index

    def get_metrics(self) -> dict[str, int]:
        """Get current processing metrics.

        Returns:
            Dictionary of metric names to values
        """
        return {
            "items_resolved": self.items_resolved,
            "items_cached": self.items_cached,
            "items_failed": self.items_failed,
            "items_invalid": self.items_invalid,
            "cache_size": len(self.results)
        }

    def log_metrics(self) -> None:
        """Log current processing metrics."""
        metrics = self.get_metrics()
        logger.info(
            f"[{self.chain}] Batch Metrics: "
            f"Resolved={metrics['items_resolved']}, "
            f"Cached={metrics['items_cached']}, "
            f"Failed={metrics['items_failed']}, "
            f"Invalid={metrics['items_invalid']}, "
            f"Cache={metrics['cache_size']}"
        )
