"""Shared fixtures: in-memory point sources standing in for chain RPCs."""

from collections.abc import Callable
from unittest.mock import AsyncMock

import pytest

from block_time_resolver.errors import NotFound
from block_time_resolver.point_source import PointSource
from block_time_resolver.utils.point_cache import PointCache


class FakePointSource(PointSource):
    """Point source answering from a Python function instead of a node."""

    def __init__(
        self,
        chain: str,
        latest: int,
        timestamp_of: Callable[[int], int],
        missing: set[int] | None = None,
    ) -> None:
        self.rpc = AsyncMock()
        self.chain = chain
        self.latest = latest
        self.timestamp_of = timestamp_of
        self.missing = missing or set()
        self.requested: list[int] = []
        self.latest_calls = 0

    async def latest_index(self) -> int:
        self.latest_calls += 1
        return self.latest

    async def timestamp_at(self, index: int) -> int:
        self.requested.append(index)
        if index < 0 or index > self.latest or index in self.missing:
            raise NotFound(self.chain, index)
        return self.timestamp_of(index)

    async def aclose(self) -> None:
        await self.rpc.aclose()


@pytest.fixture
def make_source():
    """Factory for FakePointSource instances."""
    return FakePointSource


@pytest.fixture
def make_cache():
    """Factory for point caches that retry without sleeping."""
    def _make(name: str = "test", max_attempts: int = 3) -> PointCache:
        return PointCache(name, max_attempts=max_attempts, delay_ms=0)
    return _make
