import logging
from abc import ABC, abstractmethod

from .batch import TimestampBatchProcessor
from .config import ResolverConfig
from .errors import BadInput, OutOfRange
from .index_resolver import (
    MAX_SEARCH_OFFSET,
    TIME_DIFFERENCE_THRESHOLD,
    binary_search,
    refine,
)
from .models import Chain
from .point_source import EvmPointSource, PointSource, SolanaPointSource
from .utils.json_rpc import JsonRpcClient
from .utils.point_cache import PointCache

# Get logger for this module
logger = logging.getLogger(__name__)


class ChainResolver(ABC):
    """
    Resolves timestamps and indexes for one chain.

    Owns the chain's point source and point cache; every timestamp lookup
    goes through the cache, which retries remote failures.
    """

    def __init__(self, source: PointSource, cache: PointCache) -> None:
        self.source = source
        self.cache = cache

    @property
    def chain(self) -> str:
        return self.source.chain

    async def timestamp_at(self, index: int) -> int:
        """Cached, retried timestamp of ``index``."""
        return await self.cache.get_cached(
            index, lambda: self.source.timestamp_at(index)
        )

    async def index_for_timestamp(self, timestamp: int) -> int:
        """Return the index whose timestamp is closest to ``timestamp``."""
        index, _ = await self.locate(timestamp)
        return index

    async def locate(self, timestamp: int) -> tuple[int, bool]:
        """
        Resolve ``timestamp`` and report whether the answer is settled.

        An answer is settled unless it is the current head and the target
        lies after the head's timestamp: such an answer moves as the chain
        grows and must not be remembered.

        :param timestamp: Target timestamp in epoch seconds
        :return: The closest index and whether later blocks can change it
        """
        latest_index = await self.source.latest_index()
        index = await self._search(timestamp, latest_index)
        settled = index < latest_index or timestamp <= await self.timestamp_at(index)
        return index, settled

    @abstractmethod
    async def _search(self, timestamp: int, latest_index: int) -> int:
        """Find the closest index in ``[0, latest_index]``."""

    @abstractmethod
    async def timestamp_for_index(self, index: int) -> int:
        """Return the timestamp recorded for ``index``."""


class EvmResolver(ChainResolver):
    """Resolver for chains whose block timestamps strictly increase."""

    async def _search(self, timestamp: int, latest_index: int) -> int:
        return await binary_search(timestamp, latest_index, self.timestamp_at)

    async def timestamp_for_index(self, index: int) -> int:
        # No range check: a block that does not exist surfaces as NotFound
        return await self.timestamp_at(index)


class SolanaResolver(ChainResolver):
    """
    Resolver for Solana slots.

    Slot times are only roughly increasing, so the binary search result is
    refined by probing nearby slots.
    """

    def __init__(
        self,
        source: PointSource,
        cache: PointCache,
        max_search_offset: int = MAX_SEARCH_OFFSET,
        time_difference_threshold: int = TIME_DIFFERENCE_THRESHOLD,
    ) -> None:
        super().__init__(source, cache)
        self.max_search_offset = max_search_offset
        self.time_difference_threshold = time_difference_threshold

    async def _search(self, timestamp: int, latest_index: int) -> int:
        genesis_timestamp = await self.timestamp_at(0)

        if timestamp <= genesis_timestamp:
            return 0

        seed = await binary_search(timestamp, latest_index, self.timestamp_at)
        return await refine(
            seed,
            timestamp,
            self.timestamp_at,
            max_offset=self.max_search_offset,
            threshold=self.time_difference_threshold,
        )

    async def timestamp_for_index(self, index: int) -> int:
        latest_slot = await self.source.latest_index()
        if index < 0 or index > latest_slot:
            raise OutOfRange(self.chain, index, latest_slot)
        return await self.timestamp_at(index)


class BlockTimeResolver:
    """
    Entry point used by the HTTP layer.

    Maps chain names to their resolvers and batch processors.
    """

    def __init__(self, resolvers: dict[str, ChainResolver]) -> None:
        """
        Initialize the facade.

        :param resolvers: Chain resolvers keyed by chain name
        """
        self.resolvers = resolvers
        self.batches = {
            chain: TimestampBatchProcessor(chain, resolver.locate)
            for chain, resolver in resolvers.items()
        }
        logger.info(f"BlockTimeResolver initialized for chains: {', '.join(resolvers)}")

    @classmethod
    def from_config(cls, config: ResolverConfig) -> "BlockTimeResolver":
        """
        Build resolvers, point sources and caches from configuration.

        :param config: Resolver configuration
        :return: A ready BlockTimeResolver
        """
        timeout = config.server.request_timeout

        def make_cache(chain: str) -> PointCache:
            return PointCache(
                chain,
                max_attempts=config.retry.max_attempts,
                delay_ms=config.retry.delay_ms,
            )

        evm_source = EvmPointSource.from_url(
            config.chain(Chain.EVM.value).rpc_url, timeout=timeout
        )
        solana_source = SolanaPointSource(JsonRpcClient(
            config.chain(Chain.SOLANA.value).rpc_url,
            chain=Chain.SOLANA.value,
            timeout=timeout,
        ))

        return cls({
            Chain.EVM.value: EvmResolver(evm_source, make_cache(Chain.EVM.value)),
            Chain.SOLANA.value: SolanaResolver(
                solana_source,
                make_cache(Chain.SOLANA.value),
                max_search_offset=config.search.max_search_offset,
                time_difference_threshold=config.search.time_difference_threshold,
            ),
        })

    def resolver_for(self, chain: str) -> ChainResolver:
        """
        Look up the resolver of ``chain``.

        :raises BadInput: If the chain is not supported
        """
        try:
            return self.resolvers[chain]
        except KeyError:
            raise BadInput(f"Unsupported chain: {chain}") from None

    async def resolve_timestamps(
        self, chain: str, timestamps: list[str]
    ) -> dict[str, int | None]:
        """
        Resolve a batch of timestamps; failed items map to None.

        :param chain: Chain name
        :param timestamps: Raw timestamp items
        :return: Mapping of each item to its index or None
        """
        self.resolver_for(chain)
        batch = self.batches[chain]
        results = await batch.process(timestamps)
        batch.log_metrics()
        return results

    async def resolve_block(
        self, chain: str, index: int, key: str | None = None
    ) -> dict[str, int]:
        """
        Resolve one index to its timestamp. Errors propagate to the caller.

        :param chain: Chain name
        :param index: Block number or slot
        :param key: Identifier as the caller wrote it, used as the result key
        :return: Mapping of the identifier to its timestamp
        """
        timestamp = await self.resolver_for(chain).timestamp_for_index(index)
        logger.info(f"Chain: {chain}, Block number: {index}, Timestamp: {timestamp}")
        return {str(index) if key is None else key: timestamp}

    def log_metrics(self) -> None:
        for resolver in self.resolvers.values():
            resolver.cache.log_metrics()

    async def aclose(self) -> None:
        """Close every point source's connection to its node."""
        logger.info("Shutting down BlockTimeResolver...")
        for resolver in self.resolvers.values():
            await resolver.source.aclose()
        logger.info("BlockTimeResolver shutdown complete")
