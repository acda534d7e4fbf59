#!/usr/bin/env python3
"""Remote point sources: "latest index" and "timestamp at index" per chain.

Each source issues exactly one remote call per operation and leaves
retrying and caching to its caller.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar

from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import BlockNotFound

from .errors import NotFound, RpcError, TransientRemoteFailure
from .utils.json_rpc import JsonRpcClient

# Get logger for this module
logger = logging.getLogger(__name__)


class PointSource(ABC):
    """Read-only view of a chain's index -> timestamp record."""

    chain: ClassVar[str]

    @abstractmethod
    async def latest_index(self) -> int:
        """Return the chain head's index."""

    @abstractmethod
    async def timestamp_at(self, index: int) -> int:
        """Return the timestamp of ``index`` or raise NotFound."""

    @abstractmethod
    async def aclose(self) -> None:
        """Release the connection to the node."""


class EvmPointSource(PointSource):
    """Point source backed by an Ethereum-compatible node, read through web3."""

    chain = "evm"

    def __init__(self, w3: AsyncWeb3) -> None:
        self.w3 = w3

    @classmethod
    def from_url(cls, rpc_url: str, timeout: float = 30.0) -> "EvmPointSource":
        """
        Connect to an HTTP(S) RPC endpoint.

        :param rpc_url: Node URL
        :param timeout: Per-request timeout in seconds
        """
        logger.debug(f"Connecting to EVM chain at {rpc_url}")
        return cls(AsyncWeb3(AsyncHTTPProvider(
            rpc_url,
            request_kwargs={'timeout': timeout}
        )))

    async def latest_index(self) -> int:
        try:
            block_number = await self.w3.eth.block_number
        except Exception as e:
            raise TransientRemoteFailure(self.chain, "eth_blockNumber", str(e)) from e
        return self._check_int("eth_blockNumber", block_number)

    async def timestamp_at(self, index: int) -> int:
        try:
            block = await self.w3.eth.get_block(index)
        except BlockNotFound as e:
            raise NotFound(self.chain, index) from e
        except Exception as e:
            raise TransientRemoteFailure(self.chain, "eth_getBlockByNumber", str(e)) from e

        if not block:
            raise NotFound(self.chain, index)
        timestamp = block.get("timestamp")
        if timestamp is None:
            raise TransientRemoteFailure(
                self.chain, "eth_getBlockByNumber",
                f"block {index} has no timestamp: {block!r}"
            )
        return self._check_int("eth_getBlockByNumber", timestamp)

    def _check_int(self, method: str, value: Any) -> int:
        # web3 decodes hex quantities; anything else is a garbled answer
        if isinstance(value, bool) or not isinstance(value, int):
            raise TransientRemoteFailure(
                self.chain, method, f"expected integer, got {value!r}"
            )
        return value

    async def aclose(self) -> None:
        await self.w3.provider.disconnect()


class SolanaPointSource(PointSource):
    """Point source backed by a Solana JSON-RPC node.

    Skipped slots have no block and therefore no time. The node reports
    them either as a ``null`` result or with one of the error codes in
    ``MISSING_SLOT_CODES``; both become NotFound.
    """

    chain = "solana"

    # Block not available / slot skipped / slot not in long-term storage
    MISSING_SLOT_CODES: ClassVar[frozenset[int]] = frozenset({-32004, -32007, -32009})

    def __init__(self, rpc: JsonRpcClient) -> None:
        self.rpc = rpc

    async def latest_index(self) -> int:
        result = await self.rpc.call("getSlot", [])
        return self._parse_int("getSlot", result)

    async def timestamp_at(self, index: int) -> int:
        try:
            result = await self.rpc.call("getBlockTime", [index])
        except RpcError as e:
            if e.code in self.MISSING_SLOT_CODES:
                raise NotFound(self.chain, index) from e
            raise
        if result is None:
            raise NotFound(self.chain, index)
        return self._parse_int("getBlockTime", result)

    def _parse_int(self, method: str, value: Any) -> int:
        # bool is an int subclass and is never a valid slot or time
        if isinstance(value, bool) or not isinstance(value, int):
            raise TransientRemoteFailure(
                self.chain, method, f"expected integer, got {value!r}"
            )
        return value

    async def aclose(self) -> None:
        await self.rpc.aclose()
