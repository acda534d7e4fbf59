#!/usr/bin/env python3
"""Unit tests for the EVM and Solana point sources."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from web3 import Web3
from web3.datastructures import AttributeDict
from web3.exceptions import BlockNotFound

from block_time_resolver.errors import NotFound, RpcError, TransientRemoteFailure
from block_time_resolver.point_source import EvmPointSource, SolanaPointSource


async def _resolved(value):
    return value


async def _raises(error):
    raise error


@pytest.fixture
def mock_rpc():
    """Create a mock JsonRpcClient."""
    mock = AsyncMock()
    mock.call = AsyncMock()
    return mock


@pytest.fixture
def mock_w3():
    """Create a mock AsyncWeb3 instance."""
    w3 = MagicMock()
    w3.eth.get_block = AsyncMock()
    w3.provider.disconnect = AsyncMock()
    return w3


class TestEvmPointSource:
    """Test suite for EvmPointSource."""

    @pytest.mark.asyncio
    async def test_latest_index(self, mock_w3):
        """Test that the head is read from eth.block_number."""
        mock_w3.eth.block_number = _resolved(20000000)

        source = EvmPointSource(mock_w3)

        assert await source.latest_index() == 20000000

    @pytest.mark.asyncio
    async def test_timestamp_at(self, mock_w3):
        """Test block 123456 with timestamp 0x5f5e100 resolves to 100000000."""
        mock_w3.eth.get_block.return_value = AttributeDict({
            "number": 123456,
            "timestamp": Web3.to_int(hexstr="0x5f5e100"),
        })

        source = EvmPointSource(mock_w3)

        assert await source.timestamp_at(123456) == 100000000
        mock_w3.eth.get_block.assert_awaited_once_with(123456)

    @pytest.mark.asyncio
    async def test_block_zero(self, mock_w3):
        """Test that genesis is fetched by its number."""
        mock_w3.eth.get_block.return_value = AttributeDict({"number": 0, "timestamp": 0})

        source = EvmPointSource(mock_w3)

        assert await source.timestamp_at(0) == 0
        mock_w3.eth.get_block.assert_awaited_once_with(0)

    @pytest.mark.asyncio
    async def test_missing_block_raises_not_found(self, mock_w3):
        """Test that web3's BlockNotFound becomes NotFound with the index."""
        mock_w3.eth.get_block.side_effect = BlockNotFound("Block with id: '0x63' not found.")

        source = EvmPointSource(mock_w3)

        with pytest.raises(NotFound, match="No data found for block number: 99") as exc_info:
            await source.timestamp_at(99)

        assert exc_info.value.index == 99
        assert exc_info.value.chain == "evm"

    @pytest.mark.asyncio
    async def test_block_without_timestamp(self, mock_w3):
        """Test that a block lacking a timestamp is a transient failure."""
        mock_w3.eth.get_block.return_value = AttributeDict({"number": 1})

        source = EvmPointSource(mock_w3)

        with pytest.raises(TransientRemoteFailure, match="has no timestamp"):
            await source.timestamp_at(1)

    @pytest.mark.asyncio
    async def test_node_errors_are_transient(self, mock_w3):
        """Test that connection failures become TransientRemoteFailure."""
        mock_w3.eth.get_block.side_effect = ConnectionError("connection refused")

        source = EvmPointSource(mock_w3)

        with pytest.raises(TransientRemoteFailure, match="connection refused") as exc_info:
            await source.timestamp_at(5)

        assert exc_info.value.method == "eth_getBlockByNumber"

    @pytest.mark.asyncio
    async def test_latest_index_failure(self, mock_w3):
        """Test that a failed head lookup is transient."""
        mock_w3.eth.block_number = _raises(TimeoutError("timed out"))

        source = EvmPointSource(mock_w3)

        with pytest.raises(TransientRemoteFailure, match="timed out"):
            await source.latest_index()

    @pytest.mark.asyncio
    async def test_garbled_head(self, mock_w3):
        """Test that a non-integer head is a transient failure."""
        mock_w3.eth.block_number = _resolved("0xnothex")

        source = EvmPointSource(mock_w3)

        with pytest.raises(TransientRemoteFailure, match="expected integer"):
            await source.latest_index()

    @pytest.mark.asyncio
    async def test_aclose_disconnects_provider(self, mock_w3):
        """Test that closing the source disconnects the web3 provider."""
        source = EvmPointSource(mock_w3)

        await source.aclose()

        mock_w3.provider.disconnect.assert_awaited_once()

    def test_from_url(self):
        """Test that from_url builds an HTTP provider for the endpoint."""
        source = EvmPointSource.from_url("https://evm.example", timeout=10)

        assert source.w3.provider.endpoint_uri == "https://evm.example"


class TestSolanaPointSource:
    """Test suite for SolanaPointSource."""

    @pytest.mark.asyncio
    async def test_latest_index(self, mock_rpc):
        """Test that getSlot's decimal result is returned."""
        mock_rpc.call.return_value = 250000000

        source = SolanaPointSource(mock_rpc)

        assert await source.latest_index() == 250000000
        mock_rpc.call.assert_awaited_once_with("getSlot", [])

    @pytest.mark.asyncio
    async def test_timestamp_at(self, mock_rpc):
        """Test that getBlockTime is called with the slot."""
        mock_rpc.call.return_value = 1700000000

        source = SolanaPointSource(mock_rpc)

        assert await source.timestamp_at(123) == 1700000000
        mock_rpc.call.assert_awaited_once_with("getBlockTime", [123])

    @pytest.mark.asyncio
    async def test_null_block_time_raises_not_found(self, mock_rpc):
        """Test that a skipped slot is never defaulted to zero."""
        mock_rpc.call.return_value = None

        source = SolanaPointSource(mock_rpc)

        with pytest.raises(NotFound, match="No timestamp found for slot 42"):
            await source.timestamp_at(42)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", [-32004, -32007, -32009])
    async def test_skipped_slot_error_codes(self, mock_rpc, code):
        """Test that skipped-slot RPC errors become NotFound."""
        mock_rpc.call.side_effect = RpcError("solana", "getBlockTime", code, "Slot 42 was skipped")

        source = SolanaPointSource(mock_rpc)

        with pytest.raises(NotFound):
            await source.timestamp_at(42)

    @pytest.mark.asyncio
    async def test_other_rpc_errors_propagate(self, mock_rpc):
        """Test that unrelated RPC errors stay transient."""
        mock_rpc.call.side_effect = RpcError("solana", "getBlockTime", -32005, "Node is behind")

        source = SolanaPointSource(mock_rpc)

        with pytest.raises(RpcError):
            await source.timestamp_at(42)

    @pytest.mark.asyncio
    async def test_non_integer_result(self, mock_rpc):
        """Test that a non-integer slot is a transient failure."""
        mock_rpc.call.return_value = "12"

        source = SolanaPointSource(mock_rpc)

        with pytest.raises(TransientRemoteFailure, match="expected integer"):
            await source.latest_index()

    @pytest.mark.asyncio
    async def test_aclose_closes_rpc(self, mock_rpc):
        """Test that closing the source closes its client."""
        source = SolanaPointSource(mock_rpc)

        await source.aclose()

        mock_rpc.aclose.assert_awaited_once()
