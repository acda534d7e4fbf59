#!/usr/bin/env python3
"""Configuration management for the block time resolver.

This module provides type-safe configuration dataclasses with validation.
Configuration is loaded from environment variables with sensible defaults
where appropriate.
"""

import logging
import os
from dataclasses import dataclass
from typing import ClassVar
from urllib.parse import urlparse

from .index_resolver import MAX_SEARCH_OFFSET, TIME_DIFFERENCE_THRESHOLD
from .models import Chain
from .utils.retry import DEFAULT_DELAY_MS, DEFAULT_MAX_ATTEMPTS

# Get logger for this module
logger = logging.getLogger(__name__)

DEFAULT_EVM_RPC_URL = "https://ethereum.publicnode.com"
DEFAULT_SOLANA_RPC_URL = "https://api.mainnet-beta.solana.com"


@dataclass(frozen=True, slots=True)
class ChainConfig:
    """Connection settings for one chain.

    Attributes:
        name: Chain selector, one of ``Chain.names()``
        rpc_url: HTTP(S) JSON-RPC endpoint for the chain
    """

    name: str
    rpc_url: str

    def __post_init__(self) -> None:
        """Validate chain configuration."""
        if self.name not in Chain.names():
            raise ValueError(
                f"Unsupported chain: {self.name}. "
                f"Supported chains: {', '.join(Chain.names())}"
            )

        if not self.rpc_url:
            raise ValueError(
                f"RPC URL is required for {self.name} ({self.name.upper()}_RPC_URL)"
            )

        parsed = urlparse(self.rpc_url)
        if parsed.scheme not in ('http', 'https'):
            raise ValueError(
                f"Invalid RPC URL scheme: {parsed.scheme}. "
                "Expected http or https"
            )


@dataclass(frozen=True, slots=True)
class RetryConfig:
    """Retry policy for remote point lookups."""
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    delay_ms: int = DEFAULT_DELAY_MS  # fixed pause between attempts

    def __post_init__(self) -> None:
        """Validate retry configuration."""
        if self.max_attempts < 1:
            raise ValueError(f"Retry attempts must be at least 1, got {self.max_attempts}")
        if self.max_attempts > 10:
            raise ValueError(f"Retry attempts too high (max 10), got {self.max_attempts}")

        if self.delay_ms < 0:
            raise ValueError(f"Retry delay must be non-negative, got {self.delay_ms}")
        if self.delay_ms > 60000:
            raise ValueError(f"Retry delay too long (max 60000ms), got {self.delay_ms}")


@dataclass(frozen=True, slots=True)
class SearchConfig:
    """Local refinement window for non-monotone chains."""
    max_search_offset: int = MAX_SEARCH_OFFSET
    time_difference_threshold: int = TIME_DIFFERENCE_THRESHOLD  # seconds

    def __post_init__(self) -> None:
        """Validate search configuration."""
        if self.max_search_offset < 0:
            raise ValueError(
                f"Max search offset must be non-negative, got {self.max_search_offset}"
            )
        if self.time_difference_threshold < 0:
            raise ValueError(
                "Time difference threshold must be non-negative, "
                f"got {self.time_difference_threshold}"
            )


@dataclass(frozen=True, slots=True)
class ServerConfig:
    """HTTP listener and outbound request settings."""
    host: str = "0.0.0.0"
    port: int = 8080
    request_timeout: int = 30  # HTTP request timeout in seconds

    PORT_RANGE: ClassVar[range] = range(1, 65536)

    def __post_init__(self) -> None:
        """Validate server configuration."""
        if self.port not in self.PORT_RANGE:
            raise ValueError(f"Port must be between 1 and 65535, got {self.port}")

        if self.request_timeout <= 0:
            raise ValueError(f"Request timeout must be positive, got {self.request_timeout}")
        if self.request_timeout > 120:
            raise ValueError(f"Request timeout too long (max 120s), got {self.request_timeout}")


@dataclass(frozen=True, slots=True)
class ResolverConfig:
    """Main configuration for the block time resolver.

    Attributes:
        evm: Configuration for the EVM chain
        solana: Configuration for the Solana chain
        retry: Retry policy shared by both chains
        search: Refinement window used on Solana
        server: HTTP settings
    """

    evm: ChainConfig
    solana: ChainConfig
    retry: RetryConfig
    search: SearchConfig
    server: ServerConfig

    @classmethod
    def from_env(cls) -> "ResolverConfig":
        """Load configuration from environment variables.

        Returns:
            ResolverConfig instance with loaded values

        Raises:
            ValueError: If environment variables are invalid
        """
        evm_config = ChainConfig(
            name=Chain.EVM.value,
            rpc_url=os.environ.get("EVM_RPC_URL", DEFAULT_EVM_RPC_URL),
        )
        solana_config = ChainConfig(
            name=Chain.SOLANA.value,
            rpc_url=os.environ.get("SOLANA_RPC_URL", DEFAULT_SOLANA_RPC_URL),
        )

        retry_config = RetryConfig(
            max_attempts=_int_env("RETRY_ATTEMPTS", DEFAULT_MAX_ATTEMPTS),
            delay_ms=_int_env("RETRY_DELAY_MS", DEFAULT_DELAY_MS),
        )

        search_config = SearchConfig(
            max_search_offset=_int_env("MAX_SEARCH_OFFSET", MAX_SEARCH_OFFSET),
            time_difference_threshold=_int_env(
                "TIME_DIFFERENCE_THRESHOLD", TIME_DIFFERENCE_THRESHOLD
            ),
        )

        server_config = ServerConfig(
            host=os.environ.get("HOST", "0.0.0.0"),
            port=_int_env("PORT", 8080),
            request_timeout=_int_env("REQUEST_TIMEOUT", 30),
        )

        return cls(
            evm=evm_config,
            solana=solana_config,
            retry=retry_config,
            search=search_config,
            server=server_config,
        )

    def chain(self, name: str) -> ChainConfig:
        """Return the configuration of chain ``name``."""
        match name:
            case Chain.EVM.value:
                return self.evm
            case Chain.SOLANA.value:
                return self.solana
            case _:
                raise ValueError(f"Unsupported chain: {name}")

    def log_config(self) -> None:
        """Log the configuration in a readable format for debugging."""
        logger.info("=" * 60)
        logger.info("Block Time Resolver Configuration")
        logger.info("=" * 60)

        logger.info("Chains:")
        logger.info(f"  EVM RPC URL: {self.evm.rpc_url}")
        logger.info(f"  Solana RPC URL: {self.solana.rpc_url}")

        logger.info("Retry Settings:")
        logger.info(f"  Attempts: {self.retry.max_attempts}")
        logger.info(f"  Delay: {self.retry.delay_ms} ms")

        logger.info("Search Settings:")
        logger.info(f"  Max Search Offset: {self.search.max_search_offset}")
        logger.info(f"  Time Difference Threshold: {self.search.time_difference_threshold} seconds")

        logger.info("Server Settings:")
        logger.info(f"  Listen: {self.server.host}:{self.server.port}")
        logger.info(f"  Request Timeout: {self.server.request_timeout} seconds")

        logger.info("=" * 60)


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
