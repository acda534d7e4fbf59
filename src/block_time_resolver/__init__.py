"""
Block time resolver package.

Maps wall-clock timestamps to EVM block numbers and Solana slots, and back.
"""

from .config import ResolverConfig
from .errors import (
    BadInput,
    MaxRetriesExceeded,
    NotFound,
    OutOfRange,
    ResolverError,
    TransientRemoteFailure,
)
from .resolver import BlockTimeResolver, EvmResolver, SolanaResolver

__all__ = [
    "ResolverConfig",
    "BlockTimeResolver",
    "EvmResolver",
    "SolanaResolver",
    "ResolverError",
    "TransientRemoteFailure",
    "MaxRetriesExceeded",
    "NotFound",
    "OutOfRange",
    "BadInput",
]
__version__ = "0.1.0"
