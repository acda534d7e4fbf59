#!/usr/bin/env python3
"""Exception types raised while resolving timestamps and chain indexes.

Every error carries the structured fields that produced it, so callers can
decide what to do without parsing messages.
"""


class ResolverError(Exception):
    """Base class for all resolution failures."""


class TransientRemoteFailure(ResolverError):
    """A point source request failed at the network, HTTP or payload level."""

    def __init__(self, chain: str, method: str, reason: str) -> None:
        self.chain = chain
        self.method = method
        self.reason = reason
        super().__init__(f"{chain} RPC call {method} failed: {reason}")


class RpcError(TransientRemoteFailure):
    """The node answered with a JSON-RPC error object."""

    def __init__(self, chain: str, method: str, code: int, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(chain, method, f"RPC error {code}: {message}")


class MaxRetriesExceeded(ResolverError):
    """Every attempt of a retried operation failed."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Max retries reached: {last_error}")


class NotFound(ResolverError):
    """The chain has no record for the requested index."""

    def __init__(self, chain: str, index: int) -> None:
        self.chain = chain
        self.index = index
        if chain == "solana":
            message = f"No timestamp found for slot {index}"
        else:
            message = f"No data found for block number: {index}"
        super().__init__(message)


class OutOfRange(ResolverError):
    """The requested index lies outside ``[0, latest_index]``."""

    def __init__(self, chain: str, index: int, latest_index: int) -> None:
        self.chain = chain
        self.index = index
        self.latest_index = latest_index
        super().__init__(
            f"Slot {index} is out of range. Latest slot is {latest_index}."
        )


class BadInput(ResolverError):
    """The request could not be turned into a resolution."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


def is_not_found(error: BaseException) -> bool:
    """Return True if ``error`` is, or wraps after retries, a NotFound."""
    if isinstance(error, MaxRetriesExceeded):
        return isinstance(error.last_error, NotFound)
    return isinstance(error, NotFound)
