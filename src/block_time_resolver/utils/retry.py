"""Bounded retry with a fixed delay between attempts."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from ..errors import MaxRetriesExceeded

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS: int = 3
DEFAULT_DELAY_MS: int = 1000


async def delay(ms: float) -> None:
    """Suspend the current task for ``ms`` milliseconds."""
    await asyncio.sleep(ms / 1000)


async def retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    delay_ms: float = DEFAULT_DELAY_MS,
) -> T:
    """Run ``operation`` until it succeeds or the attempt budget is spent.

    The delay is fixed: no backoff and no jitter. Nothing is slept after the
    final failed attempt.

    Args:
        operation: Zero-argument callable returning a fresh awaitable per call
        max_attempts: Total number of attempts, at least 1
        delay_ms: Pause between consecutive attempts in milliseconds

    Returns:
        The value of the first successful attempt

    Raises:
        MaxRetriesExceeded: If every attempt failed, chained to the last error
        ValueError: If ``max_attempts`` is smaller than 1
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    last_error: Exception | None = None
    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except Exception as e:
            last_error = e
            if attempt >= max_attempts:
                break
            logger.warning(
                f"Attempt {attempt}/{max_attempts} failed: {e}; "
                f"retrying in {delay_ms}ms"
            )
            await delay(delay_ms)

    logger.error(f"Giving up after {max_attempts} attempts: {last_error}")
    raise MaxRetriesExceeded(max_attempts, last_error) from last_error
