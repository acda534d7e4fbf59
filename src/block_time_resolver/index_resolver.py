#!/usr/bin/env python3
"""Timestamp -> index search over a chain's block or slot space.

The search assumes the index -> timestamp function is non-decreasing. For
chains where that only holds approximately, ``refine`` walks outward from
the binary search result looking for a closer index.
"""

import logging
from collections.abc import Awaitable, Callable

from .errors import is_not_found
from .models import ClosestIndex, SearchWindow

# Get logger for this module
logger = logging.getLogger(__name__)

MAX_SEARCH_OFFSET: int = 100
TIME_DIFFERENCE_THRESHOLD: int = 60  # seconds

TimestampLookup = Callable[[int], Awaitable[int]]


async def binary_search(
    target: int,
    latest_index: int,
    timestamp_at: TimestampLookup,
) -> int:
    """Find the index in ``[0, latest_index]`` whose timestamp is closest to ``target``.

    An exact match returns immediately. Targets before the first or after
    the last index resolve to the nearest boundary probed, not an error.

    Args:
        target: Timestamp in epoch seconds
        latest_index: Chain head index
        timestamp_at: Lookup for the timestamp of an index

    Returns:
        The closest index seen during the search
    """
    window = SearchWindow(start=0, end=latest_index)
    probes = 0

    while window.is_open:
        middle = window.middle
        middle_time = await timestamp_at(middle)
        probes += 1
        window.closest.observe(middle, middle_time, target)

        if middle_time == target:
            logger.debug(f"Exact match for {target} at index {middle} after {probes} probes")
            return middle
        elif middle_time < target:
            window.start = middle + 1
        else:
            window.end = middle - 1

    logger.debug(
        f"Binary search for {target} finished after {probes} probes: {window.to_dict()}"
    )
    return window.closest.index


async def refine(
    seed: int,
    target: int,
    timestamp_at: TimestampLookup,
    max_offset: int = MAX_SEARCH_OFFSET,
    threshold: int = TIME_DIFFERENCE_THRESHOLD,
) -> int:
    """Improve a binary search result by probing its neighbours.

    Probes ``seed + offset`` then ``seed - offset`` for increasing offsets,
    stopping once the best candidate is within ``threshold`` seconds of the
    target. An index that does not exist (negative, skipped or not yet
    produced) disqualifies only that probe.

    Args:
        seed: Starting index, counted as the initial best candidate
        target: Timestamp in epoch seconds
        timestamp_at: Lookup for the timestamp of an index
        max_offset: Largest distance from ``seed`` to probe
        threshold: Difference in seconds considered close enough

    Returns:
        The closest index found, never farther from the target than ``seed``
    """
    closest = ClosestIndex()
    closest.observe(seed, await timestamp_at(seed), target)

    for offset in range(1, max_offset + 1):
        for candidate in (seed + offset, seed - offset):
            if candidate < 0:
                continue
            try:
                candidate_time = await timestamp_at(candidate)
            except Exception as e:
                if not is_not_found(e):
                    raise
                logger.debug(f"Skipping index {candidate} while refining: {e}")
                continue
            closest.observe(candidate, candidate_time, target)

        if closest.difference <= threshold:
            break

    if closest.index != seed:
        logger.debug(
            f"Refined index for {target} from {seed} to {closest.index} "
            f"(difference {closest.difference}s)"
        )
    return closest.index
