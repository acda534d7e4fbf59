#!/usr/bin/env python3
"""Data models for the block time resolver.

This module provides the chain selector and the transient search state used
while resolving a timestamp to an index.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Chain(str, Enum):
    """Chains the resolver can answer for."""

    EVM = "evm"
    SOLANA = "solana"

    @classmethod
    def names(cls) -> list[str]:
        return [member.value for member in cls]


@dataclass(slots=True)
class ClosestIndex:
    """Best candidate seen while searching for a target timestamp.

    A later probe replaces it only when strictly closer, so the first index
    reaching a given difference wins ties.

    Attributes:
        index: Best index observed so far
        difference: Absolute seconds between its timestamp and the target
    """

    index: int = 0
    difference: float = math.inf

    def observe(self, index: int, timestamp: int, target: int) -> bool:
        """Record a probe; return True if it became the closest candidate."""
        difference = abs(timestamp - target)
        if difference < self.difference:
            self.index = index
            self.difference = difference
            return True
        return False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {"index": self.index, "difference": self.difference}


@dataclass(slots=True)
class SearchWindow:
    """Bounds of an in-progress binary search and its best candidate.

    The closest candidate is tracked across every probe of the search, not
    only the last comparison.

    Attributes:
        start: Lowest index still in the window
        end: Highest index still in the window
        closest: Best candidate observed so far
    """

    start: int
    end: int
    closest: ClosestIndex = field(default_factory=ClosestIndex)

    @property
    def is_open(self) -> bool:
        return self.start <= self.end

    @property
    def middle(self) -> int:
        return (self.start + self.end) // 2

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "start": self.start,
            "end": self.end,
            "closest_index": self.closest.index,
            "closest_difference": self.closest.difference,
        }
