"""
Shared streaming primitives.

Every indicator state is composed from a handful of these fixed-capacity
structures. All of them follow the provisional/final discipline: preview()
computes without mutating, add()/append()/push() commits.

Public API:
-----------

Primitives (from primitives.py):
    RingBuffer               - Fixed-size circular buffer with offset lookup
    MonotonicDeque           - O(1) amortized sliding window min/max

Rolling windows (from rolling.py):
    RollingWindowSum         - Trailing sum with O(1) eviction
    RollingWindowStats       - Trailing sum + sum of squares
    RollingWindowDecaySum    - Cumulative sum with a forgetting factor
    RollingWindowMax         - Trailing maximum
    RollingWindowMin         - Trailing minimum
    RollingWindowMedian      - Trailing median
    RollingWindowCorrelation - Trailing Pearson correlation of two streams
    WindowSnapshot           - (total, total_squares, count) with mean/variance

Example Usage:
--------------

    from streamta.structures import RollingWindowMax

    window = RollingWindowMax(3)
    for price in (5, 3, 8, 1, 2):
        highest, count = window.add(price)

    # Intrabar: what would the max be if the open bar closed at 9?
    candidate, _ = window.preview(9.0)
"""

from .primitives import MonotonicDeque, RingBuffer
from .rolling import (
    RollingWindowCorrelation,
    RollingWindowDecaySum,
    RollingWindowMax,
    RollingWindowMedian,
    RollingWindowMin,
    RollingWindowStats,
    RollingWindowSum,
    WindowSnapshot,
)

__all__ = [
    "MonotonicDeque",
    "RingBuffer",
    "RollingWindowCorrelation",
    "RollingWindowDecaySum",
    "RollingWindowMax",
    "RollingWindowMedian",
    "RollingWindowMin",
    "RollingWindowStats",
    "RollingWindowSum",
    "WindowSnapshot",
]
