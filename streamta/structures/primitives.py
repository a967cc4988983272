"""
Incremental state primitives for O(1) hot-loop operations.

Provides low-level data structures for efficient incremental computation:
- RingBuffer: Fixed-size circular buffer with "N bars ago" offset lookup
- MonotonicDeque: O(1) amortized sliding window min/max

Both follow the provisional/final discipline used by every indicator state:
preview() answers "what if this value were appended" without touching
retained state, while append()/push() commits.

Performance Contract:
- RingBuffer.append(): O(1)
- RingBuffer.preview(): O(1)
- RingBuffer.get_offset(): O(1)
- MonotonicDeque.push(): O(1) amortized
- MonotonicDeque.get(): O(1)
- MonotonicDeque.preview(): O(k) where k = expired entries at the front
"""

from __future__ import annotations

from collections import deque
from typing import Iterator, Literal

import numpy as np

from streamta.utils.helpers import resolve_length


class RingBuffer:
    """
    Fixed-size circular buffer for O(1) append and offset access.

    Elements are accessed either by logical index (0 = oldest,
    len-1 = newest) or by offset from the most recent commit
    (1 = newest, 2 = the one before, ...).

    Example:
        >>> buf = RingBuffer(size=3)
        >>> buf.append(1.0)
        >>> buf.append(2.0)
        >>> buf.append(3.0)
        >>> buf.is_full()
        True
        >>> buf.append(4.0)  # overwrites 1.0
        1.0
        >>> buf[0]  # oldest
        2.0
        >>> buf.get_offset(1)  # newest
        4.0
        >>> buf.get_offset(5)  # not enough history
        0.0

    Attributes:
        size: Maximum number of elements the buffer can hold.
    """

    __slots__ = ("size", "_buffer", "_head", "_count")

    def __init__(self, size: int) -> None:
        """
        Initialize ring buffer with fixed size.

        Args:
            size: Maximum number of elements (clamped to >= 1).
        """
        self.size = resolve_length(size, "RingBuffer", "size")
        self._buffer = np.zeros(self.size, dtype=np.float64)
        self._head = 0  # Next write position
        self._count = 0  # Number of elements stored

    @property
    def capacity(self) -> int:
        return self.size

    @property
    def is_warm(self) -> bool:
        """True once at least one value has been committed."""
        return self._count > 0

    def append(self, value: float) -> float | None:
        """
        Commit a value, overwriting the oldest if full.

        Args:
            value: Value to add.

        Returns:
            The evicted value when the buffer was full, else None.
        """
        evicted: float | None = None
        if self._count == self.size:
            evicted = float(self._buffer[self._head])
        self._buffer[self._head] = value
        self._head = (self._head + 1) % self.size
        if self._count < self.size:
            self._count += 1
        return evicted

    def preview(self) -> tuple[float | None, int]:
        """
        Describe what the next append would do, without mutating.

        Eviction depends only on occupancy, so no value is needed.

        Returns:
            (evicted, count_after): the value that would be evicted
            (None when not full) and the element count after the append.
        """
        if self._count < self.size:
            return None, self._count + 1
        return float(self._buffer[self._head]), self.size

    def preview_values(self, value: float) -> np.ndarray:
        """Retained values as they would read after append(value), oldest first."""
        retained = self.to_array()
        if self._count == self.size:
            retained = retained[1:]
        return np.append(retained, value)

    def get_offset(
        self,
        offset: int,
        default: float = 0.0,
        pending: float | None = None,
    ) -> float:
        """
        Get the value `offset` commits back from the most recent one.

        offset=1 is the most recent commit. Offsets past the retained
        history return `default` instead of raising, so indicators read a
        neutral value during warm-up.

        When `pending` is given it stands in for an uncommitted current
        value at offset 0, letting a provisional update read
        "current + history" through a single call.

        Args:
            offset: Number of commits back (1 = newest).
            default: Value returned when the offset is out of range.
            pending: Optional uncommitted value returned for offset 0.

        Returns:
            The value at that offset, or `default`.
        """
        if offset <= 0:
            if offset == 0 and pending is not None:
                return pending
            return default
        if offset > self._count:
            return default
        physical = (self._head - offset) % self.size
        return float(self._buffer[physical])

    def __getitem__(self, idx: int) -> float:
        """
        Get element by logical index (0 = oldest, count-1 = newest).

        Raises:
            IndexError: If idx is out of range.
        """
        if idx < 0 or idx >= self._count:
            raise IndexError(
                f"Index {idx} out of range [0, {self._count})\n"
                f"\n"
                f"Buffer has {self._count} elements. "
                f"Use get_offset() for warm-up safe lookups."
            )
        physical = (self._head - self._count + idx) % self.size
        return float(self._buffer[physical])

    @property
    def oldest(self) -> float | None:
        """Oldest retained value, or None when empty."""
        if self._count == 0:
            return None
        return self[0]

    @property
    def newest(self) -> float | None:
        """Most recently committed value, or None when empty."""
        if self._count == 0:
            return None
        return self.get_offset(1)

    def is_full(self) -> bool:
        """True if buffer contains exactly 'size' elements."""
        return self._count == self.size

    def to_array(self) -> np.ndarray:
        """Copy of the retained values, oldest first."""
        if self._count == 0:
            return np.empty(0, dtype=np.float64)
        start = (self._head - self._count) % self.size
        idx = (start + np.arange(self._count)) % self.size
        return self._buffer[idx].copy()

    def __iter__(self) -> Iterator[float]:
        for i in range(self._count):
            yield self[i]

    def __len__(self) -> int:
        """Return the number of elements currently stored."""
        return self._count

    def __repr__(self) -> str:
        return f"RingBuffer(size={self.size}, count={self._count})"

    def clear(self) -> None:
        """Reset buffer to empty state."""
        self._buffer.fill(0.0)
        self._head = 0
        self._count = 0


class MonotonicDeque:
    """
    O(1) amortized sliding window min or max.

    Maintains a monotonic invariant so the front element is always
    the min (or max) within the current window.

    Algorithm:
    - MIN mode: deque values increase (front = smallest)
    - MAX mode: deque values decrease (front = largest)

    Each element is pushed at most once and popped at most once,
    giving O(1) amortized cost per push.

    Example:
        >>> window = MonotonicDeque(window_size=3, mode="min")
        >>> window.push(0, 5.0)  # window: [5]
        >>> window.push(1, 3.0)  # window: [3]
        >>> window.push(2, 4.0)  # window: [3, 4]
        >>> window.get()
        3.0
        >>> window.preview(3, 1.0)  # would be [1]; nothing changes
        1.0
        >>> window.get()
        3.0

    Attributes:
        window_size: Number of elements in the sliding window.
        mode: "min" for minimum tracking, "max" for maximum tracking.
    """

    __slots__ = ("window_size", "mode", "_deque")

    def __init__(self, window_size: int, mode: Literal["min", "max"]) -> None:
        """
        Initialize monotonic deque.

        Args:
            window_size: Size of the sliding window (clamped to >= 1).
            mode: "min" to track minimum, "max" to track maximum.

        Raises:
            ValueError: If mode is invalid.
        """
        if mode not in ("min", "max"):
            raise ValueError(
                f"mode must be 'min' or 'max', got '{mode}'\n"
                f"\n"
                f"Fix: MonotonicDeque(window_size=20, mode='min')"
            )
        self.window_size = resolve_length(window_size, "MonotonicDeque", "window_size")
        self.mode = mode
        self._deque: deque[tuple[int, float]] = deque()

    def _dominates(self, candidate: float, existing: float) -> bool:
        """True when candidate makes existing irrelevant for the window."""
        if self.mode == "min":
            return existing >= candidate
        return existing <= candidate

    def push(self, idx: int, value: float) -> None:
        """
        Add a value to the window at the given index.

        The index must be monotonically increasing across calls.
        Elements outside the window are evicted automatically.

        Args:
            idx: Bar index (must increase with each call).
            value: Value to add to the window.
        """
        # Maintain monotonic property
        while self._deque and self._dominates(value, self._deque[-1][1]):
            self._deque.pop()
        self._deque.append((idx, value))

        # Evict entries outside window (by index)
        while self._deque and self._deque[0][0] <= idx - self.window_size:
            self._deque.popleft()

    def preview(self, idx: int, value: float) -> float:
        """
        Extremum the window would hold after push(idx, value).

        Does not mutate the deque.
        """
        expire = idx - self.window_size
        for entry_idx, entry_value in self._deque:
            if entry_idx <= expire:
                continue
            # First live entry is the extremum of the surviving elements
            if self._dominates(value, entry_value):
                return value
            return entry_value
        return value

    def get(self) -> float | None:
        """
        Get the current min or max value in the window.

        Returns:
            The minimum (or maximum) value in the current window,
            or None if the window is empty.
        """
        if not self._deque:
            return None
        return self._deque[0][1]

    def get_index(self) -> int | None:
        """Index of the current extremum, or None if empty."""
        if not self._deque:
            return None
        return self._deque[0][0]

    def __len__(self) -> int:
        """Return the number of candidates currently in the deque."""
        return len(self._deque)

    def clear(self) -> None:
        """Clear all elements from the deque."""
        self._deque.clear()
