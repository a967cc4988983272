"""
Rolling window aggregates built on RingBuffer and MonotonicDeque.

Every window exposes the same two entry points:
- preview(value): result as if value were appended, no mutation
- add(value): append and return the new result

Both return the element count after the (real or hypothetical) append, so
callers can tell warm-up apart from a full window and divide by the number
of elements actually seen.

Running totals are updated in O(1) with a compensated (Neumaier) add of
the incoming value and subtract of the evicted one. They are rebuilt with
an exact sum over the retained values once per full turn of the ring, and
on any step that meets a non-finite value, so a NaN sample or a large
level shift stops affecting the total once it leaves the window.

Windows:
    RollingWindowSum         - Sum over the trailing N values
    RollingWindowStats       - Sum and sum of squares (mean / variance)
    RollingWindowDecaySum    - Cumulative sum with a forgetting factor
    RollingWindowMax         - Maximum over the trailing N values
    RollingWindowMin         - Minimum over the trailing N values
    RollingWindowMedian      - Median over the trailing N values
    RollingWindowCorrelation - Pearson correlation of two streams
"""

from __future__ import annotations

import math
from typing import Callable, Literal, NamedTuple

import numpy as np

from streamta.utils.helpers import clamp, exact_sum, resolve_decay, safe_sqrt

from .primitives import MonotonicDeque, RingBuffer


def _compensated_add(total: float, comp: float, value: float) -> tuple[float, float]:
    """One Neumaier step: (total, comp) + value, keeping the lost low bits in comp."""
    result = total + value
    if abs(total) >= abs(value):
        comp += (total - result) + value
    else:
        comp += (value - result) + total
    return result, comp


class _RunningTotal:
    """A windowed total kept as a compensated (sum, correction) pair."""

    __slots__ = ("_sum", "_comp")

    def __init__(self) -> None:
        self._sum = 0.0
        self._comp = 0.0

    @property
    def value(self) -> float:
        return self._sum + self._comp

    def next_state(
        self,
        value: float,
        evicted: float | None,
        rebuild: bool,
        retained: Callable[[], np.ndarray],
    ) -> tuple[float, float]:
        """
        State after adding value and removing evicted, without mutating.

        Falls back to an exact sum of retained() when rebuild is set, when
        the current total is not finite, or when the step would not be.
        """
        if not rebuild and math.isfinite(self._sum) and math.isfinite(self._comp):
            total, comp = _compensated_add(self._sum, self._comp, value)
            if evicted is not None:
                total, comp = _compensated_add(total, comp, -evicted)
            if math.isfinite(total) and math.isfinite(comp):
                return total, comp
        return exact_sum(retained()), 0.0

    def set(self, state: tuple[float, float]) -> None:
        self._sum, self._comp = state

    def reset(self) -> None:
        self._sum = 0.0
        self._comp = 0.0


class WindowSnapshot(NamedTuple):
    """Aggregates of a RollingWindowStats window at one point in time."""

    total: float
    total_squares: float
    count: int

    def mean(self, length: int | None = None) -> float:
        """
        Mean over `length` elements (defaults to the elements seen).

        Passing the nominal window length reproduces the "divide by full
        length" convention used by band indicators.
        """
        divisor = self.count if length is None else length
        if divisor <= 0:
            return 0.0
        return self.total / divisor

    def variance(self, length: int | None = None) -> float:
        """Population variance, floored at 0 against rounding error."""
        divisor = self.count if length is None else length
        if divisor <= 0:
            return 0.0
        mean = self.total / divisor
        variance = self.total_squares / divisor - mean * mean
        return variance if variance > 0 else 0.0

    def std(self, length: int | None = None) -> float:
        return safe_sqrt(self.variance(length))


class RollingWindowSum:
    """
    Sum over the trailing N values with O(1) amortized updates.

    Example:
        >>> window = RollingWindowSum(3)
        >>> [window.add(v)[0] for v in (1, 2, 3, 4)]
        [1.0, 3.0, 6.0, 9.0]
    """

    __slots__ = ("_window", "_total", "_steps")

    def __init__(self, length: int) -> None:
        self._window = RingBuffer(length)
        self._total = _RunningTotal()
        self._steps = 0  # commits since the last exact rebuild

    @property
    def length(self) -> int:
        return self._window.size

    @property
    def count(self) -> int:
        return len(self._window)

    @property
    def total(self) -> float:
        return self._total.value

    @property
    def is_warm(self) -> bool:
        return self._window.is_warm

    @property
    def buffer(self) -> RingBuffer:
        """Underlying ring buffer (read access for offset lookups)."""
        return self._window

    def _next_state(self, value: float) -> tuple[tuple[float, float], int, bool]:
        evicted, count_after = self._window.preview()
        rebuild = self._steps + 1 >= self._window.size
        state = self._total.next_state(
            value, evicted, rebuild, lambda: self._window.preview_values(value)
        )
        return state, count_after, rebuild

    def preview(self, value: float) -> tuple[float, int]:
        """Sum and count as if value were appended."""
        state, count_after, _ = self._next_state(value)
        return state[0] + state[1], count_after

    def add(self, value: float) -> tuple[float, int]:
        """Append value and return (sum, count_after)."""
        state, count_after, rebuild = self._next_state(value)
        self._window.append(value)
        self._total.set(state)
        self._steps = 0 if rebuild else self._steps + 1
        return self._total.value, count_after

    def next(self, value: float, is_final: bool) -> tuple[float, int]:
        """Dispatch to add() when final, preview() otherwise."""
        return self.add(value) if is_final else self.preview(value)

    def reset(self) -> None:
        self._window.clear()
        self._total.reset()
        self._steps = 0


class RollingWindowStats:
    """
    Sum and sum of squares over the trailing N values.

    Used for rolling mean / variance / standard deviation in O(1).
    """

    __slots__ = ("_window", "_sum", "_sum_squares", "_steps")

    def __init__(self, length: int) -> None:
        self._window = RingBuffer(length)
        self._sum = _RunningTotal()
        self._sum_squares = _RunningTotal()
        self._steps = 0

    @property
    def length(self) -> int:
        return self._window.size

    @property
    def is_warm(self) -> bool:
        return self._window.is_warm

    def _next_state(self, value: float):
        evicted, count_after = self._window.preview()
        rebuild = self._steps + 1 >= self._window.size

        def retained() -> np.ndarray:
            return self._window.preview_values(value)

        total = self._sum.next_state(value, evicted, rebuild, retained)
        squares = self._sum_squares.next_state(
            value * value,
            None if evicted is None else evicted * evicted,
            rebuild,
            lambda: np.square(retained()),
        )
        return total, squares, count_after, rebuild

    def preview(self, value: float) -> WindowSnapshot:
        total, squares, count_after, _ = self._next_state(value)
        return WindowSnapshot(total[0] + total[1], squares[0] + squares[1], count_after)

    def add(self, value: float) -> WindowSnapshot:
        total, squares, count_after, rebuild = self._next_state(value)
        self._window.append(value)
        self._sum.set(total)
        self._sum_squares.set(squares)
        self._steps = 0 if rebuild else self._steps + 1
        return WindowSnapshot(self._sum.value, self._sum_squares.value, count_after)

    def next(self, value: float, is_final: bool) -> WindowSnapshot:
        return self.add(value) if is_final else self.preview(value)

    def reset(self) -> None:
        self._window.clear()
        self._sum.reset()
        self._sum_squares.reset()
        self._steps = 0


class RollingWindowDecaySum:
    """
    Cumulative sum with a forgetting factor.

    total' = total * decay + value, so a value k commits old carries weight
    decay**k. decay is clamped into (0, 1]; decay=1 is a plain running sum.
    A non-finite total restarts from the incoming value.

    Example:
        >>> window = RollingWindowDecaySum(0.5)
        >>> [window.add(v)[0] for v in (4, 4, 4)]
        [4.0, 6.0, 7.0]
    """

    __slots__ = ("decay", "_total", "_count")

    def __init__(self, decay: float) -> None:
        self.decay = resolve_decay(decay, "RollingWindowDecaySum")
        self._total = 0.0
        self._count = 0

    @property
    def count(self) -> int:
        return self._count

    @property
    def total(self) -> float:
        return self._total

    @property
    def is_warm(self) -> bool:
        return self._count > 0

    def _next_total(self, value: float) -> float:
        if not math.isfinite(self._total):
            return float(value)
        return self._total * self.decay + value

    def preview(self, value: float) -> tuple[float, int]:
        return self._next_total(value), self._count + 1

    def add(self, value: float) -> tuple[float, int]:
        self._total = self._next_total(value)
        self._count += 1
        return self._total, self._count

    def next(self, value: float, is_final: bool) -> tuple[float, int]:
        return self.add(value) if is_final else self.preview(value)

    def reset(self) -> None:
        self._total = 0.0
        self._count = 0


class _RollingExtremum:
    """Shared implementation of RollingWindowMax / RollingWindowMin."""

    __slots__ = ("_window", "_deque", "_index")

    _mode: Literal["min", "max"] = "max"

    def __init__(self, length: int) -> None:
        self._window = RingBuffer(length)
        self._deque = MonotonicDeque(self._window.size, self._mode)
        self._index = 0

    @property
    def length(self) -> int:
        return self._window.size

    @property
    def is_warm(self) -> bool:
        return self._window.is_warm

    @property
    def value(self) -> float:
        """Current extremum over committed values (0.0 when cold)."""
        current = self._deque.get()
        return 0.0 if current is None else current

    def preview(self, value: float) -> tuple[float, int]:
        """Extremum and count as if value were appended."""
        value = float(value)
        _, count_after = self._window.preview()
        return self._deque.preview(self._index, value), count_after

    def add(self, value: float) -> tuple[float, int]:
        """Append value and return (extremum, count_after)."""
        value = float(value)
        self._window.append(value)
        self._deque.push(self._index, value)
        self._index += 1
        return self.value, len(self._window)

    def next(self, value: float, is_final: bool) -> tuple[float, int]:
        return self.add(value) if is_final else self.preview(value)

    def reset(self) -> None:
        self._window.clear()
        self._deque.clear()
        self._index = 0


class RollingWindowMax(_RollingExtremum):
    """
    Maximum over the trailing N values, amortized O(1).

    Example:
        >>> window = RollingWindowMax(3)
        >>> [window.add(v)[0] for v in (5, 3, 8, 1, 2)]
        [5.0, 5.0, 8.0, 8.0, 8.0]
    """

    __slots__ = ()
    _mode = "max"


class RollingWindowMin(_RollingExtremum):
    """Minimum over the trailing N values, amortized O(1)."""

    __slots__ = ()
    _mode = "min"


class RollingWindowMedian:
    """
    Median over the trailing N values.

    Each query sorts the retained values, O(N log N); fine for the short
    windows median filters use. Even counts average the two middle values.
    Reads 0.0 when cold.

    Example:
        >>> window = RollingWindowMedian(3)
        >>> [window.add(v)[0] for v in (5, 1, 4, 2)]
        [5.0, 3.0, 4.0, 2.0]
    """

    __slots__ = ("_window",)

    def __init__(self, length: int) -> None:
        self._window = RingBuffer(length)

    @property
    def length(self) -> int:
        return self._window.size

    @property
    def is_warm(self) -> bool:
        return self._window.is_warm

    @property
    def value(self) -> float:
        """Median of the committed values (0.0 when cold)."""
        return self._median(self._window.to_array())

    @staticmethod
    def _median(values: np.ndarray) -> float:
        if len(values) == 0:
            return 0.0
        return float(np.median(values))

    def preview(self, value: float) -> tuple[float, int]:
        """Median and count as if value were appended."""
        values = self._window.preview_values(value)
        return self._median(values), len(values)

    def add(self, value: float) -> tuple[float, int]:
        self._window.append(value)
        return self.value, len(self._window)

    def next(self, value: float, is_final: bool) -> tuple[float, int]:
        return self.add(value) if is_final else self.preview(value)

    def reset(self) -> None:
        self._window.clear()


class RollingWindowCorrelation:
    """
    Pearson correlation of two streams over the trailing N pairs.

    Built from five rolling sums (x, y, x^2, y^2, xy):
        r = (n*Sxy - Sx*Sy) / sqrt((n*Sxx - Sx^2) * (n*Syy - Sy^2))

    Returns 0.0 when fewer than two pairs are retained, when the window
    length is 1, or when either stream is constant over the window. The
    sums cancel catastrophically when x or y sit far from zero relative to
    their spread; shift_x() moves x back near zero without changing r.
    """

    __slots__ = ("_length", "_x", "_y", "_xx", "_yy", "_xy")

    def __init__(self, length: int) -> None:
        self._x = RollingWindowSum(length)
        self._length = self._x.length
        self._y = RollingWindowSum(self._length)
        self._xx = RollingWindowSum(self._length)
        self._yy = RollingWindowSum(self._length)
        self._xy = RollingWindowSum(self._length)

    @property
    def length(self) -> int:
        return self._length

    @property
    def is_warm(self) -> bool:
        return self._x.is_warm

    def _calculate(
        self, sum_x: float, sum_y: float, sum_xx: float, sum_yy: float, sum_xy: float, n: int
    ) -> float:
        if self._length <= 1 or n <= 1:
            return 0.0
        numerator = n * sum_xy - sum_x * sum_y
        denom_x = n * sum_xx - sum_x * sum_x
        denom_y = n * sum_yy - sum_y * sum_y
        denom = safe_sqrt(denom_x * denom_y)
        if denom == 0:
            return 0.0
        # rounding in the cancelling sums can push |r| slightly past 1
        return clamp(numerator / denom, 1.0, -1.0)

    def preview(self, x: float, y: float) -> tuple[float, int]:
        sum_x, count_after = self._x.preview(x)
        sum_y, _ = self._y.preview(y)
        sum_xx, _ = self._xx.preview(x * x)
        sum_yy, _ = self._yy.preview(y * y)
        sum_xy, _ = self._xy.preview(x * y)
        return self._calculate(sum_x, sum_y, sum_xx, sum_yy, sum_xy, count_after), count_after

    def add(self, x: float, y: float) -> tuple[float, int]:
        sum_x, count_after = self._x.add(x)
        sum_y, _ = self._y.add(y)
        sum_xx, _ = self._xx.add(x * x)
        sum_yy, _ = self._yy.add(y * y)
        sum_xy, _ = self._xy.add(x * y)
        return self._calculate(sum_x, sum_y, sum_xx, sum_yy, sum_xy, count_after), count_after

    def next(self, x: float, y: float, is_final: bool) -> tuple[float, int]:
        return self.add(x, y) if is_final else self.preview(x, y)

    def shift_x(self, offset: float) -> None:
        """Subtract offset from every retained x and rebuild the sums, O(N)."""
        xs = self._x.buffer.to_array() - offset
        ys = self._y.buffer.to_array()
        self.reset()
        for x, y in zip(xs.tolist(), ys.tolist()):
            self.add(x, y)

    def reset(self) -> None:
        for window in (self._x, self._y, self._xx, self._yy, self._xy):
            window.reset()
