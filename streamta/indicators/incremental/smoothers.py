"""
Moving-average smoothers used inside composite indicator states.

A smoother turns a stream of values into a smoothed stream with the same
provisional/final discipline as the indicator states themselves:

    smoothed = smoother.next(value, is_final)

Kinds (MovingAvgType):
    SIMPLE      - arithmetic mean of the trailing N values
    EXPONENTIAL - EMA, alpha = 2 / (N + 1), running mean while warming up
    WEIGHTED    - linearly weighted mean, newest weight N
    WILDER      - Wilder smoothing, alpha = 1 / N, seeded at 0
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from streamta.structures import RollingWindowSum
from streamta.utils.helpers import exact_sum, resolve_length


class MovingAvgType(str, Enum):
    """Closed set of smoothing kinds."""
    SIMPLE = "sma"
    EXPONENTIAL = "ema"
    WEIGHTED = "wma"
    WILDER = "wilder"


class MovingAverageSmoother(ABC):
    """Base class for smoothers."""

    length: int

    @abstractmethod
    def next(self, value: float, is_final: bool = True) -> float:
        """Smoothed value after value; commits only when is_final."""
        ...

    @abstractmethod
    def reset(self) -> None:
        """Reset state to initial."""
        ...

    @property
    @abstractmethod
    def is_warm(self) -> bool:
        """True once at least one value has been committed."""
        ...


@dataclass
class SimpleMovingAverageSmoother(MovingAverageSmoother):
    """
    Simple Moving Average.

    Returns 0.0 until `length` values have been committed (or would be,
    counting the provisional one), then sum / length.

    Example:
        >>> sma = SimpleMovingAverageSmoother(3)
        >>> [sma.next(v) for v in (3.0, 6.0, 9.0, 12.0)]
        [0.0, 0.0, 6.0, 9.0]
    """

    length: int = 14
    _window: RollingWindowSum = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.length = resolve_length(self.length, type(self).__name__)
        self._window = RollingWindowSum(self.length)

    def next(self, value: float, is_final: bool = True) -> float:
        total, count = self._window.next(value, is_final)
        if count < self.length:
            return 0.0
        return total / self.length

    def reset(self) -> None:
        self._window.reset()

    @property
    def is_warm(self) -> bool:
        return self._window.is_warm


@dataclass
class ExponentialMovingAverageSmoother(MovingAverageSmoother):
    """
    Exponential Moving Average.

    Formula:
        k = 2 / (length + 1)
        first `length` values: running mean of the values seen
        afterwards: ema = value * k + ema_prev * (1 - k)

    The warm-up mean keeps early values finite and on scale; with length 1
    the output equals the input.
    """

    length: int = 14
    _k: float = field(init=False, repr=False)
    _count: int = field(default=0, init=False, repr=False)
    _sum: float = field(default=0.0, init=False, repr=False)
    _prev: float = field(default=0.0, init=False, repr=False)

    def __post_init__(self) -> None:
        self.length = resolve_length(self.length, type(self).__name__)
        self._k = 2.0 / (self.length + 1)

    def next(self, value: float, is_final: bool = True) -> float:
        if self._count < self.length:
            total = self._sum + value
            ema = total / (self._count + 1)
            if is_final:
                self._sum = total
                self._count += 1
                self._prev = ema
            return ema

        ema = value * self._k + self._prev * (1 - self._k)
        if is_final:
            self._prev = ema
            self._count += 1
        return ema

    def reset(self) -> None:
        self._count = 0
        self._sum = 0.0
        self._prev = 0.0

    @property
    def is_warm(self) -> bool:
        return self._count > 0


@dataclass
class WeightedMovingAverageSmoother(MovingAverageSmoother):
    """
    Linearly Weighted Moving Average with amortized O(1) updates.

    Keeps the weighted numerator and the plain window sum:
        numerator' = numerator + length * value - window_sum
        wma = numerator' / (length * (length + 1) / 2)

    Missing history during warm-up counts as zero. The numerator is rebuilt
    from the window once per `length` commits, and whenever it is not
    finite, so a NaN input stops mattering once it leaves the window.
    """

    length: int = 14
    _denominator: float = field(init=False, repr=False)
    _numerator: float = field(default=0.0, init=False, repr=False)
    _steps: int = field(default=0, init=False, repr=False)
    _window: RollingWindowSum = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.length = resolve_length(self.length, type(self).__name__)
        self._denominator = self.length * (self.length + 1) / 2.0
        self._window = RollingWindowSum(self.length)

    def _next_numerator(self, value: float) -> tuple[float, bool]:
        if self._steps + 1 < self.length and math.isfinite(self._numerator):
            numerator = self._numerator + self.length * value - self._window.total
            if math.isfinite(numerator):
                return numerator, False
        values = self._window.buffer.preview_values(value)
        weights = np.arange(self.length - len(values) + 1, self.length + 1, dtype=np.float64)
        return exact_sum(weights * values), True

    def next(self, value: float, is_final: bool = True) -> float:
        numerator, rebuilt = self._next_numerator(value)
        if is_final:
            self._numerator = numerator
            self._steps = 0 if rebuilt else self._steps + 1
            self._window.add(value)
        return numerator / self._denominator

    def reset(self) -> None:
        self._numerator = 0.0
        self._steps = 0
        self._window.reset()

    @property
    def is_warm(self) -> bool:
        return self._window.is_warm


@dataclass
class WilderMovingAverageSmoother(MovingAverageSmoother):
    """
    Welles Wilder smoothing (RMA).

    Formula:
        k = 1 / length
        wwma = value * k + wwma_prev * (1 - k), wwma_prev starts at 0
    """

    length: int = 14
    _k: float = field(init=False, repr=False)
    _prev: float = field(default=0.0, init=False, repr=False)
    _count: int = field(default=0, init=False, repr=False)

    def __post_init__(self) -> None:
        self.length = resolve_length(self.length, type(self).__name__)
        self._k = 1.0 / self.length

    def next(self, value: float, is_final: bool = True) -> float:
        wwma = value * self._k + self._prev * (1 - self._k)
        if is_final:
            self._prev = wwma
            self._count += 1
        return wwma

    def reset(self) -> None:
        self._prev = 0.0
        self._count = 0

    @property
    def is_warm(self) -> bool:
        return self._count > 0
