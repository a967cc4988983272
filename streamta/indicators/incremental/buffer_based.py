"""
Buffer-based indicator states using rolling sums and ring buffers.

Includes Bollinger Bands, Standard Deviation, Rate of Change, and Rolling
Correlation -- indicators that need aggregates or raw values from a trailing
window rather than a single recursive smoother.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from streamta.structures import (
    RingBuffer,
    RollingWindowCorrelation,
    RollingWindowStats,
    RollingWindowSum,
)
from streamta.utils.helpers import safe_div, safe_sqrt

from .base import SourcedIndicatorState
from .factory import create_smoother
from .smoothers import MovingAverageSmoother, MovingAvgType


@dataclass
class BollingerBandsState(SourcedIndicatorState):
    """
    Bollinger Bands with O(1) updates.

    Formula:
        middle = sum / length
        std = sqrt(sum_squares / length - middle^2)   (population)
        upper = middle + std_dev_mult * std
        lower = middle - std_dev_mult * std

    All bands read 0 until `length` bars have been seen. The primary value
    is the middle band.
    """

    name: ClassVar[str] = "BollingerBands"

    length: int = 20
    std_dev_mult: float = 2.0
    _window: RollingWindowStats = field(init=False, repr=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        self._window = RollingWindowStats(self.length)
        self.length = self._window.length

    def _step(self, bar, is_final, include_outputs):
        snapshot = self._window.next(self._resolve_input(bar), is_final)
        if snapshot.count >= self.length:
            middle = snapshot.mean(self.length)
            std_dev = snapshot.std(self.length)
        else:
            middle = 0.0
            std_dev = 0.0
        if not include_outputs:
            return middle, None
        band = std_dev * self.std_dev_mult
        return middle, {
            "UpperBand": middle + band,
            "MiddleBand": middle,
            "LowerBand": middle - band,
        }

    def _reset_state(self) -> None:
        self._window.reset()

    @property
    def warmup_bars(self) -> int:
        return self.length


@dataclass
class StandardDeviationState(SourcedIndicatorState):
    """
    Rolling Standard Deviation with a smoothed signal line.

    Formula:
        std = sqrt(MA(value^2, length) - (sum / length)^2)
        signal = MA(std, length)

    Negative variance from rounding reads as 0.
    """

    name: ClassVar[str] = "StandardDeviation"

    length: int = 14
    ma_type: MovingAvgType | str = MovingAvgType.SIMPLE
    _sum: RollingWindowSum = field(init=False, repr=False)
    _mean_square: MovingAverageSmoother = field(init=False, repr=False)
    _signal: MovingAverageSmoother = field(init=False, repr=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        self._sum = RollingWindowSum(self.length)
        self.length = self._sum.length
        self._mean_square = create_smoother(self.ma_type, self.length)
        self._signal = create_smoother(self.ma_type, self.length)
        self.ma_type = MovingAvgType(self.ma_type)

    def _step(self, bar, is_final, include_outputs):
        value = self._resolve_input(bar)
        total, _ = self._sum.next(value, is_final)
        mean_square = self._mean_square.next(value * value, is_final)
        mean = total / self.length
        std = safe_sqrt(mean_square - mean * mean)
        signal = self._signal.next(std, is_final)
        return std, {"Std": std, "Signal": signal} if include_outputs else None

    def _reset_state(self) -> None:
        self._sum.reset()
        self._mean_square.reset()
        self._signal.reset()

    @property
    def warmup_bars(self) -> int:
        return self.length


@dataclass
class RateOfChangeState(SourcedIndicatorState):
    """
    Rate of Change.

    Formula:
        roc = 100 * (value - value[length bars ago]) / value[length bars ago]

    Reads 0 until `length` earlier bars are available, and when the
    reference value is 0.
    """

    name: ClassVar[str] = "RateOfChange"

    length: int = 12
    _history: RingBuffer = field(init=False, repr=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        self._history = RingBuffer(self.length)
        self.length = self._history.size

    def _step(self, bar, is_final, include_outputs):
        current = self._resolve_input(bar)
        reference = self._history.get_offset(self.length)
        roc = safe_div(current - reference, reference) * 100
        if is_final:
            self._history.append(current)
        return roc, {"Roc": roc} if include_outputs else None

    def _reset_state(self) -> None:
        self._history.clear()

    @property
    def warmup_bars(self) -> int:
        return self.length + 1


@dataclass
class RollingCorrelationState(SourcedIndicatorState):
    """
    Pearson correlation of the selected input against bar position.

    Measures how linear the trend has been over the trailing `length` bars:
    +1 for a perfectly rising line, -1 for a falling one. Reads 0 with fewer
    than two bars or a flat window.

    Positions are counted from a base that moves forward every `length`
    bars, so x stays below 2 * length however long the feed runs.
    """

    name: ClassVar[str] = "RollingCorrelation"

    length: int = 20
    _correlation: RollingWindowCorrelation = field(init=False, repr=False)
    _index: int = field(default=0, init=False, repr=False)
    _base: int = field(default=0, init=False, repr=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        self._correlation = RollingWindowCorrelation(self.length)
        self.length = self._correlation.length

    def _step(self, bar, is_final, include_outputs):
        value = self._resolve_input(bar)
        position = float(self._index - self._base)
        corr, _ = self._correlation.next(position, value, is_final)
        if is_final:
            self._index += 1
            if self._index - self._base >= 2 * self.length:
                shift = self._index - self._base - self.length
                self._correlation.shift_x(shift)
                self._base += shift
        return corr, {"Corr": corr} if include_outputs else None

    def _reset_state(self) -> None:
        self._correlation.reset()
        self._index = 0
        self._base = 0

    @property
    def warmup_bars(self) -> int:
        return self.length
