"""
Lookback-based indicator states using rolling max/min windows.

Includes Midpoint, Midprice, Donchian, Williams %R, and Stochastic --
indicators that track the highest and lowest values over a lookback window.
The windows are monotonic deques, so every update is amortized O(1).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from streamta.indicators.models import OhlcvBar
from streamta.structures import RollingWindowMax, RollingWindowMin
from streamta.utils.helpers import clamp

from .base import IndicatorState, SourcedIndicatorState
from .factory import create_smoother
from .smoothers import MovingAverageSmoother, MovingAvgType


@dataclass
class _HighLowState(IndicatorState):
    """Shared max/min windows over a lookback length."""

    length: int = 14
    _highest: RollingWindowMax = field(init=False, repr=False)
    _lowest: RollingWindowMin = field(init=False, repr=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        self._highest = RollingWindowMax(self.length)
        self._lowest = RollingWindowMin(self.length)
        self.length = self._highest.length

    def _extremes(self, high: float, low: float, is_final: bool) -> tuple[float, float]:
        highest, _ = self._highest.next(high, is_final)
        lowest, _ = self._lowest.next(low, is_final)
        return highest, lowest

    def _reset_state(self) -> None:
        self._highest.reset()
        self._lowest.reset()

    @property
    def warmup_bars(self) -> int:
        return self.length


@dataclass
class MidpointState(_HighLowState, SourcedIndicatorState):
    """Midpoint of the highest and lowest selected input over the lookback."""

    name: ClassVar[str] = "Midpoint"

    def _step(self, bar, is_final, include_outputs):
        value = self._resolve_input(bar)
        highest, lowest = self._extremes(value, value, is_final)
        midpoint = (highest + lowest) / 2
        return midpoint, {"Midpoint": midpoint} if include_outputs else None


@dataclass
class MidpriceState(_HighLowState):
    """Midpoint of the highest high and lowest low over the lookback."""

    name: ClassVar[str] = "Midprice"

    def _step(self, bar: OhlcvBar, is_final, include_outputs):
        highest, lowest = self._extremes(bar.high, bar.low, is_final)
        midprice = (highest + lowest) / 2
        return midprice, {"Midprice": midprice} if include_outputs else None


@dataclass
class DonchianChannelsState(_HighLowState):
    """
    Donchian Channels.

    Formula:
        upper = highest high over length
        lower = lowest low over length
        middle = (upper + lower) / 2

    The primary value is the middle channel.
    """

    name: ClassVar[str] = "DonchianChannels"

    length: int = 20

    def _step(self, bar: OhlcvBar, is_final, include_outputs):
        upper, lower = self._extremes(bar.high, bar.low, is_final)
        middle = (upper + lower) / 2
        if not include_outputs:
            return middle, None
        return middle, {"UpperChannel": upper, "MiddleChannel": middle, "LowerChannel": lower}


@dataclass
class WilliamsRState(_HighLowState, SourcedIndicatorState):
    """
    Williams %R.

    Formula:
        wr = -100 * (highest_high - close) / (highest_high - lowest_low)

    Reads -100 when the range is zero.
    """

    name: ClassVar[str] = "WilliamsR"

    def _step(self, bar, is_final, include_outputs):
        close = self._resolve_input(bar)
        highest, lowest = self._extremes(bar.high, bar.low, is_final)
        price_range = highest - lowest
        if price_range != 0:
            williams_r = -100 * (highest - close) / price_range
        else:
            williams_r = -100.0
        return williams_r, {"WilliamsR": williams_r} if include_outputs else None


@dataclass
class StochasticOscillatorState(_HighLowState, SourcedIndicatorState):
    """
    Stochastic Oscillator.

    Formula:
        fast_k = 100 * (close - lowest_low) / (highest_high - lowest_low)
        fast_d = MA(fast_k, smooth_length1)
        slow_d = MA(fast_d, smooth_length2)

    fast_k is clamped to [0, 100] and reads 0 when the range is zero.
    The primary value is fast_k.
    """

    name: ClassVar[str] = "StochasticOscillator"

    smooth_length1: int = 3
    smooth_length2: int = 3
    ma_type: MovingAvgType | str = MovingAvgType.SIMPLE
    _fast: MovingAverageSmoother = field(init=False, repr=False)
    _slow: MovingAverageSmoother = field(init=False, repr=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        self._fast = create_smoother(self.ma_type, self.smooth_length1)
        self._slow = create_smoother(self.ma_type, self.smooth_length2)
        self.ma_type = MovingAvgType(self.ma_type)
        self.smooth_length1 = self._fast.length
        self.smooth_length2 = self._slow.length

    def _step(self, bar, is_final, include_outputs):
        close = self._resolve_input(bar)
        highest, lowest = self._extremes(bar.high, bar.low, is_final)
        price_range = highest - lowest
        if price_range != 0:
            fast_k = clamp((close - lowest) / price_range * 100, 100, 0)
        else:
            fast_k = 0.0
        fast_d = self._fast.next(fast_k, is_final)
        slow_d = self._slow.next(fast_d, is_final)
        if not include_outputs:
            return fast_k, None
        return fast_k, {"FastK": fast_k, "FastD": fast_d, "SlowD": slow_d}

    def _reset_state(self) -> None:
        super()._reset_state()
        self._fast.reset()
        self._slow.reset()

    @property
    def warmup_bars(self) -> int:
        return self.length + self.smooth_length1 + self.smooth_length2 - 2
