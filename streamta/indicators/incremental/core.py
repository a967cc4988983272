"""
Core streaming indicator states.

Includes the moving averages (SMA, EMA, WMA, Wilder, TRIMA, HMA) and the
classic smoothed oscillators (RSI, MACD, ATR, ADX).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import ClassVar

from streamta.indicators.models import OhlcvBar
from streamta.utils.helpers import clamp, safe_div, true_range

from .base import IndicatorState, SourcedIndicatorState
from .factory import create_smoother
from .smoothers import (
    ExponentialMovingAverageSmoother,
    MovingAverageSmoother,
    MovingAvgType,
    WilderMovingAverageSmoother,
)


@dataclass
class _SmootherState(SourcedIndicatorState):
    """Single smoother applied to the selected input."""

    output_key: ClassVar[str] = "Value"
    smoother_type: ClassVar[MovingAvgType] = MovingAvgType.SIMPLE

    length: int = 14
    _smoother: MovingAverageSmoother = field(init=False, repr=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        self._smoother = create_smoother(self.smoother_type, self.length)
        self.length = self._smoother.length

    def _step(self, bar, is_final, include_outputs):
        result = self._smoother.next(self._resolve_input(bar), is_final)
        return result, {self.output_key: result} if include_outputs else None

    def _reset_state(self) -> None:
        self._smoother.reset()

    @property
    def warmup_bars(self) -> int:
        return self.length


@dataclass
class SimpleMovingAverageState(_SmootherState):
    """
    Simple Moving Average.

    Reads 0.0 until `length` bars have been seen, then the mean of the
    trailing `length` inputs.
    """

    name: ClassVar[str] = "SimpleMovingAverage"
    output_key: ClassVar[str] = "Sma"
    smoother_type: ClassVar[MovingAvgType] = MovingAvgType.SIMPLE


@dataclass
class ExponentialMovingAverageState(_SmootherState):
    """
    Exponential Moving Average.

    Formula:
        alpha = 2 / (length + 1)
        ema = alpha * value + (1 - alpha) * ema_prev

    The first `length` outputs are the running mean of the inputs seen.
    """

    name: ClassVar[str] = "ExponentialMovingAverage"
    output_key: ClassVar[str] = "Ema"
    smoother_type: ClassVar[MovingAvgType] = MovingAvgType.EXPONENTIAL


@dataclass
class WeightedMovingAverageState(_SmootherState):
    """Linearly Weighted Moving Average (newest weight = length)."""

    name: ClassVar[str] = "WeightedMovingAverage"
    output_key: ClassVar[str] = "Wma"
    smoother_type: ClassVar[MovingAvgType] = MovingAvgType.WEIGHTED


@dataclass
class WellesWilderMovingAverageState(_SmootherState):
    """Wilder smoothing (alpha = 1 / length) of the selected input."""

    name: ClassVar[str] = "WellesWilderMovingAverage"
    output_key: ClassVar[str] = "Wwma"
    smoother_type: ClassVar[MovingAvgType] = MovingAvgType.WILDER


@dataclass
class TriangularMovingAverageState(SourcedIndicatorState):
    """
    Triangular Moving Average: a moving average of a moving average.

    Both passes use the same kind and length.
    """

    name: ClassVar[str] = "TriangularMovingAverage"

    length: int = 20
    ma_type: MovingAvgType | str = MovingAvgType.SIMPLE
    _first: MovingAverageSmoother = field(init=False, repr=False)
    _second: MovingAverageSmoother = field(init=False, repr=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        self._first = create_smoother(self.ma_type, self.length)
        self._second = create_smoother(self.ma_type, self.length)
        self.length = self._first.length
        self.ma_type = MovingAvgType(self.ma_type)

    def _step(self, bar, is_final, include_outputs):
        sma = self._first.next(self._resolve_input(bar), is_final)
        tma = self._second.next(sma, is_final)
        return tma, {"Tma": tma} if include_outputs else None

    def _reset_state(self) -> None:
        self._first.reset()
        self._second.reset()

    @property
    def warmup_bars(self) -> int:
        return 2 * self.length - 1


@dataclass
class HullMovingAverageState(SourcedIndicatorState):
    """
    Hull Moving Average.

    Formula:
        raw = 2 * MA(value, round(length / 2)) - MA(value, length)
        hma = MA(raw, round(sqrt(length)))

    Rounding is half-to-even.
    """

    name: ClassVar[str] = "HullMovingAverage"

    length: int = 20
    ma_type: MovingAvgType | str = MovingAvgType.WEIGHTED
    _long: MovingAverageSmoother = field(init=False, repr=False)
    _short: MovingAverageSmoother = field(init=False, repr=False)
    _final: MovingAverageSmoother = field(init=False, repr=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        self._long = create_smoother(self.ma_type, self.length)
        self.length = self._long.length
        self.ma_type = MovingAvgType(self.ma_type)
        self._short = create_smoother(self.ma_type, max(1, round(self.length / 2)))
        self._final = create_smoother(self.ma_type, max(1, round(math.sqrt(self.length))))

    def _step(self, bar, is_final, include_outputs):
        value = self._resolve_input(bar)
        ma_long = self._long.next(value, is_final)
        ma_short = self._short.next(value, is_final)
        hma = self._final.next(2 * ma_short - ma_long, is_final)
        return hma, {"Hma": hma} if include_outputs else None

    def _reset_state(self) -> None:
        self._long.reset()
        self._short.reset()
        self._final.reset()

    @property
    def warmup_bars(self) -> int:
        return self.length + self._final.length - 1


@dataclass
class RelativeStrengthIndexState(SourcedIndicatorState):
    """
    Relative Strength Index with a smoothed signal line.

    Formula:
        avg_gain, avg_loss = Wilder(gain), Wilder(loss)
        rsi = 100 - 100 / (1 + avg_gain / avg_loss)
        rsi = 100 when avg_loss == 0, 0 when avg_gain == 0
        signal = Wilder(rsi, signal_length)

    The first bar has no previous value, so its change is 0.
    """

    name: ClassVar[str] = "RelativeStrengthIndex"

    length: int = 14
    signal_length: int = 3
    _avg_gain: WilderMovingAverageSmoother = field(init=False, repr=False)
    _avg_loss: WilderMovingAverageSmoother = field(init=False, repr=False)
    _signal: WilderMovingAverageSmoother = field(init=False, repr=False)
    _prev: float | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        self._avg_gain = WilderMovingAverageSmoother(self.length)
        self._avg_loss = WilderMovingAverageSmoother(self.length)
        self._signal = WilderMovingAverageSmoother(self.signal_length)
        self.length = self._avg_gain.length
        self.signal_length = self._signal.length

    def _step(self, bar, is_final, include_outputs):
        current = self._resolve_input(bar)
        change = current - self._prev if self._prev is not None else 0.0
        gain = change if change > 0 else 0.0
        loss = -change if change < 0 else 0.0

        avg_gain = self._avg_gain.next(gain, is_final)
        avg_loss = self._avg_loss.next(loss, is_final)
        if avg_loss == 0:
            rsi = 100.0
        elif avg_gain == 0:
            rsi = 0.0
        else:
            rsi = clamp(100 - 100 / (1 + avg_gain / avg_loss), 100, 0)
        signal = self._signal.next(rsi, is_final)

        if is_final:
            self._prev = current

        if not include_outputs:
            return rsi, None
        return rsi, {"Rsi": rsi, "Signal": signal, "Histogram": rsi - signal}

    def _reset_state(self) -> None:
        self._avg_gain.reset()
        self._avg_loss.reset()
        self._signal.reset()
        self._prev = None

    @property
    def warmup_bars(self) -> int:
        return self.length + 1


@dataclass
class MovingAverageConvergenceDivergenceState(SourcedIndicatorState):
    """
    MACD.

    Formula:
        macd = EMA(fast) - EMA(slow)
        signal = EMA(macd, signal_length)
        histogram = macd - signal
    """

    name: ClassVar[str] = "MovingAverageConvergenceDivergence"

    fast_length: int = 12
    slow_length: int = 26
    signal_length: int = 9
    _fast: ExponentialMovingAverageSmoother = field(init=False, repr=False)
    _slow: ExponentialMovingAverageSmoother = field(init=False, repr=False)
    _signal: ExponentialMovingAverageSmoother = field(init=False, repr=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        self._fast = ExponentialMovingAverageSmoother(self.fast_length)
        self._slow = ExponentialMovingAverageSmoother(self.slow_length)
        self._signal = ExponentialMovingAverageSmoother(self.signal_length)
        self.fast_length = self._fast.length
        self.slow_length = self._slow.length
        self.signal_length = self._signal.length

    def _step(self, bar, is_final, include_outputs):
        value = self._resolve_input(bar)
        macd = self._fast.next(value, is_final) - self._slow.next(value, is_final)
        signal = self._signal.next(macd, is_final)
        if not include_outputs:
            return macd, None
        return macd, {"Macd": macd, "Signal": signal, "Histogram": macd - signal}

    def _reset_state(self) -> None:
        self._fast.reset()
        self._slow.reset()
        self._signal.reset()

    @property
    def warmup_bars(self) -> int:
        return max(self.fast_length, self.slow_length) + self.signal_length - 1


@dataclass
class AverageTrueRangeState(IndicatorState):
    """
    Average True Range (Wilder smoothing of true range).

    The first bar has no previous close, so its true range is high - low.
    """

    name: ClassVar[str] = "AverageTrueRange"

    length: int = 14
    _atr: WilderMovingAverageSmoother = field(init=False, repr=False)
    _prev_close: float | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        self._atr = WilderMovingAverageSmoother(self.length)
        self.length = self._atr.length

    def _step(self, bar: OhlcvBar, is_final, include_outputs):
        if self._prev_close is None:
            tr = bar.high - bar.low
        else:
            tr = true_range(bar.high, bar.low, self._prev_close)
        atr = self._atr.next(tr, is_final)
        if is_final:
            self._prev_close = bar.close
        return atr, {"Atr": atr} if include_outputs else None

    def _reset_state(self) -> None:
        self._atr.reset()
        self._prev_close = None

    @property
    def warmup_bars(self) -> int:
        return self.length


@dataclass
class AverageDirectionalIndexState(IndicatorState):
    """
    Average Directional Index.

    Formula:
        +DM = up_move if up_move > down_move and > 0 else 0
        -DM = down_move if down_move > up_move and > 0 else 0
        +DI = 100 * Wilder(+DM) / Wilder(TR)
        -DI = 100 * Wilder(-DM) / Wilder(TR)
        DX = 100 * |+DI - -DI| / (+DI + -DI)
        ADX = Wilder(DX)

    The first bar has no previous bar; its directional movement is 0 and
    its true range is high - low.
    """

    name: ClassVar[str] = "AverageDirectionalIndex"

    length: int = 14
    _dm_plus: WilderMovingAverageSmoother = field(init=False, repr=False)
    _dm_minus: WilderMovingAverageSmoother = field(init=False, repr=False)
    _tr: WilderMovingAverageSmoother = field(init=False, repr=False)
    _adx: WilderMovingAverageSmoother = field(init=False, repr=False)
    _prev_bar: OhlcvBar | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        self._dm_plus = WilderMovingAverageSmoother(self.length)
        self.length = self._dm_plus.length
        self._dm_minus = WilderMovingAverageSmoother(self.length)
        self._tr = WilderMovingAverageSmoother(self.length)
        self._adx = WilderMovingAverageSmoother(self.length)

    def _step(self, bar: OhlcvBar, is_final, include_outputs):
        prev = self._prev_bar if self._prev_bar is not None else bar
        up_move = bar.high - prev.high
        down_move = prev.low - bar.low
        dm_plus = max(up_move, 0.0) if up_move > down_move else 0.0
        dm_minus = max(down_move, 0.0) if down_move > up_move else 0.0
        if self._prev_bar is None:
            tr = bar.high - bar.low
        else:
            tr = true_range(bar.high, bar.low, prev.close)

        dm_plus_smoothed = self._dm_plus.next(dm_plus, is_final)
        dm_minus_smoothed = self._dm_minus.next(dm_minus, is_final)
        tr_smoothed = self._tr.next(tr, is_final)

        di_plus = clamp(safe_div(100 * dm_plus_smoothed, tr_smoothed), 100, 0)
        di_minus = clamp(safe_div(100 * dm_minus_smoothed, tr_smoothed), 100, 0)
        dx = clamp(safe_div(100 * abs(di_plus - di_minus), di_plus + di_minus), 100, 0)
        adx = self._adx.next(dx, is_final)

        if is_final:
            self._prev_bar = bar

        if not include_outputs:
            return adx, None
        return adx, {"DiPlus": di_plus, "DiMinus": di_minus, "Adx": adx}

    def _reset_state(self) -> None:
        for smoother in (self._dm_plus, self._dm_minus, self._tr, self._adx):
            smoother.reset()
        self._prev_bar = None

    @property
    def warmup_bars(self) -> int:
        return 2 * self.length
