"""
Bar model and input selection for streaming indicator states.

OhlcvBar is the only thing an indicator state reads from the outside world.
InputName picks which bar field (or derived price) a single-input indicator
consumes; a custom selector callable can be supplied instead.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

import pandas as pd


@dataclass(frozen=True, slots=True)
class OhlcvBar:
    """
    Single OHLCV bar.

    Immutable once observed. The same bar object may be fed to many
    indicator states; none of them mutate or retain it.

    Attributes:
        open: Open price.
        high: High price.
        low: Low price.
        close: Close price.
        volume: Volume.
        timestamp: Bar open time, if known.
        symbol: Instrument symbol, if known.

    Example:
        >>> bar = OhlcvBar(open=100.0, high=105.0, low=95.0, close=102.0, volume=1234.5)
        >>> bar.close
        102.0
    """

    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0
    timestamp: datetime | None = None
    symbol: str | None = None


class InputName(str, Enum):
    """
    Bar field selectors for single-input indicators.

    OHLCV: Use the named field directly
    Derived prices: Combine fields (typical price, median price, ...)
    """
    OPEN = "open"
    HIGH = "high"
    LOW = "low"
    CLOSE = "close"
    ADJUSTED_CLOSE = "adjusted_close"  # bars carry no adjustment; same as close
    VOLUME = "volume"
    TYPICAL_PRICE = "hlc3"          # (high + low + close) / 3
    FULL_TYPICAL_PRICE = "ohlc4"    # (open + high + low + close) / 4
    MEDIAN_PRICE = "hl2"            # (high + low) / 2
    WEIGHTED_CLOSE = "hlcc4"        # (high + low + 2 * close) / 4
    AVERAGE_PRICE = "oc2"           # (open + close) / 2


Selector = Callable[[OhlcvBar], float]


_SELECTORS: dict[InputName, Selector] = {
    InputName.OPEN: lambda b: b.open,
    InputName.HIGH: lambda b: b.high,
    InputName.LOW: lambda b: b.low,
    InputName.CLOSE: lambda b: b.close,
    InputName.ADJUSTED_CLOSE: lambda b: b.close,
    InputName.VOLUME: lambda b: b.volume,
    InputName.TYPICAL_PRICE: lambda b: (b.high + b.low + b.close) / 3,
    InputName.FULL_TYPICAL_PRICE: lambda b: (b.open + b.high + b.low + b.close) / 4,
    InputName.MEDIAN_PRICE: lambda b: (b.high + b.low) / 2,
    InputName.WEIGHTED_CLOSE: lambda b: (b.high + b.low + b.close * 2) / 4,
    InputName.AVERAGE_PRICE: lambda b: (b.open + b.close) / 2,
}


def coerce_input_name(input_name: InputName | str) -> InputName:
    """Convert an InputName or its string value, rejecting unknown names."""
    try:
        return InputName(input_name)
    except ValueError:
        raise ValueError(
            f"Unknown input name: {input_name!r}\n"
            f"\n"
            f"Fix: use one of {[name.value for name in InputName]}"
        ) from None


def select_input(bar: OhlcvBar, input_name: InputName | str = InputName.CLOSE) -> float:
    """
    Resolve a bar field or derived price.

    Args:
        bar: Bar to read
        input_name: InputName member or its string value (e.g., "hlc3")

    Returns:
        The selected value
    """
    return _SELECTORS[coerce_input_name(input_name)](bar)


@dataclass(frozen=True, slots=True)
class InputResolver:
    """
    Input extraction for one indicator state.

    A custom selector, when present, takes precedence over input_name.
    """

    input_name: InputName = InputName.CLOSE
    selector: Selector | None = None

    def __call__(self, bar: OhlcvBar) -> float:
        if self.selector is not None:
            return self.selector(bar)
        return _SELECTORS[self.input_name](bar)


def iter_bars(frame: pd.DataFrame, symbol: str | None = None) -> Iterator[OhlcvBar]:
    """
    Adapt an OHLCV DataFrame into OhlcvBar objects, oldest first.

    Column names are matched case-insensitively. A missing volume column
    yields volume 0.0. Timestamps come from a "timestamp" column if present,
    otherwise from a DatetimeIndex.

    Args:
        frame: DataFrame with open/high/low/close[/volume] columns
        symbol: Optional symbol stamped on every bar

    Raises:
        ValueError: If a required price column is missing.
    """
    columns = {str(c).lower(): c for c in frame.columns}
    missing = [name for name in ("open", "high", "low", "close") if name not in columns]
    if missing:
        raise ValueError(
            f"OHLCV frame is missing columns: {missing}\n"
            f"\n"
            f"Fix: provide columns open, high, low, close (volume optional)"
        )

    opens = frame[columns["open"]].to_numpy(dtype=float)
    highs = frame[columns["high"]].to_numpy(dtype=float)
    lows = frame[columns["low"]].to_numpy(dtype=float)
    closes = frame[columns["close"]].to_numpy(dtype=float)
    if "volume" in columns:
        volumes = frame[columns["volume"]].to_numpy(dtype=float)
    else:
        volumes = [0.0] * len(frame)

    if "timestamp" in columns:
        timestamps = list(pd.to_datetime(frame[columns["timestamp"]]))
    elif isinstance(frame.index, pd.DatetimeIndex):
        timestamps = list(frame.index)
    else:
        timestamps = [None] * len(frame)

    for i in range(len(frame)):
        yield OhlcvBar(
            open=float(opens[i]),
            high=float(highs[i]),
            low=float(lows[i]),
            close=float(closes[i]),
            volume=float(volumes[i]),
            timestamp=timestamps[i],
            symbol=symbol,
        )
