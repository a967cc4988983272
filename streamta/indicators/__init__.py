"""
Indicator Module: bar model, input selection, and streaming indicator states.

Components:
- models: OhlcvBar, InputName, select_input, iter_bars
- incremental: IndicatorState contract, smoothers, and indicator states

Usage:
    from streamta.indicators import iter_bars, SimpleMovingAverageState

    sma = SimpleMovingAverageState(length=20)
    for bar in iter_bars(df):
        value, outputs = sma.update(bar)
"""

from .models import (
    InputName,
    InputResolver,
    OhlcvBar,
    Selector,
    iter_bars,
    select_input,
)
from .incremental import *  # noqa: F401,F403
from .incremental import __all__ as _incremental_all

__all__ = [
    "InputName",
    "InputResolver",
    "OhlcvBar",
    "Selector",
    "iter_bars",
    "select_input",
    *_incremental_all,
]
