"""
streamta - Streaming technical indicators

Incremental indicator states for live OHLCV feeds. Every state can be
updated provisionally while a bar is still forming and committed once the
bar closes, with O(1) amortized cost per update.
"""

__version__ = "1.0.0"
__author__ = "streamta"

from .config import get_config
from .indicators import (
    InputName,
    OhlcvBar,
    StateResult,
    MovingAvgType,
    create_smoother,
    iter_bars,
)
from .structures import (
    RingBuffer,
    RollingWindowMax,
    RollingWindowMin,
    RollingWindowSum,
)

__all__ = [
    "__version__",
    "get_config",
    "InputName",
    "OhlcvBar",
    "StateResult",
    "MovingAvgType",
    "create_smoother",
    "iter_bars",
    "RingBuffer",
    "RollingWindowMax",
    "RollingWindowMin",
    "RollingWindowSum",
]
