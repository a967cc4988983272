"""
Streaming indicator states.

O(1) (amortized) per-bar updates with provisional/final semantics. A
provisional update (is_final=False) reads what the indicator would show if
the open bar closed now, without touching retained state.

Usage:
    from streamta.indicators.incremental import RelativeStrengthIndexState

    rsi = RelativeStrengthIndexState(length=14)
    for bar in history:
        rsi.update(bar)

    # Intrabar, as ticks arrive
    value, outputs = rsi.update(open_bar, is_final=False)

    # Bar closed
    value, outputs = rsi.update(closed_bar, is_final=True)
"""

from __future__ import annotations

# Base classes
from .base import IndicatorState, SourcedIndicatorState, StateResult

# Smoothers
from .smoothers import (
    MovingAvgType,
    MovingAverageSmoother,
    SimpleMovingAverageSmoother,
    ExponentialMovingAverageSmoother,
    WeightedMovingAverageSmoother,
    WilderMovingAverageSmoother,
)
from .factory import create_smoother, list_smoother_types, supports_smoother

# Core indicators
from .core import (
    SimpleMovingAverageState,
    ExponentialMovingAverageState,
    WeightedMovingAverageState,
    WellesWilderMovingAverageState,
    TriangularMovingAverageState,
    HullMovingAverageState,
    RelativeStrengthIndexState,
    MovingAverageConvergenceDivergenceState,
    AverageTrueRangeState,
    AverageDirectionalIndexState,
)

# Lookback-based indicators
from .lookback import (
    MidpointState,
    MidpriceState,
    DonchianChannelsState,
    WilliamsRState,
    StochasticOscillatorState,
)

# Buffer-based indicators
from .buffer_based import (
    BollingerBandsState,
    StandardDeviationState,
    RateOfChangeState,
    RollingCorrelationState,
)

# Trivial indicators
from .trivial import PriceTransformState, OnBalanceVolumeState

__all__ = [
    # Base
    "IndicatorState",
    "SourcedIndicatorState",
    "StateResult",
    # Smoothers
    "MovingAvgType",
    "MovingAverageSmoother",
    "SimpleMovingAverageSmoother",
    "ExponentialMovingAverageSmoother",
    "WeightedMovingAverageSmoother",
    "WilderMovingAverageSmoother",
    "create_smoother",
    "list_smoother_types",
    "supports_smoother",
    # Core
    "SimpleMovingAverageState",
    "ExponentialMovingAverageState",
    "WeightedMovingAverageState",
    "WellesWilderMovingAverageState",
    "TriangularMovingAverageState",
    "HullMovingAverageState",
    "RelativeStrengthIndexState",
    "MovingAverageConvergenceDivergenceState",
    "AverageTrueRangeState",
    "AverageDirectionalIndexState",
    # Lookback
    "MidpointState",
    "MidpriceState",
    "DonchianChannelsState",
    "WilliamsRState",
    "StochasticOscillatorState",
    # Buffer-based
    "BollingerBandsState",
    "StandardDeviationState",
    "RateOfChangeState",
    "RollingCorrelationState",
    # Trivial
    "PriceTransformState",
    "OnBalanceVolumeState",
]
