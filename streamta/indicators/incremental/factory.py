"""
Factory for moving-average smoothers.

Provides create_smoother() to instantiate any smoother from a MovingAvgType
(or its string value) and a length.
"""

from __future__ import annotations

from collections.abc import Callable

from .smoothers import (
    ExponentialMovingAverageSmoother,
    MovingAverageSmoother,
    MovingAvgType,
    SimpleMovingAverageSmoother,
    WeightedMovingAverageSmoother,
    WilderMovingAverageSmoother,
)


# Dict-based factory: the smoother family is closed, one entry per kind.
_FACTORY: dict[MovingAvgType, Callable[[int], MovingAverageSmoother]] = {
    MovingAvgType.SIMPLE: SimpleMovingAverageSmoother,
    MovingAvgType.EXPONENTIAL: ExponentialMovingAverageSmoother,
    MovingAvgType.WEIGHTED: WeightedMovingAverageSmoother,
    MovingAvgType.WILDER: WilderMovingAverageSmoother,
}


def _coerce_type(ma_type: MovingAvgType | str) -> MovingAvgType:
    try:
        return MovingAvgType(ma_type)
    except ValueError:
        raise ValueError(
            f"Unknown moving average type: {ma_type!r}\n"
            f"\n"
            f"Fix: use one of {list_smoother_types()}"
        ) from None


def create_smoother(ma_type: MovingAvgType | str, length: int) -> MovingAverageSmoother:
    """
    Create a smoother from a kind and length.

    Args:
        ma_type: MovingAvgType member or its value ("sma", "ema", "wma", "wilder")
        length: Window length (clamped to >= 1)

    Returns:
        A fresh, cold smoother

    Raises:
        ValueError: If ma_type is not a known kind.
    """
    return _FACTORY[_coerce_type(ma_type)](length)


def supports_smoother(ma_type: MovingAvgType | str) -> bool:
    """Check if a smoother kind is available."""
    try:
        return MovingAvgType(ma_type) in _FACTORY
    except ValueError:
        return False


def list_smoother_types() -> list[str]:
    """Get the string values of all smoother kinds."""
    return [kind.value for kind in _FACTORY]
