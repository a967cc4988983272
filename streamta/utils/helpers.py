"""
Numeric guards shared by the rolling primitives and indicator states.

Streaming updates never raise on degenerate input: division by zero,
insufficient history, and non-finite results are replaced by a neutral
value (0.0) so that one malformed sample cannot interrupt a live feed.
"""

import math
from typing import Any

import numpy as np


NEUTRAL_VALUE = 0.0


def finite_or_zero(value: Any) -> float:
    """
    Return value as float, or 0.0 when it is NaN, +/-inf, or not numeric.

    Examples:
        >>> finite_or_zero(1.5)
        1.5
        >>> finite_or_zero(float("nan"))
        0.0
        >>> finite_or_zero(float("inf"))
        0.0
    """
    try:
        result = float(value)
    except (TypeError, ValueError):
        return NEUTRAL_VALUE
    if not math.isfinite(result):
        return NEUTRAL_VALUE
    return result


def safe_div(numerator: float, denominator: float, default: float = NEUTRAL_VALUE) -> float:
    """Divide, returning default when the denominator is zero."""
    if denominator == 0:
        return default
    return numerator / denominator


def safe_sqrt(value: float) -> float:
    """Square root that returns 0.0 for negative or non-finite input."""
    if not math.isfinite(value) or value < 0:
        return NEUTRAL_VALUE
    return math.sqrt(value)


def clamp(value: float, upper: float, lower: float) -> float:
    """
    Clamp value into [lower, upper]; non-finite values map to 0.0.

    Argument order (value, upper, lower) mirrors how oscillator bounds are
    written: clamp(rsi, 100, 0).
    """
    if not math.isfinite(value):
        return NEUTRAL_VALUE
    return min(max(value, lower), upper)


def percent_change(current: float, previous: float) -> float:
    """Percent change from previous to current; 0.0 when previous is zero."""
    if previous == 0:
        return NEUTRAL_VALUE
    return (current - previous) / abs(previous) * 100.0


def exact_sum(values: np.ndarray) -> float:
    """Correctly rounded sum of values; NaN/inf propagate as in np.sum."""
    if np.isfinite(values).all():
        try:
            return math.fsum(values)
        except OverflowError:
            # finite values whose sum overflows; np.sum reports +/-inf
            return float(np.sum(values))
    return float(np.sum(values))


def true_range(high: float, low: float, prev_close: float) -> float:
    """True range: max(high - low, |high - prev_close|, |low - prev_close|)."""
    return max(high - low, abs(high - prev_close), abs(low - prev_close))


def resolve_length(length: Any, owner: str, param: str = "length", minimum: int = 1) -> int:
    """
    Clamp a window length to at least `minimum`.

    Lengths are clamped rather than rejected. The clamp is logged once at
    construction (when STREAMTA_WARN_ON_CLAMP is enabled), never per bar.

    Args:
        length: Requested length (int-like)
        owner: Class name requesting the length, for the log line
        param: Parameter name, for the log line
        minimum: Smallest allowed length

    Returns:
        The resolved integer length
    """
    try:
        requested = int(length)
    except (TypeError, ValueError):
        requested = minimum
    resolved = max(minimum, requested)
    if resolved != length:
        _log_clamp(owner, param, length, resolved)
    return resolved


MIN_DECAY = 1e-6


def resolve_decay(decay: Any, owner: str, param: str = "decay") -> float:
    """
    Clamp a forgetting factor into (0, 1].

    Non-numeric or non-finite factors resolve to 1.0 (no forgetting);
    factors at or below zero resolve to MIN_DECAY.
    """
    try:
        requested = float(decay)
    except (TypeError, ValueError):
        requested = math.nan
    if not math.isfinite(requested):
        resolved = 1.0
    elif requested <= 0.0:
        resolved = MIN_DECAY
    else:
        resolved = min(requested, 1.0)
    if resolved != decay:
        _log_clamp(owner, param, decay, resolved)
    return resolved


def _log_clamp(owner: str, param: str, requested: Any, resolved: Any) -> None:
    from streamta.config import get_config
    if get_config().streaming.warn_on_clamp:
        from streamta.utils.logger import get_logger
        get_logger().clamp(owner, param, requested, resolved)
