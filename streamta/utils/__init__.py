"""
Utility modules.
"""

from .logger import get_logger, setup_logger, IndicatorLogger
from .helpers import (
    NEUTRAL_VALUE,
    clamp,
    exact_sum,
    finite_or_zero,
    percent_change,
    resolve_decay,
    resolve_length,
    safe_div,
    safe_sqrt,
    true_range,
)

__all__ = [
    # Logger
    "get_logger",
    "setup_logger",
    "IndicatorLogger",
    # Numeric guards
    "NEUTRAL_VALUE",
    "clamp",
    "exact_sum",
    "finite_or_zero",
    "percent_change",
    "resolve_decay",
    "resolve_length",
    "safe_div",
    "safe_sqrt",
    "true_range",
]
