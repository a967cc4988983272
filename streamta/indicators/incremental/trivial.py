"""
Trivial indicator states: price transforms and cumulative volume.

Includes PriceTransform and OBV.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from streamta.indicators.models import InputName

from .base import SourcedIndicatorState
from .smoothers import ExponentialMovingAverageSmoother


@dataclass
class PriceTransformState(SourcedIndicatorState):
    """
    Derived price of each bar (typical price by default).

    Stateless apart from the last committed value; pass input_name to pick
    another transform, e.g. InputName.MEDIAN_PRICE.
    """

    name: ClassVar[str] = "PriceTransform"

    input_name: InputName | str = field(default=InputName.TYPICAL_PRICE, kw_only=True)

    def _step(self, bar, is_final, include_outputs):
        price = self._resolve_input(bar)
        return price, {"Price": price} if include_outputs else None

    def _reset_state(self) -> None:
        pass


@dataclass
class OnBalanceVolumeState(SourcedIndicatorState):
    """
    On-Balance Volume with an EMA signal line.

    Formula:
        obv += volume if close > prev_close
        obv -= volume if close < prev_close

    prev_close starts at 0, so the first bar adds its volume when its
    close is positive.
    """

    name: ClassVar[str] = "OnBalanceVolume"

    length: int = 20
    _signal: ExponentialMovingAverageSmoother = field(init=False, repr=False)
    _prev_close: float = field(default=0.0, init=False, repr=False)
    _obv: float = field(default=0.0, init=False, repr=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        self._signal = ExponentialMovingAverageSmoother(self.length)
        self.length = self._signal.length

    def _step(self, bar, is_final, include_outputs):
        close = self._resolve_input(bar)
        if close > self._prev_close:
            obv = self._obv + bar.volume
        elif close < self._prev_close:
            obv = self._obv - bar.volume
        else:
            obv = self._obv
        signal = self._signal.next(obv, is_final)

        if is_final:
            self._prev_close = close
            self._obv = obv
        return obv, {"Obv": obv, "ObvSignal": signal} if include_outputs else None

    def _reset_state(self) -> None:
        self._signal.reset()
        self._prev_close = 0.0
        self._obv = 0.0
