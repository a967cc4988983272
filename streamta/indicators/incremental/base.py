"""
Base classes for streaming indicator states.

Every indicator state inherits from IndicatorState, which defines the
per-bar update interface: update(), reset(), value, is_ready.

update(bar, is_final) follows the provisional/final discipline:
- is_final=True commits the bar into retained state
- is_final=False computes what the indicator would read if the open bar
  closed now, without touching retained state

Any number of provisional updates between two final ones leaves the state
exactly as if only the final updates had been made.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, ClassVar, NamedTuple

from streamta.config import get_config
from streamta.indicators.models import (
    InputName,
    InputResolver,
    OhlcvBar,
    Selector,
    coerce_input_name,
)
from streamta.utils.helpers import finite_or_zero
from streamta.utils.logger import get_logger


class StateResult(NamedTuple):
    """
    Result of one update.

    value: Primary output (always finite)
    outputs: Read-only mapping of named outputs, or None when the caller
        asked for the primary value only
    """

    value: float
    outputs: Mapping[str, float] | None


@dataclass
class IndicatorState(ABC):
    """Base class for streaming indicator states."""

    name: ClassVar[str] = "IndicatorState"

    _value: float = field(default=0.0, init=False, repr=False)
    _count: int = field(default=0, init=False, repr=False)
    _include_outputs: bool = field(default=True, init=False, repr=False)

    def __post_init__(self) -> None:
        # Config default is snapshotted once; later config changes do not
        # affect a state that already exists.
        self._include_outputs = get_config().streaming.include_outputs

    @abstractmethod
    def _step(
        self, bar: OhlcvBar, is_final: bool, include_outputs: bool
    ) -> tuple[float, dict[str, float] | None]:
        """
        Compute (value, outputs) for one bar.

        Must mutate retained state only when is_final is True. outputs may
        be None when include_outputs is False.
        """
        ...

    @abstractmethod
    def _reset_state(self) -> None:
        """Clear subclass state back to cold."""
        ...

    @property
    def warmup_bars(self) -> int:
        """Final updates needed before is_ready."""
        return 1

    def update(
        self,
        bar: OhlcvBar,
        is_final: bool = True,
        include_outputs: bool | None = None,
    ) -> StateResult:
        """
        Feed one bar.

        Args:
            bar: The bar to process
            is_final: True to commit, False for a provisional (intrabar) read
            include_outputs: Build the named-output mapping; None uses the
                default captured at construction

        Returns:
            StateResult(value, outputs)
        """
        if include_outputs is None:
            include_outputs = self._include_outputs

        raw_value, raw_outputs = self._step(bar, is_final, include_outputs)
        value = finite_or_zero(raw_value)

        outputs: Mapping[str, float] | None = None
        if include_outputs and raw_outputs is not None:
            outputs = MappingProxyType(
                {key: finite_or_zero(v) for key, v in raw_outputs.items()}
            )

        if is_final:
            self._value = value
            self._count += 1
        return StateResult(value, outputs)

    def reset(self) -> None:
        """Reset state to cold, as if freshly constructed."""
        self._reset_state()
        self._value = 0.0
        self._count = 0
        get_logger().state("RESET", type(self).__name__)

    @property
    def value(self) -> float:
        """Primary value from the last final update (0.0 when cold)."""
        return self._value

    @property
    def count(self) -> int:
        """Number of final updates since construction or reset."""
        return self._count

    @property
    def is_ready(self) -> bool:
        """True when warmup period complete."""
        return self._count >= self.warmup_bars


@dataclass
class SourcedIndicatorState(IndicatorState):
    """
    Indicator state that reads a single input series from each bar.

    The input is chosen by input_name, or by a custom selector callable which
    takes precedence when given.
    """

    input_name: InputName | str = field(default=InputName.CLOSE, kw_only=True)
    selector: Selector | None = field(default=None, kw_only=True, repr=False)
    _input: InputResolver = field(default=None, init=False, repr=False)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.selector is not None and not callable(self.selector):
            raise ValueError(
                f"{type(self).__name__}: selector must be callable, "
                f"got {type(self.selector).__name__}\n"
                f"\n"
                f"Fix: pass a function of the bar, e.g. selector=lambda bar: bar.high"
            )
        self.input_name = coerce_input_name(self.input_name)
        self._input = InputResolver(self.input_name, self.selector)

    def _resolve_input(self, bar: OhlcvBar) -> float:
        return self._input(bar)

    @classmethod
    def with_selector(cls, selector: Selector, **params: Any) -> SourcedIndicatorState:
        """
        Build a state that reads its input through a custom selector.

        Args:
            selector: Callable mapping a bar to the input value
            **params: Remaining constructor arguments

        Raises:
            ValueError: If selector is None or not callable.
        """
        if selector is None or not callable(selector):
            get_logger().error(f"[SELECTOR] {cls.__name__} | rejected selector={selector!r}")
            raise ValueError(
                f"{cls.__name__}.with_selector() requires a callable selector, "
                f"got {selector!r}\n"
                f"\n"
                f"Fix: {cls.__name__}.with_selector(lambda bar: bar.close, length=14)"
            )
        return cls(selector=selector, **params)
