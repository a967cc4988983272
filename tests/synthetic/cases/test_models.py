"""
Bar Model Tests.

Tests OhlcvBar, input selection, and DataFrame adaptation.
"""

import dataclasses

import pandas as pd
import pytest

from streamta.indicators import InputName, InputResolver, OhlcvBar, iter_bars, select_input


@pytest.fixture
def bar() -> OhlcvBar:
    return OhlcvBar(open=10.0, high=14.0, low=8.0, close=12.0, volume=500.0)


class TestOhlcvBar:
    """Test OhlcvBar."""

    def test_immutable(self, bar):
        with pytest.raises(dataclasses.FrozenInstanceError):
            bar.close = 1.0  # type: ignore[misc]

    def test_defaults(self):
        bar = OhlcvBar(open=1.0, high=2.0, low=0.5, close=1.5)
        assert bar.volume == 0.0
        assert bar.timestamp is None
        assert bar.symbol is None


class TestSelectInput:
    """Test select_input and InputResolver."""

    @pytest.mark.parametrize("name, expected", [
        (InputName.OPEN, 10.0),
        (InputName.HIGH, 14.0),
        (InputName.LOW, 8.0),
        (InputName.CLOSE, 12.0),
        (InputName.ADJUSTED_CLOSE, 12.0),
        (InputName.VOLUME, 500.0),
        (InputName.TYPICAL_PRICE, (14.0 + 8.0 + 12.0) / 3),
        (InputName.FULL_TYPICAL_PRICE, (10.0 + 14.0 + 8.0 + 12.0) / 4),
        (InputName.MEDIAN_PRICE, 11.0),
        (InputName.WEIGHTED_CLOSE, (14.0 + 8.0 + 24.0) / 4),
        (InputName.AVERAGE_PRICE, 11.0),
    ])
    def test_each_input(self, bar, name, expected):
        assert select_input(bar, name) == pytest.approx(expected)

    def test_string_names(self, bar):
        assert select_input(bar, "hlc3") == select_input(bar, InputName.TYPICAL_PRICE)
        assert select_input(bar) == 12.0

    def test_unknown_name_raises(self, bar):
        with pytest.raises(ValueError, match="Fix:") as excinfo:
            select_input(bar, "vwap")
        assert "'hlc3'" in str(excinfo.value)

    def test_resolver_prefers_selector(self, bar):
        resolver = InputResolver(InputName.HIGH, selector=lambda b: b.open * 2)
        assert resolver(bar) == 20.0
        assert InputResolver(InputName.HIGH)(bar) == 14.0


class TestIterBars:
    """Test iter_bars."""

    def test_adapts_frame(self):
        index = pd.date_range("2024-01-01", periods=3, freq="1h")
        frame = pd.DataFrame({
            "Open": [1.0, 2.0, 3.0],
            "High": [1.5, 2.5, 3.5],
            "Low": [0.5, 1.5, 2.5],
            "Close": [1.2, 2.2, 3.2],
            "Volume": [10, 20, 30],
        }, index=index)

        bars = list(iter_bars(frame, symbol="BTCUSDT"))
        assert len(bars) == 3
        assert bars[1] == OhlcvBar(
            open=2.0, high=2.5, low=1.5, close=2.2, volume=20.0,
            timestamp=index[1], symbol="BTCUSDT",
        )
        assert isinstance(bars[0].volume, float)

    def test_timestamp_column_and_missing_volume(self):
        frame = pd.DataFrame({
            "timestamp": ["2024-01-01 00:00", "2024-01-01 00:01"],
            "open": [1.0, 2.0],
            "high": [1.0, 2.0],
            "low": [1.0, 2.0],
            "close": [1.0, 2.0],
        })
        bars = list(iter_bars(frame))
        assert bars[0].volume == 0.0
        assert bars[1].timestamp == pd.Timestamp("2024-01-01 00:01")

    def test_missing_price_column_raises(self):
        frame = pd.DataFrame({"open": [1.0], "high": [1.0], "close": [1.0]})
        with pytest.raises(ValueError, match="low"):
            list(iter_bars(frame))
