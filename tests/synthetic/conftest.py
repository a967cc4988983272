"""
Pytest configuration for synthetic tests.
"""

import pytest

from streamta.config import setup_config
from streamta.indicators import OhlcvBar
from tests.synthetic.harness.bars import bars_to_frame, random_walk_bars


@pytest.fixture(autouse=True)
def _restore_config():
    """Rebuild config after each test so env changes do not leak."""
    yield
    setup_config()


@pytest.fixture
def random_bars() -> list[OhlcvBar]:
    """300 seeded random-walk bars."""
    return random_walk_bars(300, seed=7)


@pytest.fixture
def bar_frame(random_bars):
    """random_bars as a DataFrame for pandas oracles."""
    return bars_to_frame(random_bars)


@pytest.fixture
def flat_bars() -> list[OhlcvBar]:
    """Bars with no movement at all (zero ranges everywhere)."""
    return [OhlcvBar(open=50.0, high=50.0, low=50.0, close=50.0, volume=0.0) for _ in range(30)]
