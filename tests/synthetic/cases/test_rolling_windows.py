"""
Rolling Window Tests.

Tests the rolling aggregates against pandas rolling computations:
- RollingWindowSum / RollingWindowStats (including NaN and level-shift recovery)
- RollingWindowDecaySum
- RollingWindowMax / RollingWindowMin / RollingWindowMedian
- RollingWindowCorrelation
- preview() is side-effect free
"""

import logging
import math

import numpy as np
import pandas as pd
import pytest

from streamta.structures import (
    RollingWindowCorrelation,
    RollingWindowDecaySum,
    RollingWindowMax,
    RollingWindowMedian,
    RollingWindowMin,
    RollingWindowStats,
    RollingWindowSum,
)


@pytest.fixture
def values() -> np.ndarray:
    rng = np.random.default_rng(11)
    return rng.normal(100.0, 5.0, 250)


# =============================================================================
# RollingWindowSum
# =============================================================================

class TestRollingWindowSum:
    """Test RollingWindowSum."""

    def test_known_sequence(self):
        """W=3 over [1, 2, 3, 4] -> [1, 3, 6, 9]."""
        window = RollingWindowSum(3)
        assert [window.add(v)[0] for v in (1, 2, 3, 4)] == [1.0, 3.0, 6.0, 9.0]

    def test_count_after(self):
        """count_after == min(k, W) after k commits."""
        window = RollingWindowSum(4)
        counts = [window.add(1.0)[1] for _ in range(7)]
        assert counts == [1, 2, 3, 4, 4, 4, 4]

    def test_matches_pandas(self, values):
        """Sum equals the sum of the last min(k, W) values."""
        length = 14
        expected = pd.Series(values).rolling(length, min_periods=1).sum().to_numpy()
        window = RollingWindowSum(length)
        actual = [window.add(float(v))[0] for v in values]
        np.testing.assert_allclose(actual, expected, rtol=1e-9)

    def test_preview_equals_add(self, values):
        """preview(v) returns what add(v) then returns, without mutating."""
        window = RollingWindowSum(5)
        for v in values:
            first = window.preview(float(v) * 2)
            previewed = window.preview(float(v))
            assert window.preview(float(v) * 2) == first
            assert window.add(float(v)) == previewed

    def test_reset(self):
        """reset() then replay equals a fresh window."""
        window = RollingWindowSum(3)
        for v in (5.0, 6.0, 7.0, 8.0):
            window.add(v)
        window.reset()
        assert window.count == 0
        assert window.total == 0.0
        assert [window.add(v)[0] for v in (1, 2, 3, 4)] == [1.0, 3.0, 6.0, 9.0]

    def test_nan_is_forgotten_once_evicted(self):
        """A NaN sample stops affecting the total once it leaves the window."""
        window = RollingWindowSum(3)
        window.add(1.0)
        window.add(float("nan"))
        window.add(2.0)
        assert math.isnan(window.add(3.0)[0])  # retained [nan, 2, 3]
        assert window.add(4.0) == (9.0, 3)
        assert window.add(5.0) == (12.0, 3)
        assert window.preview(6.0) == (15.0, 3)

    def test_level_shift_does_not_linger(self):
        """A huge value leaves no rounding residue behind after eviction."""
        window = RollingWindowSum(3)
        window.add(1e16)
        totals = [window.add(1.0)[0] for _ in range(4)]
        assert totals[-2:] == [3.0, 3.0]

    def test_long_stream_matches_exact_sum(self):
        """Over many wraps the total tracks an exact sum of the retained values."""
        rng = np.random.default_rng(5)
        data = rng.normal(0.0, 1.0, 2000) * 10.0 ** rng.integers(-3, 9, 2000)
        window = RollingWindowSum(7)
        for i, v in enumerate(data):
            total, _ = window.add(float(v))
            assert total == pytest.approx(math.fsum(data[max(0, i - 6):i + 1]), rel=1e-12, abs=1e-6)


# =============================================================================
# RollingWindowStats
# =============================================================================

class TestRollingWindowStats:
    """Test RollingWindowStats."""

    def test_mean_and_std_match_pandas(self, values):
        """Full-window mean and population std match pandas."""
        length = 20
        series = pd.Series(values)
        expected_mean = series.rolling(length).mean().to_numpy()
        expected_std = series.rolling(length).std(ddof=0).to_numpy()

        window = RollingWindowStats(length)
        for i, v in enumerate(values):
            snapshot = window.add(float(v))
            if i + 1 < length:
                assert snapshot.count == i + 1
                continue
            assert snapshot.mean() == pytest.approx(expected_mean[i], rel=1e-9)
            assert snapshot.std() == pytest.approx(expected_std[i], rel=1e-6, abs=1e-9)

    def test_variance_never_negative(self):
        """Constant input never yields a rounding-negative variance."""
        window = RollingWindowStats(10)
        for _ in range(50):
            snapshot = window.add(0.1)
        assert snapshot.variance() >= 0.0
        assert snapshot.std() == pytest.approx(0.0, abs=1e-7)

    def test_zero_divisor(self):
        """Mean and variance over zero elements read 0."""
        window = RollingWindowStats(5)
        snapshot = window.preview(3.0)
        assert snapshot.count == 1
        assert snapshot.mean(length=0) == 0.0
        assert snapshot.variance(length=0) == 0.0

    def test_band_convention_divides_by_length(self):
        """mean(length) divides by the nominal length during warm-up."""
        window = RollingWindowStats(4)
        window.add(2.0)
        snapshot = window.add(4.0)
        assert snapshot.mean() == 3.0
        assert snapshot.mean(4) == 1.5

    def test_level_shift_does_not_linger(self):
        """Squares of a large level leave no residue in the variance."""
        window = RollingWindowStats(5)
        for _ in range(5):
            window.add(1e8)
        for v in range(1, 9):
            snapshot = window.add(float(v))
        # retained [4, 5, 6, 7, 8]
        assert snapshot.total == 30.0
        assert snapshot.total_squares == 190.0
        assert snapshot.variance() == pytest.approx(2.0)

    def test_nan_is_forgotten_once_evicted(self):
        window = RollingWindowStats(3)
        for v in (float("nan"), 1.0, 2.0):
            window.add(v)
        snapshot = window.add(3.0)
        assert (snapshot.total, snapshot.total_squares) == (6.0, 14.0)

    def test_preview_equals_add(self, values):
        window = RollingWindowStats(6)
        for v in values:
            previewed = window.preview(float(v))
            assert window.add(float(v)) == previewed


# =============================================================================
# RollingWindowDecaySum
# =============================================================================

class TestRollingWindowDecaySum:
    """Test RollingWindowDecaySum."""

    def test_known_sequence(self):
        window = RollingWindowDecaySum(0.5)
        assert [window.add(v)[0] for v in (4, 4, 4)] == [4.0, 6.0, 7.0]

    def test_matches_plain_loop(self, values):
        """total' = total * decay + value over a long stream."""
        window = RollingWindowDecaySum(0.9)
        expected = 0.0
        for i, v in enumerate(values):
            expected = expected * 0.9 + float(v)
            assert window.add(float(v)) == (pytest.approx(expected, rel=1e-12), i + 1)

    def test_decay_of_one_is_running_sum(self):
        window = RollingWindowDecaySum(1.0)
        for v in (1.0, 2.0, 3.0):
            total, count = window.add(v)
        assert (total, count) == (6.0, 3)

    def test_preview_does_not_mutate(self):
        window = RollingWindowDecaySum(0.5)
        window.add(2.0)
        assert window.preview(10.0) == (11.0, 2)
        assert window.preview(0.0) == (1.0, 2)
        assert window.total == 2.0
        assert window.next(0.0, is_final=True) == (1.0, 2)

    @pytest.mark.parametrize("decay, expected", [
        (0.0, 1e-6),
        (-3.0, 1e-6),
        (2.5, 1.0),
        (float("nan"), 1.0),
    ])
    def test_decay_clamped(self, decay, expected, caplog):
        with caplog.at_level(logging.WARNING, logger="streamta"):
            window = RollingWindowDecaySum(decay)
        assert window.decay == expected
        assert "[CLAMP] RollingWindowDecaySum | decay=" in caplog.text

    def test_non_finite_total_restarts(self):
        window = RollingWindowDecaySum(0.5)
        window.add(float("nan"))
        assert window.add(3.0) == (3.0, 2)

    def test_reset(self):
        window = RollingWindowDecaySum(0.5)
        window.add(8.0)
        window.reset()
        assert not window.is_warm
        assert window.add(2.0) == (2.0, 1)


# =============================================================================
# RollingWindowMax / RollingWindowMin
# =============================================================================

class TestRollingExtremum:
    """Test RollingWindowMax and RollingWindowMin."""

    def test_max_known_sequence(self):
        """W=3 over [5, 3, 8, 1, 2] -> [5, 5, 8, 8, 8]."""
        window = RollingWindowMax(3)
        assert [window.add(v)[0] for v in (5, 3, 8, 1, 2)] == [5.0, 5.0, 8.0, 8.0, 8.0]

    def test_min_known_sequence(self):
        """W=3 over [5, 3, 8, 1, 2] -> [5, 3, 3, 1, 1]."""
        window = RollingWindowMin(3)
        assert [window.add(v)[0] for v in (5, 3, 8, 1, 2)] == [5.0, 3.0, 3.0, 1.0, 1.0]

    @pytest.mark.parametrize("length", [1, 2, 5, 17])
    def test_matches_pandas(self, values, length):
        """Extremum equals brute-force max/min of the trailing W values."""
        series = pd.Series(values)
        expected_max = series.rolling(length, min_periods=1).max().to_numpy()
        expected_min = series.rolling(length, min_periods=1).min().to_numpy()

        highest = RollingWindowMax(length)
        lowest = RollingWindowMin(length)
        for i, v in enumerate(values):
            assert highest.add(float(v))[0] == expected_max[i]
            assert lowest.add(float(v))[0] == expected_min[i]

    def test_preview_is_side_effect_free(self, values):
        """Interleaved previews leave the committed sequence unchanged."""
        clean = RollingWindowMax(6)
        noisy = RollingWindowMax(6)
        for v in values:
            noisy.preview(float(v) + 50.0)
            noisy.preview(float(v) - 50.0)
            assert noisy.preview(float(v)) == clean.preview(float(v))
            assert noisy.add(float(v)) == clean.add(float(v))

    def test_cold_value(self):
        """value reads 0.0 before any commit."""
        window = RollingWindowMin(4)
        assert window.value == 0.0
        assert not window.is_warm
        window.add(-3.0)
        assert window.value == -3.0


# =============================================================================
# RollingWindowMedian
# =============================================================================

class TestRollingWindowMedian:
    """Test RollingWindowMedian."""

    def test_known_sequence(self):
        """W=3 over [5, 1, 4, 2] -> [5, 3, 4, 2]."""
        window = RollingWindowMedian(3)
        assert [window.add(v)[0] for v in (5, 1, 4, 2)] == [5.0, 3.0, 4.0, 2.0]

    @pytest.mark.parametrize("length", [1, 2, 5, 16])
    def test_matches_pandas(self, values, length):
        expected = pd.Series(values).rolling(length, min_periods=1).median().to_numpy()
        window = RollingWindowMedian(length)
        actual = [window.add(float(v))[0] for v in values]
        np.testing.assert_allclose(actual, expected, rtol=1e-12)

    def test_preview_includes_pending_value(self):
        """preview(v) is the median with v appended; nothing is committed."""
        window = RollingWindowMedian(4)
        for v in (1.0, 9.0, 3.0):
            window.add(v)
        assert window.preview(100.0) == (6.0, 4)
        assert window.preview(2.0) == (2.5, 4)
        assert window.value == 3.0
        assert window.next(100.0, is_final=True) == (6.0, 4)

    def test_preview_equals_add(self, values):
        window = RollingWindowMedian(7)
        for v in values:
            previewed = window.preview(float(v))
            assert window.add(float(v)) == previewed

    def test_cold_and_reset(self):
        window = RollingWindowMedian(3)
        assert window.value == 0.0
        assert window.preview(4.0) == (4.0, 1)
        window.add(4.0)
        window.reset()
        assert not window.is_warm
        assert window.value == 0.0


# =============================================================================
# RollingWindowCorrelation
# =============================================================================

class TestRollingWindowCorrelation:
    """Test RollingWindowCorrelation."""

    def test_matches_pandas(self, values):
        """Full-window correlation matches pandas rolling corr."""
        length = 15
        rng = np.random.default_rng(2)
        other = values * 0.5 + rng.normal(0.0, 3.0, len(values))
        expected = pd.Series(values).rolling(length).corr(pd.Series(other)).to_numpy()

        window = RollingWindowCorrelation(length)
        for i, (x, y) in enumerate(zip(values, other)):
            corr, count = window.add(float(x), float(y))
            if count >= length:
                assert corr == pytest.approx(expected[i], abs=1e-6)

    def test_perfect_line(self):
        """A straight line correlates at +1 with its index."""
        window = RollingWindowCorrelation(10)
        for i in range(10):
            corr, _ = window.add(float(i), 3.0 * i + 1.0)
        assert corr == pytest.approx(1.0)

    def test_degenerate_cases_read_zero(self):
        """One pair, length 1, or a constant stream give 0."""
        window = RollingWindowCorrelation(5)
        assert window.add(1.0, 2.0) == (0.0, 1)

        single = RollingWindowCorrelation(1)
        single.add(1.0, 2.0)
        assert single.add(2.0, 3.0)[0] == 0.0

        flat = RollingWindowCorrelation(5)
        for i in range(5):
            corr, _ = flat.add(float(i), 7.0)
        assert corr == 0.0

    def test_far_from_origin_stays_in_range(self):
        """Cancellation with huge x never pushes r outside [-1, 1]."""
        window = RollingWindowCorrelation(14)
        for i in range(60):
            corr, _ = window.add(5e7 + i, 0.5 * i)
            assert -1.0 <= corr <= 1.0

    def test_shift_x_keeps_correlation(self, values):
        """Moving the x origin leaves r unchanged and keeps later adds consistent."""
        shifted = RollingWindowCorrelation(10)
        plain = RollingWindowCorrelation(10)
        ys = [float(v) for v in values[:40]]
        for i, y in enumerate(ys[:25]):
            shifted.add(1000.0 + i, y)
            plain.add(float(i), y)
        shifted.shift_x(1000.0)
        for i, y in enumerate(ys[25:], start=25):
            a, count_a = shifted.add(float(i), y)
            b, count_b = plain.add(float(i), y)
            assert a == pytest.approx(b, abs=1e-9)
            assert count_a == count_b == 10
