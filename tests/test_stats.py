"""Statistics primitive tests"""

import math

import numpy as np
import pytest

from analytics import stats
from analytics.labels import DEFAULT_LABEL, LABELS, label_from_percentile


# =============================================================================
# Moving averages
# =============================================================================

def test_sma_uses_last_period_values():
    assert stats.sma([1, 2, 3, 4], 2) == 3.5


@pytest.mark.parametrize("period", [1, 5, 30])
def test_sma_matches_mean_of_tail(period):
    values = np.random.default_rng(period).uniform(1, 100, size=40)
    assert stats.sma(values, period) == pytest.approx(values[-period:].mean())


def test_sma_no_partial_window():
    assert math.isnan(stats.sma([1.0], 2))
    assert math.isnan(stats.sma([], 3))


def test_trailing_sma_excludes_current_value():
    out = stats.trailing_sma([1, 2, 3, 4, 5], 2)
    assert np.isnan(out[:2]).all()
    assert out[2:].tolist() == [1.5, 2.5, 3.5]


def test_trailing_multiples():
    out = stats.trailing_multiples([10, 10, 20, 5], 2)
    assert np.isnan(out[:2]).all()
    assert out[2] == pytest.approx(2.0)
    assert out[3] == pytest.approx(5 / 15)


def test_trailing_sma_empty():
    assert len(stats.trailing_sma([], 5)) == 0


# =============================================================================
# Winsorization & ranking
# =============================================================================

class TestWinsorize:

    def test_clamps_to_order_statistics(self):
        values = np.arange(1, 101, dtype=float)
        out = stats.winsorize(values)
        assert out.min() == 2.0
        assert out.max() == 99.0

    def test_keeps_input_order(self):
        values = np.array([100.0, 1.0] + [50.0] * 98)
        out = stats.winsorize(values)
        assert out[2:].tolist() == [50.0] * 98
        assert len(out) == len(values)

    def test_idempotent(self):
        rng = np.random.default_rng(7)
        values = rng.standard_t(2, size=500)
        once = stats.winsorize(values)
        assert np.array_equal(stats.winsorize(once), once)

    def test_empty(self):
        assert len(stats.winsorize([])) == 0

    def test_single_value(self):
        assert stats.winsorize([3.0]).tolist() == [3.0]


class TestPercentile:

    def test_unique_minimum_is_one_over_n(self):
        assert stats.percentile_of(1.0, [1.0, 2.0, 3.0, 4.0]) == 0.25

    def test_ties_count_as_lower_or_equal(self):
        dist = [1.0, 2.0, 2.0, 3.0]
        assert stats.percentile_of(2.0, dist) == 0.75
        assert stats.higher_than_percent(2.0, dist) == 0.25

    def test_bounds(self):
        dist = [1.0, 2.0, 3.0]
        assert stats.percentile_of(0.5, dist) == 0.0
        assert stats.percentile_of(10.0, dist) == 1.0
        assert stats.higher_than_percent(10.0, dist) == 0.0

    def test_monotonic(self):
        rng = np.random.default_rng(3)
        dist = rng.normal(size=200)
        probes = np.sort(rng.normal(size=50))
        ranks = [stats.percentile_of(p, dist) for p in probes]
        assert all(a <= b for a, b in zip(ranks, ranks[1:]))

    def test_empty_or_nan_is_nan(self):
        assert math.isnan(stats.percentile_of(1.0, []))
        assert math.isnan(stats.higher_than_percent(1.0, []))
        assert math.isnan(stats.percentile_of(float('nan'), [1.0]))

    def test_vectorized_matches_scalar(self):
        rng = np.random.default_rng(11)
        dist = np.round(rng.normal(size=100), 1)
        probes = np.append(np.round(rng.normal(size=30), 1), np.nan)
        out = stats.percentiles_of(probes, dist)
        for value, rank in zip(probes[:-1], out[:-1]):
            assert rank == stats.percentile_of(value, dist)
        assert np.isnan(out[-1])


# =============================================================================
# Volatility normalization
# =============================================================================

def test_min_sigma_samples():
    assert stats.min_sigma_samples(10) == 10
    assert stats.min_sigma_samples(365) == 182
    assert stats.min_sigma_samples(720) == 360


def test_rolling_sigma_uses_prior_window_only():
    rng = np.random.default_rng(5)
    log_r = rng.normal(scale=0.05, size=60)
    sigma = stats.rolling_log_sigma(log_r, 20)
    assert np.isnan(sigma[:20]).all()
    assert sigma[20] == pytest.approx(np.std(log_r[:20]))
    assert sigma[45] == pytest.approx(np.std(log_r[25:45]))


def test_rolling_sigma_zero_is_undefined():
    sigma = stats.rolling_log_sigma(np.zeros(40), 20)
    assert np.isnan(sigma).all()


def test_rolling_sigma_needs_enough_samples():
    log_r = np.full(40, np.nan)
    log_r[25:30] = [0.1, -0.1, 0.2, -0.2, 0.05]
    assert np.isnan(stats.rolling_log_sigma(log_r, 20)).all()


def test_rolling_sigma_is_writable():
    log_r = np.random.default_rng(9).normal(scale=0.05, size=60)
    sigma = stats.rolling_log_sigma(log_r, 20)
    assert sigma.flags.writeable
    assert stats.trailing_sma(np.arange(1.0, 30.0), 5).flags.writeable


@pytest.mark.parametrize("window", [1, 2, 5, 9])
def test_rolling_sigma_short_window_is_undefined(window):
    log_r = np.random.default_rng(window).normal(scale=0.05, size=40)
    sigma = stats.rolling_log_sigma(log_r, window)
    assert len(sigma) == 40
    assert np.isnan(sigma).all()


def test_log_multiples_ignores_non_positive():
    out = stats.log_multiples([1.0, np.nan, 0.0, np.e])
    assert out[0] == 0.0
    assert np.isnan(out[1:3]).all()
    assert out[3] == pytest.approx(1.0)


# =============================================================================
# Labels
# =============================================================================

@pytest.mark.parametrize("percentile,label", [
    (0.0, "Extreme dip"),
    (0.1, "Extreme dip"),
    (0.15, "Very big dip"),
    (0.55, "Around average"),
    (0.6, "Around average"),
    (0.61, "Small pump"),
    (0.9, "Big pump"),
    (0.95, "Extreme pump"),
    (1.0, "Extreme pump"),
])
def test_label_buckets(percentile, label):
    assert label_from_percentile(percentile) == label


def test_label_undefined_percentile():
    assert label_from_percentile(float('nan')) == DEFAULT_LABEL
    assert label_from_percentile(None) == DEFAULT_LABEL


def test_ten_labels():
    assert len(LABELS) == 10
    assert len(set(LABELS)) == 10
