"""
Unit Tests for the Spread Analytics Stages
==========================================

Covers: series alignment, rolling hedge-ratio regression, spread and
z-score construction, ADF stationarity test, half-life and Hurst exponent.
"""

import math
from datetime import date, timedelta

import numpy as np
import pandas as pd
import pytest

from pairs_spread.alignment import SeriesAligner
from pairs_spread.backtesting import PairsBacktester
from pairs_spread.config import BacktestConfig
from pairs_spread.mean_reversion import (
    MeanReversionDiagnostics, half_life, hurst_exponent, interpret_hurst,
)
from pairs_spread.models import AlignedSeries, DataStatus, PricePoint, RegressionPoint
from pairs_spread.regression import RollingRegressor
from pairs_spread.spread import (
    SpreadBuilder, ZScoreNormalizer, price_correlation, rolling_bands,
    spread_statistics,
)
from pairs_spread.stationarity import ADFTest, invert_3x3
from pairs_spread.store import InMemoryPriceStore


def _points(start, closes):
    return [PricePoint(start + timedelta(days=i), c, c, c, c) for i, c in enumerate(closes)]


def _aligned(a, b):
    start = date(2023, 1, 2)
    dates = [start + timedelta(days=i) for i in range(len(a))]
    return AlignedSeries.from_arrays(dates, a, b)


# ---------------------------------------------------------------------------
# Alignment
# ---------------------------------------------------------------------------
class TestSeriesAligner:
    def test_inner_join_on_shared_dates(self):
        pa = _points(date(2024, 1, 1), np.arange(10.0))
        pb = _points(date(2024, 1, 3), np.arange(10.0) + 100)
        res = SeriesAligner().align(pa, pb)
        assert res.is_sufficient
        assert len(res) == 8
        assert res.dates[0] == date(2024, 1, 3)
        assert res.dates[-1] == date(2024, 1, 10)
        assert res.close_a[0] == 2.0 and res.close_b[0] == 100.0

    def test_dates_strictly_increasing_from_unordered_input(self):
        pa = _points(date(2024, 1, 1), np.arange(6.0))[::-1]
        pb = _points(date(2024, 1, 1), np.arange(6.0))
        res = SeriesAligner().align(pa, pb)
        assert all(d0 < d1 for d0, d1 in zip(res.dates, res.dates[1:]))
        np.testing.assert_array_equal(res.close_a, res.close_b)

    def test_inclusive_date_range(self):
        pa = _points(date(2024, 1, 1), np.arange(20.0))
        pb = _points(date(2024, 1, 1), np.arange(20.0))
        res = SeriesAligner(date(2024, 1, 5), date(2024, 1, 9)).align(pa, pb)
        assert res.dates == tuple(date(2024, 1, d) for d in range(5, 10))

    def test_duplicate_dates_keep_last(self):
        pa = _points(date(2024, 1, 1), [1.0, 2.0]) + [PricePoint(date(2024, 1, 2), 9, 9, 9, 9.0)]
        pb = _points(date(2024, 1, 1), [5.0, 6.0])
        res = SeriesAligner().align(pa, pb)
        assert len(res) == 2
        assert res.close_a[-1] == 9.0

    def test_series_input(self, cointegrated_pair):
        pa, pb = cointegrated_pair
        res = SeriesAligner().align(pa, pb.iloc[100:])
        assert len(res) == len(pa) - 100
        assert res.close_a[0] == pytest.approx(pa.iloc[100])

    def test_empty_side_is_insufficient(self):
        pa = _points(date(2024, 1, 1), np.arange(5.0))
        res = SeriesAligner().align(pa, [])
        assert res.status == DataStatus.INSUFFICIENT
        assert "B" in res.message
        assert len(res) == 0

    def test_disjoint_dates_are_insufficient(self):
        pa = _points(date(2024, 1, 1), np.arange(5.0))
        pb = _points(date(2024, 3, 1), np.arange(5.0))
        res = SeriesAligner().align(pa, pb)
        assert not res.is_sufficient
        assert "share no" in res.message

    def test_range_outside_data_is_insufficient(self):
        pa = _points(date(2024, 1, 1), np.arange(5.0))
        res = SeriesAligner(date(2025, 1, 1)).align(pa, pa)
        assert not res.is_sufficient


class TestPriceStore:
    def test_symbols_case_insensitive(self, store):
        assert "alpha" in store
        assert len(store.get("beta")) == len(store.get("BETA")) == 400
        assert store.symbols() == ["ALPHA", "BETA", "GAMMA"]

    def test_unknown_symbol_is_empty(self):
        assert InMemoryPriceStore().get("XYZ") == ()


# ---------------------------------------------------------------------------
# Rolling regression
# ---------------------------------------------------------------------------
class TestRollingRegressor:
    def test_exact_linear_relationship(self):
        b = np.linspace(10, 30, 120) + np.sin(np.arange(120))
        a = 2.0 + 3.0 * b
        points = RollingRegressor(lookback=20).fit(_aligned(a, b))
        assert len(points) == 120
        for p in points[1:]:
            assert p.beta == pytest.approx(3.0, rel=1e-6)
            assert p.alpha == pytest.approx(2.0, abs=1e-4)

    def test_constant_b_falls_back(self):
        a = np.arange(30.0)
        b = np.full(30, 5.0)
        points = RollingRegressor(lookback=10).fit(_aligned(a, b))
        assert all(p.beta == 1.0 and p.alpha == 0.0 for p in points)
        assert all(p.degenerate for p in points)

    def test_single_sample_window_falls_back(self):
        points = RollingRegressor(lookback=5).fit_arrays([3.0, 4.0], [1.0, 2.0])
        assert points[0].beta == 1.0 and points[0].alpha == 0.0
        assert points[0].window == 1

    def test_small_moves_of_high_priced_b_keep_slope(self):
        for method in ("naive", "incremental"):
            points = RollingRegressor(5, method=method).fit_arrays(
                [500.0, 500.04], [1000.0, 1000.02])
            assert not points[1].degenerate
            assert points[1].beta == pytest.approx(2.0, rel=1e-5)

    def test_constant_high_priced_b_still_degenerate(self):
        points = RollingRegressor(5).fit_arrays(np.linspace(1, 2, 8), np.full(8, 1000.1))
        assert all(p.degenerate and p.beta == 1.0 for p in points)

    def test_window_grows_then_slides(self):
        points = RollingRegressor(lookback=5).fit_arrays(np.arange(12.0), np.arange(12.0) ** 1.5)
        assert [p.window for p in points] == [1, 2, 3, 4, 5] + [5] * 7
        assert [p.index for p in points] == list(range(12))

    def test_no_look_ahead(self, cointegrated_pair):
        pa, pb = cointegrated_pair
        reg = RollingRegressor(lookback=60)
        full = reg.fit_arrays(pa.values, pb.values)
        prefix = reg.fit_arrays(pa.values[:200], pb.values[:200])
        for p_full, p_pre in zip(full[:200], prefix):
            assert p_full.beta == p_pre.beta
            assert p_full.alpha == p_pre.alpha

    def test_incremental_matches_naive(self, cointegrated_pair):
        pa, pb = cointegrated_pair
        naive = RollingRegressor(60, method="naive").fit_arrays(pa.values, pb.values)
        fast = RollingRegressor(60, method="incremental").fit_arrays(pa.values, pb.values)
        np.testing.assert_allclose([p.beta for p in fast], [p.beta for p in naive],
                                   rtol=1e-6)
        np.testing.assert_allclose([p.alpha for p in fast], [p.alpha for p in naive],
                                   rtol=1e-6, atol=1e-6)

    def test_without_intercept_alpha_is_zero(self, cointegrated_pair):
        pa, pb = cointegrated_pair
        with_c = RollingRegressor(50, with_intercept=True).fit_arrays(pa.values, pb.values)
        no_c = RollingRegressor(50, with_intercept=False).fit_arrays(pa.values, pb.values)
        assert all(p.alpha == 0.0 for p in no_c)
        assert [p.beta for p in no_c] == [p.beta for p in with_c]

    def test_hedge_ratio_near_true_value(self, cointegrated_pair):
        pa, pb = cointegrated_pair
        points = RollingRegressor(120).fit_arrays(pa.values, pb.values)
        assert np.median([p.beta for p in points[120:]]) == pytest.approx(1.5, rel=0.15)

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            RollingRegressor(lookback=1)
        with pytest.raises(ValueError):
            RollingRegressor(method="kalman")
        with pytest.raises(ValueError):
            RollingRegressor(5).fit_arrays([1.0, 2.0], [1.0])


# ---------------------------------------------------------------------------
# Spread & z-score
# ---------------------------------------------------------------------------
class TestSpread:
    def test_spread_uses_same_index_regression(self):
        aligned = _aligned([10.0, 12.0, 15.0], [2.0, 3.0, 4.0])
        regression = [RegressionPoint(0, 1.0, 0.0), RegressionPoint(1, 2.0, 1.0),
                      RegressionPoint(2, 3.0, 0.5)]
        samples = SpreadBuilder.build(aligned, regression)
        assert [s.spread for s in samples] == [8.0, 5.0, 2.5]
        assert samples[1].date == aligned.dates[1]

    def test_length_mismatch_raises(self):
        aligned = _aligned([1.0, 2.0], [1.0, 2.0])
        with pytest.raises(ValueError):
            SpreadBuilder.build(aligned, [RegressionPoint(0, 1.0)])

    def test_constant_spread_gives_zero_z(self):
        z = ZScoreNormalizer(10).zscores(np.full(40, 3.25))
        assert np.all(z == 0.0)

    def test_constant_window_with_inexact_mean_gives_zero_z(self):
        for value in (0.1, 1e6 + 0.3):
            z = ZScoreNormalizer(7).zscores(np.full(30, value))
            assert np.all(z == 0.0)

    def test_pipeline_zscores_match_stagewise(self, cointegrated_pair):
        pa, pb = cointegrated_pair
        lookback = 40
        res = PairsBacktester(BacktestConfig(lookback_window=lookback,
                                             zscore_lookback=lookback)).run(pa, pb)
        aligned = SeriesAligner().align(pa, pb)
        regression = RollingRegressor(
            lookback, with_intercept=res.config.with_intercept).fit(aligned)
        raw = SpreadBuilder.build(aligned, regression)
        z = ZScoreNormalizer(lookback).zscores(SpreadBuilder.spread_values(raw))
        assert [s.z_score for s in res.samples] == list(z)
        assert [s.spread for s in res.samples] == [s.spread for s in raw]

    def test_first_sample_z_is_zero(self):
        z = ZScoreNormalizer(10).zscores([5.0, 6.0, 4.0])
        assert z[0] == 0.0

    def test_zscore_inverts_to_spread(self, cointegrated_pair):
        pa, pb = cointegrated_pair
        s = (pa - 1.5 * pb).values
        lookback = 30
        z = ZScoreNormalizer(lookback).zscores(s)
        for i in range(1, len(s)):
            w = s[max(0, i - lookback + 1): i + 1]
            assert z[i] * w.std() + w.mean() == pytest.approx(s[i], abs=1e-9)

    def test_zscore_never_nan(self):
        s = np.concatenate([np.full(15, 1.0), np.linspace(1, 2, 15), np.full(15, 2.0)])
        z = ZScoreNormalizer(5).zscores(s)
        assert np.all(np.isfinite(z))

    def test_normalize_keeps_dates_and_spreads(self):
        aligned = _aligned([1.0, 3.0, 2.0], [0.0, 0.0, 0.0])
        raw = SpreadBuilder.build(aligned, [RegressionPoint(i, 1.0) for i in range(3)])
        out = ZScoreNormalizer(2).normalize(raw)
        assert [s.spread for s in out] == [1.0, 3.0, 2.0]
        assert out[1].z_score == pytest.approx(1.0)
        assert out[2].z_score == pytest.approx(-1.0)

    def test_statistics_and_bands(self):
        samples = ZScoreNormalizer(3).normalize(
            SpreadBuilder.build(_aligned([1.0, 2.0, 3.0, 4.0], [0.0] * 4),
                                [RegressionPoint(i, 1.0) for i in range(4)]))
        stats = spread_statistics(samples)
        assert stats["mean_spread"] == pytest.approx(2.5)
        assert stats["std_spread"] == pytest.approx(np.std([1, 2, 3, 4]))
        bands = rolling_bands([1.0, 2.0, 3.0, 4.0], 2)
        assert list(bands.columns) == ["mean", "upper_1", "lower_1", "upper_2", "lower_2"]
        assert bands["mean"].iloc[-1] == pytest.approx(3.5)
        assert bands["upper_2"].iloc[-1] == pytest.approx(4.5)
        assert bands["upper_1"].iloc[0] == bands["mean"].iloc[0]

    def test_empty_statistics(self):
        assert spread_statistics([])["std_spread"] == 0.0

    def test_price_correlation(self, cointegrated_pair):
        pa, pb = cointegrated_pair
        assert price_correlation(pa.values, pb.values) == pytest.approx(
            np.corrcoef(pa.values, pb.values)[0, 1], abs=1e-9)
        assert price_correlation([1.0, 2.0, 3.0], [4.0, 4.0, 4.0]) == 0.0


# ---------------------------------------------------------------------------
# ADF
# ---------------------------------------------------------------------------
class TestADF:
    def test_short_series_fallback(self):
        res = ADFTest().test(np.arange(19.0) % 3)
        assert res.statistic == 0.0 and res.p_value == 1.0
        assert not res.is_stationary
        assert "Insufficient" in res.reason

    def test_singular_design_fallback(self):
        res = ADFTest().test(np.full(50, 2.0))
        assert res.statistic == 0.0 and res.p_value == 1.0
        assert not res.is_stationary

    def test_statistic_matches_statsmodels(self, ar_half, walk):
        for series in (ar_half, walk[:500]):
            ours = ADFTest(p_value_method="mackinnon").test(series)
            ref = ADFTest.reference(series)
            assert ours.n_obs == ref["n_obs"] == len(series) - 2
            assert ours.statistic == pytest.approx(ref["adf_stat"], rel=1e-6)
            assert ours.p_value == pytest.approx(ref["adf_pvalue"], rel=1e-6)

    def test_random_walk_not_stationary(self, walk):
        res = ADFTest().test(walk)
        assert not res.is_stationary
        assert res.p_value == 1.0

    def test_ar1_stationary_with_mackinnon(self, ar_half):
        res = ADFTest(p_value_method="mackinnon").test(ar_half)
        assert res.statistic < res.critical_values["1%"]
        assert res.is_stationary
        assert res.rejects_at_5pct

    def test_approximate_p_value_is_conservative(self, ar_half):
        res = ADFTest().test(ar_half)
        assert res.statistic < -5
        assert res.p_value == pytest.approx(
            2 * (1 - abs(res.statistic) / math.sqrt(res.n_obs)))
        assert not res.is_stationary

    def test_unclamped_p_value_can_exceed_one(self, walk):
        res = ADFTest(clamp_p_value=False).test(walk)
        assert res.p_value > 1.0

    def test_p_value_in_unit_interval(self, walk, ar_half, white_noise):
        for series in (walk, ar_half, white_noise):
            p = ADFTest().test(series).p_value
            assert 0.0 <= p <= 1.0

    def test_summary_string(self, ar_half):
        adf = ADFTest()
        assert adf.get_summary() == "Run test() first."
        adf.test(ar_half)
        assert "DICKEY-FULLER" in adf.get_summary()

    def test_summary_of_explicit_result(self, ar_half, walk):
        adf = ADFTest()
        first = adf.test(ar_half)
        adf.test(walk)
        assert adf.get_summary(first) != adf.get_summary()
        assert f"{first.statistic:.4f}" in adf.get_summary(first)

    def test_unknown_method(self):
        with pytest.raises(ValueError):
            ADFTest(p_value_method="bootstrap")


class TestInvert3x3:
    def test_matches_numpy(self):
        m = np.array([[4.0, 1.0, 2.0], [1.0, 3.0, 0.5], [2.0, 0.5, 5.0]])
        inv, det = invert_3x3(m)
        assert det == pytest.approx(np.linalg.det(m))
        np.testing.assert_allclose(inv @ m, np.eye(3), atol=1e-12)

    def test_singular(self):
        inv, det = invert_3x3(np.array([[1.0, 2.0, 3.0], [2.0, 4.0, 6.0], [0.0, 1.0, 1.0]]))
        assert inv is None
        assert abs(det) < 1e-10


# ---------------------------------------------------------------------------
# Half-life & Hurst
# ---------------------------------------------------------------------------
class TestHalfLife:
    def test_recovers_ar1_half_life(self):
        from pairs_spread.data_generator import ar1_series
        phi = 0.9
        res = half_life(ar1_series(10000, phi=phi, seed=8))
        assert res.is_valid
        assert res.half_life == pytest.approx(-math.log(2) / math.log(phi), rel=0.2)
        assert res.beta < 0

    def test_short_series_invalid(self):
        res = half_life(np.random.RandomState(0).normal(size=19))
        assert (res.half_life, res.is_valid) == (0.0, False)

    def test_explosive_series_invalid(self):
        res = half_life(1.05 ** np.arange(60))
        assert not res.is_valid
        assert res.half_life == 0.0
        assert res.beta > 0

    def test_constant_series_invalid(self):
        assert not half_life(np.full(50, 1.0)).is_valid


class TestHurst:
    def test_short_series_returns_half(self):
        assert hurst_exponent(np.random.RandomState(1).normal(size=99)) == 0.5

    def test_white_noise_near_half(self, white_noise):
        assert 0.45 < hurst_exponent(white_noise) < 0.75

    def test_random_walk_levels_trending(self, walk):
        h = hurst_exponent(walk)
        assert h > 0.85
        assert interpret_hurst(h) == "trending"

    def test_overdifferenced_noise_mean_reverting(self, white_noise):
        h = hurst_exponent(np.diff(white_noise))
        assert h < 0.4
        assert interpret_hurst(h) == "mean-reverting"

    def test_constant_series_returns_half(self):
        assert hurst_exponent(np.ones(300)) == 0.5

    def test_diagnostics_dict(self, ar_half):
        out = MeanReversionDiagnostics().analyze(ar_half)
        assert set(out) == {"half_life", "half_life_valid", "half_life_beta",
                            "hurst", "hurst_regime"}
        assert out["half_life_valid"]
