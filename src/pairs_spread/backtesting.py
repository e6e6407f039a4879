"""
Pair Analysis & Spread Backtest Pipelines
=========================================

Wires the stages into the two end-to-end views of a pair:

    PairAnalyzer     aligned prices -> rolling regression -> spread ->
                     z-score -> {ADF, half-life, Hurst, correlation,
                     spread statistics, rolling bands, recommendation}

    PairsBacktester  aligned prices -> rolling regression -> spread ->
                     z-score -> trade simulation -> summary

Both accept in-memory price histories; ``run_symbols`` / ``analyze_symbols``
resolve them through an injected PriceStore. Invalid configuration raises
InvalidConfigError before any stage runs. Missing or too-short data
produces a result with ``status=INSUFFICIENT`` and a message; numeric
degeneracies inside the stages resolve to their fallback values.

Each pipeline invocation is independent: no state is shared across runs,
so different pairs or parameter sets can be evaluated concurrently.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from pairs_spread.alignment import PriceInput, SeriesAligner
from pairs_spread.config import BacktestConfig
from pairs_spread.mean_reversion import MeanReversionDiagnostics
from pairs_spread.models import (
    AlignedSeries, BacktestSummary, DataStatus, PairRecommendation, RegressionPoint,
    Side, SpreadSample, StationarityResult, Suitability, Trade, samples_to_frame,
    trades_to_frame,
)
from pairs_spread.regression import RollingRegressor
from pairs_spread.spread import (
    SpreadBuilder, build_spread_samples, price_correlation, rolling_bands, spread_statistics,
)
from pairs_spread.stationarity import ADFTest
from pairs_spread.store import PriceStore
from pairs_spread.strategy import TradeSimulator
from pairs_spread.utils import get_logger, timeit

log = get_logger(__name__)

TABLE_ROWS = 30

# Pair recommendation
EXCELLENT_CORRELATION = 0.7
ACCEPTABLE_CORRELATION = 0.5
HALF_LIFE_RANGE = (5.0, 60.0)
SIGNAL_Z = 2.0
SUGGESTED_BANDS = (2.0, 0.5, 3.0)   # entry, exit, stop
CAPITAL_PER_LEG = 5000.0


class BacktestSummarizer:
    """Aggregate KPIs of a trade ledger."""

    @staticmethod
    def summarize(trades: Sequence[Trade]) -> BacktestSummary:
        """
        Returns
        -------
        BacktestSummary
            win_rate in percent; win_rate and avg_profit are 0 for an
            empty ledger.
        """
        total = len(trades)
        if total == 0:
            return BacktestSummary(0, 0, 0.0, 0.0, 0.0)

        profits = [t.profit for t in trades]
        profitable = sum(1 for p in profits if p > 0)
        total_profit = float(sum(profits))
        gross_win = sum(p for p in profits if p > 0)
        gross_loss = abs(sum(p for p in profits if p <= 0))
        if gross_loss > 0:
            pf = gross_win / gross_loss
        else:
            pf = float("inf") if gross_win > 0 else 0.0

        return BacktestSummary(
            total_trades=total,
            profitable_trades=profitable,
            win_rate=profitable / total * 100.0,
            total_profit=total_profit,
            avg_profit=total_profit / total,
            n_long=sum(1 for t in trades if t.side == Side.LONG),
            n_short=sum(1 for t in trades if t.side == Side.SHORT),
            avg_holding_days=float(np.mean([t.holding_days for t in trades])),
            best_trade=float(max(profits)),
            worst_trade=float(min(profits)),
            profit_factor=float(pf),
        )


@dataclass(frozen=True)
class BacktestResult:
    config: BacktestConfig
    status: DataStatus
    message: str = ""
    aligned: Optional[AlignedSeries] = None
    regression: List[RegressionPoint] = field(default_factory=list)
    samples: List[SpreadSample] = field(default_factory=list)
    trades: List[Trade] = field(default_factory=list)
    summary: BacktestSummary = field(default_factory=lambda: BacktestSummarizer.summarize([]))

    @property
    def ok(self) -> bool:
        return self.status == DataStatus.OK

    def table(self) -> pd.DataFrame:
        """Full date / closes / hedge ratio / spread / z-score table."""
        if not self.ok:
            return pd.DataFrame()
        return _pipeline_frame(self.aligned, self.samples, self.regression)

    def trades_frame(self) -> pd.DataFrame:
        return trades_to_frame(self.trades)


@dataclass(frozen=True)
class AnalysisResult:
    config: BacktestConfig
    status: DataStatus
    message: str = ""
    aligned: Optional[AlignedSeries] = None
    regression: List[RegressionPoint] = field(default_factory=list)
    samples: List[SpreadSample] = field(default_factory=list)
    stationarity: Optional[StationarityResult] = None
    diagnostics: Dict = field(default_factory=dict)
    statistics: Dict = field(default_factory=dict)
    bands: Optional[pd.DataFrame] = None
    recommendation: Optional[PairRecommendation] = None

    @property
    def ok(self) -> bool:
        return self.status == DataStatus.OK

    def table(self, n_rows: int = TABLE_ROWS) -> pd.DataFrame:
        """Most recent ``n_rows`` of prices, alpha, beta, spread, z-score."""
        if not self.ok:
            return pd.DataFrame()
        return _pipeline_frame(self.aligned, self.samples, self.regression).tail(n_rows)


def _pipeline_frame(aligned: AlignedSeries, samples: Sequence[SpreadSample],
                    regression: Sequence[RegressionPoint]) -> pd.DataFrame:
    """close_a, close_b, spread, zscore, alpha, hedge_ratio by date."""
    return pd.concat([aligned.to_frame(), samples_to_frame(samples, regression)], axis=1)


def grade_pair(correlation: float, is_stationary: bool, half_life: float,
               half_life_valid: bool, hurst: float) -> Suitability:
    """
    Excellent: correlation > 0.7, stationary spread, valid half-life in
    (5, 60) and Hurst < 0.5. Acceptable: correlation > 0.5 and stationary.
    Poor otherwise.
    """
    lo, hi = HALF_LIFE_RANGE
    if (correlation > EXCELLENT_CORRELATION and is_stationary and half_life_valid
            and lo < half_life < hi and hurst < 0.5):
        return Suitability.EXCELLENT
    if correlation > ACCEPTABLE_CORRELATION and is_stationary:
        return Suitability.ACCEPTABLE
    return Suitability.POOR


def recommend(aligned: AlignedSeries, regression: Sequence[RegressionPoint],
              samples: Sequence[SpreadSample], stationarity: StationarityResult,
              diagnostics: Dict, statistics: Dict) -> PairRecommendation:
    """
    Suitability grade, signal from the latest z-score, suggested z bands
    and a market-neutral split of CAPITAL_PER_LEG per leg (B leg scaled by
    the latest hedge ratio).
    """
    suitability = grade_pair(statistics["correlation"], stationarity.is_stationary,
                             diagnostics["half_life"], diagnostics["half_life_valid"],
                             diagnostics["hurst"])

    last_z = samples[-1].z_score
    if last_z > SIGNAL_Z:
        signal = Side.SHORT
    elif last_z < -SIGNAL_Z:
        signal = Side.LONG
    else:
        signal = None

    bands = SUGGESTED_BANDS if statistics["std_spread"] > 0 else (None, None, None)

    last_a = aligned.close_a[-1]
    last_b = aligned.close_b[-1]
    beta = regression[-1].beta
    shares_a = int(round(CAPITAL_PER_LEG / last_a)) if last_a != 0 else 0
    shares_b = int(round(CAPITAL_PER_LEG / last_b * beta)) if last_b != 0 else 0

    return PairRecommendation(suitability, signal, float(last_z), *bands,
                              capital_per_leg=CAPITAL_PER_LEG,
                              shares_a=shares_a, shares_b=shares_b)


def _prepare(config: BacktestConfig, prices_a: PriceInput, prices_b: PriceInput,
             start: Optional[date], end: Optional[date]):
    """Align and check length; returns (aligned, message-or-None)."""
    aligned = SeriesAligner(start, end).align(prices_a, prices_b)
    if not aligned.is_sufficient:
        return aligned, aligned.message
    if len(aligned) < config.lookback_window:
        msg = (f"Not enough data points for the selected lookback window "
               f"({len(aligned)} < {config.lookback_window} days).")
        log.warning(msg)
        return aligned, msg
    return aligned, None


def _spread_stage(config: BacktestConfig, aligned: AlignedSeries):
    regression = RollingRegressor(
        config.lookback_window, with_intercept=config.with_intercept
    ).fit(aligned)
    samples = build_spread_samples(aligned, regression, config.zscore_lookback)
    return regression, samples


class PairsBacktester:
    """
    Spread backtest of one pair.

    Parameters
    ----------
    config : BacktestConfig
        Validated on construction.
    """

    def __init__(self, config: Optional[BacktestConfig] = None):
        self.config = (config or BacktestConfig()).validate()

    @timeit
    def run(self, prices_a: PriceInput, prices_b: PriceInput,
            start: Optional[date] = None, end: Optional[date] = None) -> BacktestResult:
        """
        Align, regress, normalize, simulate and summarize.

        Parameters
        ----------
        prices_a, prices_b : sequence of PricePoint or pd.Series of closes
        start, end : date, optional
            Inclusive analysis window.
        """
        cfg = self.config
        aligned, problem = _prepare(cfg, prices_a, prices_b, start, end)
        if problem:
            return BacktestResult(cfg, DataStatus.INSUFFICIENT, problem, aligned)

        regression, samples = _spread_stage(cfg, aligned)
        trades = TradeSimulator(cfg).simulate(samples, regression)
        summary = BacktestSummarizer.summarize(trades)

        log.info("Backtest %s -> %s: %d samples, %d trades, win rate %.1f%%, "
                 "total profit %.4f", aligned.dates[0], aligned.dates[-1],
                 len(aligned), summary.total_trades, summary.win_rate,
                 summary.total_profit)
        return BacktestResult(cfg, DataStatus.OK, "", aligned, regression,
                              samples, trades, summary)

    def run_symbols(self, store: PriceStore, symbol_a: str, symbol_b: str,
                    start: Optional[date] = None,
                    end: Optional[date] = None) -> BacktestResult:
        """Resolve both histories from ``store`` and run the backtest."""
        return self.run(store.get(symbol_a), store.get(symbol_b), start, end)


class PairAnalyzer:
    """
    Descriptive statistics of one pair's spread.

    Parameters
    ----------
    config : BacktestConfig
        lookback_window, zscore_lookback, with_intercept and the ADF
        p-value options are used. Validated on construction.
    """

    def __init__(self, config: Optional[BacktestConfig] = None):
        self.config = (config or BacktestConfig()).validate()

    @timeit
    def analyze(self, prices_a: PriceInput, prices_b: PriceInput,
                start: Optional[date] = None,
                end: Optional[date] = None) -> AnalysisResult:
        cfg = self.config
        aligned, problem = _prepare(cfg, prices_a, prices_b, start, end)
        if problem:
            return AnalysisResult(cfg, DataStatus.INSUFFICIENT, problem, aligned)

        regression, samples = _spread_stage(cfg, aligned)
        spread = SpreadBuilder.spread_values(samples)

        adf = ADFTest(p_value_method=cfg.p_value_method,
                      clamp_p_value=cfg.clamp_p_value).test(spread)
        diagnostics = MeanReversionDiagnostics().analyze(spread)

        statistics = spread_statistics(samples)
        statistics["correlation"] = price_correlation(aligned.close_a, aligned.close_b)

        bands = rolling_bands(spread, cfg.lookback_window)
        bands.index = pd.DatetimeIndex(pd.to_datetime(list(aligned.dates)), name="date")

        recommendation = recommend(aligned, regression, samples, adf,
                                   diagnostics, statistics)

        log.info("Analysis %s -> %s: ADF t=%.3f (p=%.4f), half-life=%.2f, "
                 "Hurst=%.3f, corr=%.3f, grade=%s", aligned.dates[0], aligned.dates[-1],
                 adf.statistic, adf.p_value, diagnostics["half_life"],
                 diagnostics["hurst"], statistics["correlation"],
                 recommendation.suitability.value)
        return AnalysisResult(cfg, DataStatus.OK, "", aligned, regression,
                              samples, adf, diagnostics, statistics, bands,
                              recommendation)

    def analyze_symbols(self, store: PriceStore, symbol_a: str, symbol_b: str,
                        start: Optional[date] = None,
                        end: Optional[date] = None) -> AnalysisResult:
        """Resolve both histories from ``store`` and run the analysis."""
        return self.analyze(store.get(symbol_a), store.get(symbol_b), start, end)
