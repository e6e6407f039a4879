"""
Pairs Spread Analytics & Backtest Engine
========================================

Rolling hedge-ratio spreads for pairs trading: estimation, stationarity
diagnostics and a threshold-crossing trade simulator.

Modules:
    alignment       - Date-range filter and inner join of two price histories
    regression      - Rolling OLS hedge ratio (optional intercept)
    spread          - Spread construction, rolling z-score, bands, correlation
    stationarity    - Augmented Dickey-Fuller test (lag 1)
    mean_reversion  - Half-life and Hurst exponent
    strategy        - Z-score crossing trade simulator
    backtesting     - Summary KPIs and end-to-end pair pipelines
    store           - Price store interface and in-memory implementation
    config          - Backtest configuration and validation

Author: Jose Orlando Bobadilla Fuentes, CQF, MSc AI
"""

from pairs_spread.config import BacktestConfig, InvalidConfigError
from pairs_spread.models import (
    AlignedSeries, BacktestSummary, DataStatus, PairRecommendation, PricePoint,
    RegressionPoint, Side, SpreadSample, StationarityResult, Suitability, Trade,
)
from pairs_spread.alignment import SeriesAligner
from pairs_spread.regression import RollingRegressor
from pairs_spread.spread import SpreadBuilder, ZScoreNormalizer
from pairs_spread.stationarity import ADFTest
from pairs_spread.mean_reversion import MeanReversionDiagnostics, half_life, hurst_exponent
from pairs_spread.strategy import TradeSimulator
from pairs_spread.backtesting import BacktestSummarizer, PairAnalyzer, PairsBacktester
from pairs_spread.store import InMemoryPriceStore, PriceStore

__version__ = "1.0.0"
__author__ = "Jose Orlando Bobadilla Fuentes"
