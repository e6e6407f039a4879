"""
Mean-Reversion Diagnostics: Half-Life & Hurst Exponent
======================================================

Half-life
    Discretized Ornstein-Uhlenbeck dynamics of the spread:

        dS_t = c + beta * S_{t-1} + eps_t,      beta < 0 when mean-reverting

    half_life = -ln(2) / beta is the expected number of samples for a
    shock to decay by half. Only 0 < half_life < 252 (one trading year) is
    considered meaningful; anything else is reported as invalid.

Hurst exponent
    Rescaled-range (R/S) analysis over lags 10, 20, ..., min(100, n/2):
    each lag partitions the series into consecutive windows, R/S is the
    range of the mean-centered cumulative sum divided by the window's
    population std, averaged over windows. The slope of ln(R/S) on ln(lag)
    is the Hurst exponent.

        H < 0.5  mean-reverting
        H = 0.5  random walk
        H > 0.5  trending

References:
    Hurst (1951), Mandelbrot & Wallis (1969), Lo (1991), Chan (2013)
"""

import math
from typing import Dict, Sequence, Union

import numpy as np
from scipy import stats as sp_stats

from pairs_spread.models import HalfLifeResult
from pairs_spread.utils import get_logger, is_negligible

log = get_logger(__name__)

ArrayLike = Union[Sequence[float], np.ndarray]

MIN_HALF_LIFE_OBS = 20
MAX_HALF_LIFE = 252.0
MIN_HURST_OBS = 100
HURST_LAG_STEP = 10
HURST_MAX_LAG = 100


def half_life(spread: ArrayLike) -> HalfLifeResult:
    """
    Mean-reversion half-life from the OLS slope of dS_t on S_{t-1}.

    Returns
    -------
    HalfLifeResult
        (half_life, True) when 0 < half_life < 252, otherwise (0, False).
    """
    s = np.asarray(spread, dtype=np.float64)
    n = len(s)
    if n < MIN_HALF_LIFE_OBS:
        return HalfLifeResult(0.0, False)

    y = s[1:] - s[:-1]
    x = s[:-1]
    m = len(y)
    sum_x, sum_y = x.sum(), y.sum()
    denom = m * (x * x).sum() - sum_x * sum_x
    if is_negligible(denom, m * (x * x).sum()):
        log.debug("Half-life regression degenerate (constant spread)")
        return HalfLifeResult(0.0, False)

    beta = (m * (x * y).sum() - sum_x * sum_y) / denom
    if beta == 0:
        return HalfLifeResult(0.0, False, 0.0)

    hl = -math.log(2) / beta
    if 0 < hl < MAX_HALF_LIFE:
        return HalfLifeResult(float(hl), True, float(beta))
    return HalfLifeResult(0.0, False, float(beta))


def rescaled_range(window: np.ndarray) -> float:
    """R/S of one window; NaN when the window has zero dispersion."""
    mean = window.mean()
    cum_dev = np.cumsum(window - mean)
    std = np.sqrt(((window - mean) ** 2).mean())
    if std <= 0:
        return float("nan")
    return float((cum_dev.max() - cum_dev.min()) / std)


def hurst_exponent(series: ArrayLike) -> float:
    """
    Hurst exponent by rescaled-range analysis.

    Returns 0.5 (random walk) for fewer than 100 samples or when fewer than
    two lags produce a usable R/S value.
    """
    x = np.asarray(series, dtype=np.float64)
    n = len(x)
    if n < MIN_HURST_OBS:
        return 0.5

    max_lag = min(HURST_MAX_LAG, n // 2)
    log_lags, log_rs = [], []
    for lag in range(HURST_LAG_STEP, max_lag + 1, HURST_LAG_STEP):
        rs_values = [rescaled_range(x[i:i + lag]) for i in range(0, n - lag, lag)]
        rs_values = [v for v in rs_values if not np.isnan(v)]
        if rs_values:
            mean_rs = float(np.mean(rs_values))
            if mean_rs > 0:
                log_lags.append(math.log(lag))
                log_rs.append(math.log(mean_rs))

    if len(log_lags) < 2:
        return 0.5
    return float(sp_stats.linregress(log_lags, log_rs).slope)


def interpret_hurst(h: float, tol: float = 1e-9) -> str:
    if h < 0.5 - tol:
        return "mean-reverting"
    if h > 0.5 + tol:
        return "trending"
    return "random walk"


class MeanReversionDiagnostics:
    """Half-life and Hurst exponent of a spread series."""

    def __init__(self):
        self.results = None

    def analyze(self, spread: ArrayLike) -> Dict:
        """
        Returns
        -------
        dict
            half_life, half_life_valid, half_life_beta, hurst, hurst_regime.
        """
        hl = half_life(spread)
        h = hurst_exponent(spread)
        self.results = {
            "half_life": hl.half_life,
            "half_life_valid": hl.is_valid,
            "half_life_beta": hl.beta,
            "hurst": h,
            "hurst_regime": interpret_hurst(h),
        }
        return self.results
