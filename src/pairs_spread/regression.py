"""
Rolling Hedge-Ratio Regression
==============================

Single-variable OLS of price A on price B over a trailing window:

    beta  = (n * sum(AB) - sum(A) * sum(B)) / (n * sum(B^2) - sum(B)^2)
    alpha = mean(A) - beta * mean(B)

The window is min(lookback, i + 1) samples ending at i, so the first
estimates use a growing window and nothing after i is ever read.

A window in which B is constant carries no slope information; the fit
falls back to beta = 1, alpha = 0 for that index. The denominator is
treated as zero only when it is within a few ulps of n * sum(B^2), the
size of the rounding error of the subtraction; small but genuine moves of
a high-priced B keep their slope.

Two equivalent evaluation methods are offered:
    naive       - sums recomputed from scratch for every window (reference)
    incremental - running sums over a fixed-size ring buffer, O(1) per step
"""

from collections import deque
from typing import List

import numpy as np

from pairs_spread.models import AlignedSeries, RegressionPoint
from pairs_spread.utils import get_logger, is_negligible

log = get_logger(__name__)

METHODS = ("naive", "incremental")


def _ols_from_sums(n: int, sum_a: float, sum_b: float, sum_ab: float,
                   sum_b2: float, with_intercept: bool):
    denom = n * sum_b2 - sum_b * sum_b
    if n == 0 or is_negligible(denom, n * sum_b2):
        return 1.0, 0.0, True
    beta = (n * sum_ab - sum_a * sum_b) / denom
    alpha = (sum_a / n - beta * sum_b / n) if with_intercept else 0.0
    return beta, alpha, False


class RollingRegressor:
    """
    Trailing-window hedge ratio (and optional intercept).

    Parameters
    ----------
    lookback : int
        Maximum window length (>= 2).
    with_intercept : bool
        Report alpha = mean(A) - beta * mean(B); otherwise alpha is 0.
        The slope formula is the same either way.
    method : str
        'naive' or 'incremental'.
    """

    def __init__(self, lookback: int = 60, with_intercept: bool = True,
                 method: str = "naive"):
        if lookback < 2:
            raise ValueError(f"lookback must be >= 2 (got {lookback})")
        if method not in METHODS:
            raise ValueError(f"method must be one of {METHODS} (got {method!r})")
        self.lookback = lookback
        self.with_intercept = with_intercept
        self.method = method

    def fit(self, aligned: AlignedSeries) -> List[RegressionPoint]:
        """Return one RegressionPoint per aligned sample."""
        return self.fit_arrays(aligned.close_a, aligned.close_b)

    def fit_arrays(self, close_a, close_b) -> List[RegressionPoint]:
        a = np.asarray(close_a, dtype=np.float64)
        b = np.asarray(close_b, dtype=np.float64)
        if a.shape != b.shape:
            raise ValueError("close_a and close_b must have the same length")

        if self.method == "incremental":
            points = self._fit_incremental(a, b)
        else:
            points = self._fit_naive(a, b)

        n_degenerate = sum(p.degenerate for p in points)
        if n_degenerate:
            log.debug("%d of %d windows had constant B; used beta=1, alpha=0",
                      n_degenerate, len(points))
        return points

    def _fit_naive(self, a: np.ndarray, b: np.ndarray) -> List[RegressionPoint]:
        points = []
        for i in range(len(a)):
            start = max(0, i - self.lookback + 1)
            sum_a = sum_b = sum_ab = sum_b2 = 0.0
            for j in range(start, i + 1):
                sum_a += a[j]
                sum_b += b[j]
                sum_ab += a[j] * b[j]
                sum_b2 += b[j] * b[j]
            n = i + 1 - start
            beta, alpha, degenerate = _ols_from_sums(
                n, sum_a, sum_b, sum_ab, sum_b2, self.with_intercept)
            points.append(RegressionPoint(i, float(beta), float(alpha), n, degenerate))
        return points

    def _fit_incremental(self, a: np.ndarray, b: np.ndarray) -> List[RegressionPoint]:
        buf = deque(maxlen=self.lookback)
        sum_a = sum_b = sum_ab = sum_b2 = 0.0
        points = []
        for i in range(len(a)):
            if len(buf) == self.lookback:
                old_a, old_b = buf[0]
                sum_a -= old_a
                sum_b -= old_b
                sum_ab -= old_a * old_b
                sum_b2 -= old_b * old_b
            buf.append((a[i], b[i]))
            sum_a += a[i]
            sum_b += b[i]
            sum_ab += a[i] * b[i]
            sum_b2 += b[i] * b[i]
            n = len(buf)
            beta, alpha, degenerate = _ols_from_sums(
                n, sum_a, sum_b, sum_ab, sum_b2, self.with_intercept)
            points.append(RegressionPoint(i, float(beta), float(alpha), n, degenerate))
        return points
