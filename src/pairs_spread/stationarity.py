"""
Augmented Dickey-Fuller Test (lag order 1)
==========================================

Tests the spread for a unit root with one lagged difference:

    dy_t = c + gamma * y_{t-1} + delta * dy_{t-1} + eps_t

H0: gamma = 0 (unit root, no mean reversion)
H1: gamma < 0 (stationary spread)

The 3-parameter OLS system is solved through the normal equations
X'X b = X'y, inverting the 3x3 matrix X'X with the closed-form
cofactor / determinant formula. A (numerically) singular design cannot
support a conclusion and returns the insufficient-data result instead of
raising.

Test statistic: t = gamma_hat / se(gamma_hat).

p-values:
    approximate - 2 * (1 - |t| / sqrt(m)), m = number of regression rows,
                  clamped to [0, 1] unless clamping is disabled.
    mackinnon   - MacKinnon (1994) response-surface p-value of the same
                  statistic (statsmodels).

References:
    Dickey & Fuller (1979), Said & Dickey (1984), MacKinnon (1991, 1994)
"""

import math
from typing import Dict, Optional, Sequence, Union

import numpy as np
from statsmodels.tsa.adfvalues import mackinnonp
from statsmodels.tsa.stattools import adfuller

from pairs_spread.models import StationarityResult
from pairs_spread.utils import clamp, get_logger

log = get_logger(__name__)

# MacKinnon (1991) critical values, constant / no trend, large sample
CRITICAL_VALUES = {"1%": -3.43, "5%": -2.86, "10%": -2.57}

MIN_OBSERVATIONS = 20
SINGULAR_DET = 1e-10
SIGNIFICANCE = 0.05


def invert_3x3(m: np.ndarray):
    """
    Closed-form inverse of a 3x3 matrix via cofactors.

    Returns
    -------
    (inverse, determinant)
        ``inverse`` is None when |det| < 1e-10.
    """
    det = (m[0, 0] * (m[1, 1] * m[2, 2] - m[1, 2] * m[2, 1])
           - m[0, 1] * (m[1, 0] * m[2, 2] - m[1, 2] * m[2, 0])
           + m[0, 2] * (m[1, 0] * m[2, 1] - m[1, 1] * m[2, 0]))
    if abs(det) < SINGULAR_DET:
        return None, det

    inv = np.empty((3, 3))
    inv[0, 0] = (m[1, 1] * m[2, 2] - m[1, 2] * m[2, 1]) / det
    inv[0, 1] = (m[0, 2] * m[2, 1] - m[0, 1] * m[2, 2]) / det
    inv[0, 2] = (m[0, 1] * m[1, 2] - m[0, 2] * m[1, 1]) / det
    inv[1, 0] = (m[1, 2] * m[2, 0] - m[1, 0] * m[2, 2]) / det
    inv[1, 1] = (m[0, 0] * m[2, 2] - m[0, 2] * m[2, 0]) / det
    inv[1, 2] = (m[0, 2] * m[1, 0] - m[0, 0] * m[1, 2]) / det
    inv[2, 0] = (m[1, 0] * m[2, 1] - m[1, 1] * m[2, 0]) / det
    inv[2, 1] = (m[0, 1] * m[2, 0] - m[0, 0] * m[2, 1]) / det
    inv[2, 2] = (m[0, 0] * m[1, 1] - m[0, 1] * m[1, 0]) / det
    return inv, det


class ADFTest:
    """
    Augmented Dickey-Fuller test with one lagged difference.

    Parameters
    ----------
    p_value_method : str
        'approximate' (default) or 'mackinnon'.
    clamp_p_value : bool
        Clamp the approximate p-value into [0, 1] (default True).
    significance : float
        Threshold for ``is_stationary`` (default 0.05).

    ``test`` is a pure function of its input; it also keeps the latest
    outcome in ``results`` for ``get_summary``. Pass a result to
    ``get_summary`` explicitly when one instance serves several threads.
    """

    def __init__(self, p_value_method: str = "approximate",
                 clamp_p_value: bool = True,
                 significance: float = SIGNIFICANCE):
        if p_value_method not in ("approximate", "mackinnon"):
            raise ValueError(f"Unknown p_value_method {p_value_method!r}")
        self.p_value_method = p_value_method
        self.clamp_p_value = clamp_p_value
        self.significance = significance
        self.results = None

    def test(self, spread: Union[Sequence[float], np.ndarray]) -> StationarityResult:
        """
        Run the test on a spread series.

        Parameters
        ----------
        spread : array-like
            Spread levels in time order.

        Returns
        -------
        StationarityResult
            statistic 0, p-value 1, not stationary when n < 20 or the
            design is singular.
        """
        y = np.asarray(spread, dtype=np.float64)
        n = len(y)
        if n < MIN_OBSERVATIONS:
            return self._store(self._fallback(f"Insufficient data ({n} < {MIN_OBSERVATIONS})"))

        dy = np.diff(y)
        response = dy[1:]
        X = np.column_stack([np.ones(n - 2), y[1:-1], dy[:-1]])
        m = len(response)

        XtX = X.T @ X
        Xty = X.T @ response
        inv, det = invert_3x3(XtX)
        if inv is None:
            log.debug("ADF design singular (det=%.3e); returning fallback", det)
            return self._store(self._fallback("Singular design matrix"))

        coef = inv @ Xty
        resid = response - X @ coef
        rss = float(resid @ resid)
        sigma2 = rss / (m - 3)
        se = np.sqrt(sigma2 * np.diag(inv))

        if not np.isfinite(se[1]) or se[1] == 0:
            log.debug("ADF standard error degenerate (se=%s); returning fallback", se[1])
            return self._store(self._fallback("Degenerate standard error"))

        t_stat = float(coef[1] / se[1])
        p_value = self._p_value(t_stat, m)

        result = StationarityResult(
            statistic=t_stat,
            p_value=p_value,
            is_stationary=p_value < self.significance,
            critical_values=dict(CRITICAL_VALUES),
            n_obs=m,
            coefficients=tuple(float(c) for c in coef),
            standard_errors=tuple(float(s) for s in se),
            p_value_method=self.p_value_method,
        )
        return self._store(result)

    def _p_value(self, t_stat: float, m: int) -> float:
        if self.p_value_method == "mackinnon":
            return float(mackinnonp(t_stat, regression="c", N=1))
        p = 2.0 * (1.0 - abs(t_stat) / math.sqrt(m))
        return clamp(p, 0.0, 1.0) if self.clamp_p_value else p

    def _fallback(self, reason: str) -> StationarityResult:
        return StationarityResult(
            statistic=0.0, p_value=1.0, is_stationary=False,
            critical_values=dict(CRITICAL_VALUES),
            p_value_method=self.p_value_method, reason=reason,
        )

    def _store(self, result: StationarityResult) -> StationarityResult:
        self.results = result
        return result

    @staticmethod
    def reference(spread: Union[Sequence[float], np.ndarray]) -> Dict:
        """
        statsmodels ``adfuller`` on the same regression (constant, one
        lagged difference, no automatic lag selection).

        Returns
        -------
        dict
            adf_stat, adf_pvalue, n_obs, critical_values.
        """
        res = adfuller(np.asarray(spread, dtype=np.float64), maxlag=1,
                       regression="c", autolag=None)
        return {
            "adf_stat": float(res[0]),
            "adf_pvalue": float(res[1]),
            "n_obs": int(res[3]),
            "critical_values": dict(res[4]),
        }

    def get_summary(self, result: Optional[StationarityResult] = None) -> str:
        """Return formatted summary of ``result`` (default: the latest test)."""
        r = result if result is not None else self.results
        if r is None:
            return "Run test() first."
        sig = "***" if r.statistic < CRITICAL_VALUES["1%"] else \
              "**" if r.statistic < CRITICAL_VALUES["5%"] else \
              "*" if r.statistic < CRITICAL_VALUES["10%"] else ""
        lines = [
            "=" * 60,
            "AUGMENTED DICKEY-FULLER TEST (lag 1)",
            "=" * 60,
            f"Observations:       {r.n_obs}",
            f"ADF statistic:      {r.statistic:.4f} {sig}",
            f"p-value ({r.p_value_method}): {r.p_value:.6f}",
            f"Stationary:         {r.is_stationary}",
        ]
        if r.reason:
            lines.append(f"Note:               {r.reason}")
        lines.append("-" * 60)
        lines.append("Critical values:")
        for k, v in r.critical_values.items():
            lines.append(f"  {k}: {v:.4f}")
        lines.append("=" * 60)
        return "\n".join(lines)
