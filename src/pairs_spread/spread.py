"""
Spread Construction & Z-Score Normalization
===========================================

Spread at each aligned index, using that index's own regression output:

    S_i = A_i - (alpha_i + beta_i * B_i)

Rolling z-score over a trailing window W_i = S[max(0, i-Z+1) .. i]:

    z_i = (S_i - mean(W_i)) / std(W_i)       (population std)

The window grows from a single sample up to Z and then slides. A window
with no dispersion yields z = 0 rather than NaN or infinity.

Also provides the descriptive statistics shown next to the spread chart:
full-sample mean and std, rolling +/-1 and +/-2 sigma bands, and the
price correlation of the pair.
"""

from typing import Dict, List, Sequence, Union

import numpy as np
import pandas as pd

from pairs_spread.models import AlignedSeries, RegressionPoint, SpreadSample
from pairs_spread.utils import get_logger, is_negligible

log = get_logger(__name__)


class SpreadBuilder:
    """Residual of A after removing the rolling hedge relationship to B."""

    @staticmethod
    def build(aligned: AlignedSeries,
              regression: Sequence[RegressionPoint]) -> List[SpreadSample]:
        """
        One SpreadSample per aligned index (z_score left at 0).

        Parameters
        ----------
        aligned : AlignedSeries
        regression : sequence of RegressionPoint
            Output of RollingRegressor.fit for the same series.
        """
        if len(regression) != len(aligned):
            raise ValueError(
                f"regression has {len(regression)} points for {len(aligned)} samples"
            )
        samples = []
        for i, reg in enumerate(regression):
            spread = aligned.close_a[i] - (reg.alpha + reg.beta * aligned.close_b[i])
            samples.append(SpreadSample(aligned.dates[i], float(spread)))
        return samples

    @staticmethod
    def spread_values(samples: Sequence[SpreadSample]) -> np.ndarray:
        return np.array([s.spread for s in samples], dtype=np.float64)


class ZScoreNormalizer:
    """
    Rolling z-score of a spread series.

    A window counts as having no dispersion when its std is exactly 0 or
    is within floating-point rounding of 0 relative to the window mean
    (``is_negligible``). A constant window whose mean picks up rounding
    error therefore still yields z = 0.

    Parameters
    ----------
    lookback : int
        Maximum trailing window length (>= 2).
    """

    def __init__(self, lookback: int = 30):
        if lookback < 2:
            raise ValueError(f"lookback must be >= 2 (got {lookback})")
        self.lookback = lookback

    def zscores(self, spread: Union[Sequence[float], np.ndarray]) -> np.ndarray:
        """Rolling z-score for every index of ``spread``."""
        s = np.asarray(spread, dtype=np.float64)
        z = np.zeros(len(s))
        for i in range(len(s)):
            window = s[max(0, i - self.lookback + 1): i + 1]
            mean = window.mean()
            std = window.std()
            if std == 0 or is_negligible(std, mean):
                continue
            z[i] = (s[i] - mean) / std
        return z

    def normalize(self, samples: Sequence[SpreadSample]) -> List[SpreadSample]:
        """Return new samples carrying the rolling z-score."""
        z = self.zscores([smp.spread for smp in samples])
        return [SpreadSample(smp.date, smp.spread, float(z[i]))
                for i, smp in enumerate(samples)]


def build_spread_samples(aligned: AlignedSeries,
                         regression: Sequence[RegressionPoint],
                         zscore_lookback: int) -> List[SpreadSample]:
    """SpreadBuilder followed by ZScoreNormalizer."""
    raw = SpreadBuilder.build(aligned, regression)
    return ZScoreNormalizer(zscore_lookback).normalize(raw)


def spread_statistics(samples: Sequence[SpreadSample]) -> Dict:
    """
    Full-sample spread mean / population std and the z-score range.

    Returns
    -------
    dict
        mean_spread, std_spread, min_zscore, max_zscore.
    """
    if not samples:
        return {"mean_spread": 0.0, "std_spread": 0.0,
                "min_zscore": 0.0, "max_zscore": 0.0}
    s = np.array([x.spread for x in samples])
    z = np.array([x.z_score for x in samples])
    return {
        "mean_spread": float(s.mean()),
        "std_spread": float(s.std()),
        "min_zscore": float(z.min()),
        "max_zscore": float(z.max()),
    }


def rolling_bands(spread: Union[Sequence[float], np.ndarray],
                  lookback: int) -> pd.DataFrame:
    """
    Rolling mean with +/-1 and +/-2 sigma bands (growing window, ddof=0).

    Returns
    -------
    pd.DataFrame
        Columns: mean, upper_1, lower_1, upper_2, lower_2.
    """
    s = pd.Series(np.asarray(spread, dtype=np.float64))
    roll = s.rolling(lookback, min_periods=1)
    mu = roll.mean()
    sigma = roll.std(ddof=0).fillna(0.0)
    return pd.DataFrame({
        "mean": mu,
        "upper_1": mu + sigma,
        "lower_1": mu - sigma,
        "upper_2": mu + 2 * sigma,
        "lower_2": mu - 2 * sigma,
    })


def price_correlation(close_a: Sequence[float], close_b: Sequence[float]) -> float:
    """Pearson correlation from raw sums; 0 when either side is constant."""
    a = np.asarray(close_a, dtype=np.float64)
    b = np.asarray(close_b, dtype=np.float64)
    n = len(a)
    if n == 0:
        return 0.0
    sum_a, sum_b = a.sum(), b.sum()
    num = n * (a * b).sum() - sum_a * sum_b
    var_a = n * (a * a).sum() - sum_a ** 2
    var_b = n * (b * b).sum() - sum_b ** 2
    if is_negligible(var_a, n * (a * a).sum()) or is_negligible(var_b, n * (b * b).sum()):
        return 0.0
    return float(num / np.sqrt(var_a * var_b))
