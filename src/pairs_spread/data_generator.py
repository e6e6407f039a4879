"""
Synthetic Price Data
====================

Seeded generators for the demo pipeline and the test-suite:

    cointegrated_pair  - two prices sharing a stochastic trend plus a
                         stationary AR(1) spread
    random_walk        - cumulative sum of Gaussian noise
    ar1_series         - y_t = phi * y_{t-1} + eps_t (discrete OU)

Author: Jose Orlando Bobadilla Fuentes, CQF, MSc AI
"""

from typing import Dict, Tuple

import numpy as np
import pandas as pd

from pairs_spread.models import PricePoint


def random_walk(n: int, sigma: float = 1.0, seed: int = 42) -> np.ndarray:
    rng = np.random.RandomState(seed)
    return np.cumsum(rng.normal(0.0, sigma, n))


def ar1_series(n: int, phi: float, sigma: float = 1.0, seed: int = 42) -> np.ndarray:
    """Zero-mean AR(1) path started at 0."""
    rng = np.random.RandomState(seed)
    eps = rng.normal(0.0, sigma, n)
    y = np.zeros(n)
    for t in range(1, n):
        y[t] = phi * y[t - 1] + eps[t]
    return y


def cointegrated_pair(n: int = 750, hedge_ratio: float = 1.5,
                      spread_phi: float = 0.9, spread_sigma: float = 0.5,
                      seed: int = 123,
                      start: str = "2020-01-01") -> Tuple[pd.Series, pd.Series]:
    """
    Closes of A and B with A = alpha + hedge_ratio * B + AR(1) spread.

    Returns
    -------
    (pd.Series, pd.Series)
        Closes indexed by business days.
    """
    rng = np.random.RandomState(seed)
    dates = pd.bdate_range(start, periods=n)
    b = 40.0 + np.cumsum(rng.normal(0.02, 0.6, n))
    b = np.maximum(b, 1.0)
    spread = np.zeros(n)
    noise = rng.normal(0.0, spread_sigma, n)
    for t in range(1, n):
        spread[t] = spread_phi * spread[t - 1] + noise[t]
    a = 5.0 + hedge_ratio * b + spread
    return (pd.Series(a, index=dates, name="A"),
            pd.Series(b, index=dates, name="B"))


def to_price_points(closes: pd.Series, seed: int = 7) -> list:
    """Daily bars around each close (open/high/low within +/-0.5%)."""
    rng = np.random.RandomState(seed)
    n = len(closes)
    c = closes.to_numpy(dtype=np.float64)
    o = c * rng.uniform(0.995, 1.005, n)
    hi = np.maximum(c, o) * rng.uniform(1.000, 1.005, n)
    lo = np.minimum(c, o) * rng.uniform(0.995, 1.000, n)
    frame = pd.DataFrame({"open": o, "high": hi, "low": lo, "close": c},
                         index=closes.index)
    return PricePoint.from_frame(frame)


def demo_universe(n: int = 750, seed: int = 42) -> Dict[str, list]:
    """Two cointegrated tickers and one unrelated random-walk ticker."""
    pa, pb = cointegrated_pair(n=n, seed=seed)
    rng = np.random.RandomState(seed + 1)
    pc = pd.Series(60.0 + np.cumsum(rng.normal(0.0, 0.8, n)), index=pa.index)
    pc = pc.clip(lower=1.0)
    return {
        "ALPHA": to_price_points(pa, seed=seed),
        "BETA": to_price_points(pb, seed=seed + 2),
        "GAMMA": to_price_points(pc, seed=seed + 3),
    }
