"""Shared fixtures for the spread engine tests."""

import os
import sys
from datetime import date, timedelta

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

from pairs_spread.data_generator import (
    ar1_series, cointegrated_pair as make_cointegrated_pair, demo_universe,
    random_walk, to_price_points,
)
from pairs_spread.models import SpreadSample
from pairs_spread.store import InMemoryPriceStore


@pytest.fixture(scope="module")
def cointegrated_pair():
    """750 business days, A = 5 + 1.5 B + AR(1) spread."""
    return make_cointegrated_pair(n=750, hedge_ratio=1.5, spread_phi=0.9, seed=123)


@pytest.fixture(scope="module")
def cointegrated_points(cointegrated_pair):
    pa, pb = cointegrated_pair
    return to_price_points(pa, seed=1), to_price_points(pb, seed=2)


@pytest.fixture(scope="module")
def walk():
    return random_walk(2000, seed=11)


@pytest.fixture(scope="module")
def white_noise():
    return np.random.RandomState(5).normal(0.0, 1.0, 2000)


@pytest.fixture(scope="module")
def ar_half():
    return ar1_series(500, phi=0.5, seed=21)


@pytest.fixture(scope="module")
def store():
    return InMemoryPriceStore(demo_universe(n=400, seed=3))


def make_samples(z_scores, spreads=None, start=date(2024, 1, 1)):
    """Spread samples on consecutive calendar days."""
    spreads = spreads if spreads is not None else [0.0] * len(z_scores)
    return [SpreadSample(start + timedelta(days=i), float(s), float(z))
            for i, (s, z) in enumerate(zip(spreads, z_scores))]
