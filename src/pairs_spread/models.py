"""
Value Objects for the Spread Pipeline
=====================================

Every stage of the pipeline consumes the fully materialized output of the
previous stage and returns new immutable objects:

    PricePoint  -> AlignedSeries -> RegressionPoint -> SpreadSample -> Trade

Result containers expose ``to_frame()`` / ``to_dict()`` so a presentation
layer can render tables and charts without knowing the engine internals.
"""

from dataclasses import dataclass, field, asdict
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from pairs_spread.utils import pct_change


class DataStatus(str, Enum):
    OK = "ok"
    INSUFFICIENT = "insufficient"


class Side(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"


class ExitReason(str, Enum):
    Z_CROSS = "z_cross"
    MAX_HOLDING = "max_holding"
    END_OF_SERIES = "end_of_series"


@dataclass(frozen=True)
class PricePoint:
    """One daily bar for one symbol."""
    date: date
    open: float
    high: float
    low: float
    close: float

    @staticmethod
    def from_frame(df: pd.DataFrame) -> List["PricePoint"]:
        """
        Build price points from a DataFrame indexed by date.

        Only ``close`` is required; missing open/high/low default to close.
        """
        close = df["close"].astype(float)
        cols = {c: df[c].astype(float) if c in df.columns else close
                for c in ("open", "high", "low")}
        dates = pd.to_datetime(df.index)
        return [
            PricePoint(d.date(), cols["open"].iloc[i], cols["high"].iloc[i],
                       cols["low"].iloc[i], close.iloc[i])
            for i, d in enumerate(dates)
        ]


@dataclass(frozen=True)
class AlignedSeries:
    """Closes of two symbols on their shared, strictly increasing dates."""
    dates: Tuple[date, ...]
    close_a: np.ndarray
    close_b: np.ndarray
    status: DataStatus = DataStatus.OK
    message: str = ""

    def __len__(self) -> int:
        return len(self.dates)

    @property
    def is_sufficient(self) -> bool:
        return self.status == DataStatus.OK

    @classmethod
    def insufficient(cls, message: str) -> "AlignedSeries":
        return cls((), np.empty(0), np.empty(0), DataStatus.INSUFFICIENT, message)

    @classmethod
    def from_arrays(cls, dates: Sequence[date], close_a: Sequence[float],
                    close_b: Sequence[float]) -> "AlignedSeries":
        a = np.asarray(close_a, dtype=np.float64)
        b = np.asarray(close_b, dtype=np.float64)
        if not (len(dates) == len(a) == len(b)):
            raise ValueError("dates, close_a and close_b must have equal length")
        return cls(tuple(dates), a, b)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {"close_a": self.close_a, "close_b": self.close_b},
            index=pd.DatetimeIndex(pd.to_datetime(list(self.dates)), name="date"),
        )


@dataclass(frozen=True)
class RegressionPoint:
    """Trailing-window OLS fit ending at ``index``."""
    index: int
    beta: float
    alpha: float = 0.0
    window: int = 0
    degenerate: bool = False


@dataclass(frozen=True)
class SpreadSample:
    date: date
    spread: float
    z_score: float = 0.0


@dataclass(frozen=True)
class Trade:
    """A closed round trip on the spread."""
    entry_date: date
    exit_date: date
    side: Side
    entry_spread: float
    exit_spread: float
    entry_hedge_ratio: float
    exit_hedge_ratio: float
    holding_days: int
    profit: float
    max_drawdown: float
    entry_index: int = -1
    exit_index: int = -1
    exit_reason: ExitReason = ExitReason.Z_CROSS

    @property
    def hedge_ratio_change_pct(self) -> float:
        """Hedge-ratio drift over the trade, in percent of the entry ratio."""
        return pct_change(self.entry_hedge_ratio, self.exit_hedge_ratio)

    def to_dict(self) -> Dict:
        d = asdict(self)
        d["side"] = self.side.value
        d["exit_reason"] = self.exit_reason.value
        d["hedge_ratio_change_pct"] = self.hedge_ratio_change_pct
        return d


@dataclass(frozen=True)
class StationarityResult:
    """Augmented Dickey-Fuller (lag 1) outcome."""
    statistic: float
    p_value: float
    is_stationary: bool
    critical_values: Dict[str, float] = field(default_factory=dict)
    n_obs: int = 0
    coefficients: Tuple[float, ...] = ()
    standard_errors: Tuple[float, ...] = ()
    p_value_method: str = "approximate"
    reason: str = ""

    @property
    def rejects_at_5pct(self) -> bool:
        """Statistic below the 5% MacKinnon critical value."""
        cv = self.critical_values.get("5%")
        return cv is not None and self.statistic < cv


@dataclass(frozen=True)
class HalfLifeResult:
    half_life: float
    is_valid: bool
    beta: float = float("nan")


@dataclass(frozen=True)
class BacktestSummary:
    total_trades: int
    profitable_trades: int
    win_rate: float
    total_profit: float
    avg_profit: float
    n_long: int = 0
    n_short: int = 0
    avg_holding_days: float = 0.0
    best_trade: float = 0.0
    worst_trade: float = 0.0
    profit_factor: float = 0.0

    def to_dict(self) -> Dict:
        return asdict(self)


class Suitability(str, Enum):
    EXCELLENT = "Excellent"
    ACCEPTABLE = "Acceptable"
    POOR = "Poor"


@dataclass(frozen=True)
class PairRecommendation:
    """
    Trading guidance derived from one pair analysis.

    ``signal`` is the spread side suggested by the latest z-score
    (SHORT = short A / long B, LONG = long A / short B) or None. The
    suggested z bands are None when the spread has no dispersion.
    """
    suitability: Suitability
    signal: Optional[Side]
    last_zscore: float
    entry_z: Optional[float] = None
    exit_z: Optional[float] = None
    stop_z: Optional[float] = None
    capital_per_leg: float = 0.0
    shares_a: int = 0
    shares_b: int = 0

    def describe_signal(self, symbol_a: str = "A", symbol_b: str = "B") -> str:
        if self.signal == Side.SHORT:
            return f"Short {symbol_a}, Long {symbol_b} (Z-score: {self.last_zscore:.2f})"
        if self.signal == Side.LONG:
            return f"Long {symbol_a}, Short {symbol_b} (Z-score: {self.last_zscore:.2f})"
        return "No trading signal (Z-score within normal range)"

    def to_dict(self) -> Dict:
        d = asdict(self)
        d["suitability"] = self.suitability.value
        d["signal"] = self.signal.value if self.signal is not None else None
        return d


def trades_to_frame(trades: Sequence[Trade]) -> pd.DataFrame:
    """Trade ledger as a DataFrame (one row per closed trade)."""
    columns = [
        "entry_date", "exit_date", "side", "entry_spread", "exit_spread",
        "entry_hedge_ratio", "exit_hedge_ratio", "hedge_ratio_change_pct",
        "holding_days", "profit", "max_drawdown", "entry_index",
        "exit_index", "exit_reason",
    ]
    if not trades:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame([t.to_dict() for t in trades])[columns]


def samples_to_frame(samples: Sequence[SpreadSample],
                     regression: Optional[Sequence[RegressionPoint]] = None
                     ) -> pd.DataFrame:
    """Date / spread / z-score table, with alpha and beta when supplied."""
    df = pd.DataFrame(
        {"spread": [s.spread for s in samples],
         "zscore": [s.z_score for s in samples]},
        index=pd.DatetimeIndex(pd.to_datetime([s.date for s in samples]), name="date"),
    )
    if regression is not None:
        df["alpha"] = [r.alpha for r in regression]
        df["hedge_ratio"] = [r.beta for r in regression]
    return df
