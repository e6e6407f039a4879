"""
config.py
---------
Backtest configuration for the spread engine.
Defaults are read from environment variables so the same code runs
unchanged from a notebook, a test harness, or a scheduled job.
"""

import os
from dataclasses import dataclass, asdict, replace
from typing import Dict, List


P_VALUE_METHODS = ("approximate", "mackinnon")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class InvalidConfigError(ValueError):
    """Raised when a BacktestConfig violates its invariants."""

    def __init__(self, problems: List[str]):
        self.problems = list(problems)
        super().__init__("Invalid backtest configuration: " + "; ".join(self.problems))


@dataclass(frozen=True)
class BacktestConfig:
    """Parameters for one pair analysis / backtest run."""
    lookback_window:  int   = int(os.getenv("PAIRS_LOOKBACK", "50"))
    zscore_lookback:  int   = int(os.getenv("PAIRS_ZSCORE_LOOKBACK", "50"))
    entry_z:          float = float(os.getenv("PAIRS_ENTRY_Z", "2.0"))
    exit_z:           float = float(os.getenv("PAIRS_EXIT_Z", "1.5"))
    max_holding_days: int   = int(os.getenv("PAIRS_MAX_HOLDING_DAYS", "15"))

    # Regression without intercept reproduces the plain "dynamic spread" model
    with_intercept:   bool  = _env_bool("PAIRS_WITH_INTERCEPT", "true")

    # Open trade at series end: dropped (False) or marked to market (True)
    close_open_trade_at_end: bool = _env_bool("PAIRS_CLOSE_AT_END", "false")

    # ADF p-value: "approximate" = 2 * (1 - |t| / sqrt(m)), "mackinnon" = statsmodels
    p_value_method:   str   = os.getenv("PAIRS_PVALUE_METHOD", "approximate")
    clamp_p_value:    bool  = True

    def problems(self) -> List[str]:
        """Return every violated invariant (empty list when valid)."""
        issues = []
        if self.lookback_window < 2:
            issues.append(f"lookback_window must be >= 2 (got {self.lookback_window})")
        if self.zscore_lookback < 2:
            issues.append(f"zscore_lookback must be >= 2 (got {self.zscore_lookback})")
        if self.exit_z < 0:
            issues.append(f"exit_z must be >= 0 (got {self.exit_z})")
        if self.entry_z <= self.exit_z:
            issues.append(
                f"entry_z must be greater than exit_z (got {self.entry_z} <= {self.exit_z})"
            )
        if self.max_holding_days <= 0:
            issues.append(f"max_holding_days must be > 0 (got {self.max_holding_days})")
        if self.p_value_method not in P_VALUE_METHODS:
            issues.append(
                f"p_value_method must be one of {P_VALUE_METHODS} (got {self.p_value_method!r})"
            )
        return issues

    def validate(self) -> "BacktestConfig":
        """Raise InvalidConfigError if any invariant is violated."""
        issues = self.problems()
        if issues:
            raise InvalidConfigError(issues)
        return self

    def with_overrides(self, **changes) -> "BacktestConfig":
        return replace(self, **changes)

    def to_dict(self) -> Dict:
        return asdict(self)


# Pair-analyzer view: 60-day hedge ratio, 30-day z-score
ANALYZER_DEFAULTS = BacktestConfig(lookback_window=60, zscore_lookback=30)
