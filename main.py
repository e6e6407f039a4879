"""
main.py
-------
Demo pipeline for the pairs spread engine.

Builds a synthetic three-ticker universe, analyzes the cointegrated pair
(ALPHA / BETA) with the 60/30-day analyzer settings, backtests it with
the 50/50-day no-intercept settings, and optionally renders the figures.

Usage:
    python main.py
    python main.py --figures --output-dir ./output
    python main.py --pair ALPHA GAMMA --close-at-end
"""

import argparse
import logging
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "src"))

from pairs_spread.backtesting import PairAnalyzer, PairsBacktester
from pairs_spread.config import ANALYZER_DEFAULTS, BacktestConfig
from pairs_spread.data_generator import demo_universe
from pairs_spread.stationarity import ADFTest
from pairs_spread.store import InMemoryPriceStore
from pairs_spread.utils import get_logger


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Pairs Spread Analytics & Backtest - synthetic demo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                           # ALPHA / BETA, console only
  python main.py --figures                 # also write PNGs to ./output/figures
  python main.py --pair ALPHA GAMMA        # a pair with no cointegration
  PAIRS_ENTRY_Z=2.5 python main.py         # override defaults from the env
        """,
    )
    p.add_argument("--pair", nargs=2, default=["ALPHA", "BETA"],
                   metavar=("A", "B"), help="Symbols to analyze")
    p.add_argument("--days", type=int, default=750, help="Length of the synthetic history")
    p.add_argument("--seed", type=int, default=42, help="Random seed")
    p.add_argument("--close-at-end", action="store_true",
                   help="Mark a trade still open at the last sample to market")
    p.add_argument("--figures", action="store_true", help="Render figures")
    p.add_argument("--output-dir", default="output", help="Figure directory root")
    p.add_argument("--log-level", default="INFO",
                   choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Log verbosity")
    return p.parse_args()


def main() -> None:
    args = parse_args()
    log = get_logger("main", level=args.log_level)
    for name in list(logging.root.manager.loggerDict):
        if name.startswith("pairs_spread"):
            logging.getLogger(name).setLevel(args.log_level)
    sym_a, sym_b = (s.upper() for s in args.pair)

    store = InMemoryPriceStore(demo_universe(n=args.days, seed=args.seed))
    log.info("=" * 60)
    log.info("  PAIRS SPREAD ANALYTICS & BACKTEST")
    log.info("  Universe: %s", ", ".join(store.symbols()))
    log.info("  Pair: %s / %s", sym_a, sym_b)
    log.info("=" * 60)

    analysis = PairAnalyzer(ANALYZER_DEFAULTS).analyze_symbols(store, sym_a, sym_b)
    if not analysis.ok:
        log.error("Analysis stopped: %s", analysis.message)
        sys.exit(1)

    stats = analysis.statistics
    diag = analysis.diagnostics
    adf = analysis.stationarity
    log.info("Correlation:     %.4f", stats["correlation"])
    log.info("Spread mean/std: %.4f / %.4f", stats["mean_spread"], stats["std_spread"])
    log.info("Z-score range:   [%.2f, %.2f]", stats["min_zscore"], stats["max_zscore"])
    log.info("ADF statistic:   %.4f (p=%.4f, stationary=%s)",
             adf.statistic, adf.p_value, adf.is_stationary)
    log.info("ADF reference:   %s", ADFTest.reference(
        [s.spread for s in analysis.samples]))
    log.info("Half-life:       %s",
             f"{diag['half_life']:.2f} days" if diag["half_life_valid"] else "n/a")
    log.info("Hurst exponent:  %.3f (%s)", diag["hurst"], diag["hurst_regime"])
    rec = analysis.recommendation
    log.info("Suitability:     %s pair trading candidate", rec.suitability.value)
    log.info("Current signal:  %s", rec.describe_signal(sym_a, sym_b))
    log.info("Position sizing: $%.0f per leg -> %d %s / %d %s",
             rec.capital_per_leg, rec.shares_a, sym_a, rec.shares_b, sym_b)

    bt_cfg = BacktestConfig(with_intercept=False,
                            close_open_trade_at_end=args.close_at_end)
    backtest = PairsBacktester(bt_cfg).run_symbols(store, sym_a, sym_b)
    if not backtest.ok:
        log.error("Backtest stopped: %s", backtest.message)
        sys.exit(1)

    s = backtest.summary
    log.info("-" * 60)
    log.info("Trades:          %d (%d long / %d short)", s.total_trades, s.n_long, s.n_short)
    log.info("Win rate:        %.1f%%", s.win_rate)
    log.info("Total profit:    %.4f", s.total_profit)
    log.info("Avg profit:      %.4f", s.avg_profit)
    log.info("Profit factor:   %.2f", s.profit_factor)
    log.info("Avg holding:     %.1f days", s.avg_holding_days)
    ledger = backtest.trades_frame()
    if not ledger.empty:
        log.info("Trade ledger:\n%s", ledger[[
            "entry_date", "exit_date", "side", "entry_spread", "exit_spread",
            "holding_days", "profit", "max_drawdown", "exit_reason",
        ]].to_string(index=False))

    if args.figures:
        from pairs_spread.visualization.pairs_plots import generate_all_figures
        paths = generate_all_figures(analysis, backtest, (sym_a, sym_b), args.output_dir)
        log.info("%d figures written under %s", len(paths),
                 os.path.join(args.output_dir, "figures"))


if __name__ == "__main__":
    main()
