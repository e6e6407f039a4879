"""
Pair Analysis & Backtest Figures
================================

Figure Catalog:
    1. Price Series & Spread (pair overview)
    2. Rolling Hedge Ratio and Intercept
    3. Spread with Rolling +/-1 and +/-2 Sigma Bands
    4. Z-Score with Entry/Exit Thresholds and Trade Markers
    5. Price Scatter with Regression Line
    6. Trade P&L Distribution

Author: Jose Orlando Bobadilla Fuentes, CQF, MSc AI
"""

import os
from typing import List, Optional, Tuple

import pandas as pd
import matplotlib.pyplot as plt
import matplotlib.gridspec as gridspec
import seaborn as sns

from pairs_spread.backtesting import AnalysisResult, BacktestResult
from pairs_spread.models import Side, trades_to_frame
from pairs_spread.utils import get_logger

log = get_logger(__name__)

# -- Professional dark style --
plt.rcParams.update({
    "figure.facecolor": "#0d1117",
    "axes.facecolor": "#161b22",
    "axes.edgecolor": "#30363d",
    "axes.labelcolor": "#c9d1d9",
    "axes.grid": True,
    "grid.color": "#21262d",
    "grid.alpha": 0.6,
    "text.color": "#c9d1d9",
    "xtick.color": "#8b949e",
    "ytick.color": "#8b949e",
    "font.family": "sans-serif",
    "font.size": 10,
    "axes.titlesize": 13,
    "axes.labelsize": 11,
    "legend.facecolor": "#161b22",
    "legend.edgecolor": "#30363d",
    "legend.fontsize": 9,
    "figure.dpi": 150,
    "savefig.dpi": 200,
    "savefig.bbox": "tight",
    "savefig.facecolor": "#0d1117",
})

COLORS = ["#58a6ff", "#f0883e", "#3fb950", "#bc8cff",
          "#f778ba", "#79c0ff", "#d2a8ff", "#ffa657"]
RED = "#f85149"


def _save(fig, path, name) -> str:
    fdir = os.path.join(path, "figures")
    os.makedirs(fdir, exist_ok=True)
    fpath = os.path.join(fdir, name)
    fig.savefig(fpath, dpi=200, bbox_inches="tight",
                facecolor=fig.get_facecolor())
    plt.close(fig)
    log.info("[FIG] %s", name)
    return fpath


def _frame(result) -> pd.DataFrame:
    return result.table(len(result.samples)) if isinstance(result, AnalysisResult) \
        else result.table()


def plot_pair_overview(result, pair_name: Tuple[str, str], save_path: str) -> str:
    """Fig 1: Price series and spread."""
    df = _frame(result)
    fig = plt.figure(figsize=(14, 8))
    gs = gridspec.GridSpec(2, 1, height_ratios=[2, 1], hspace=0.2)

    ax1 = fig.add_subplot(gs[0])
    ax1b = ax1.twinx()
    ax1.plot(df.index, df["close_a"], color=COLORS[0], linewidth=1.2, label=pair_name[0])
    ax1b.plot(df.index, df["close_b"], color=COLORS[1], linewidth=1.2, label=pair_name[1])
    ax1.set_ylabel(f"{pair_name[0]} Price", color=COLORS[0])
    ax1b.set_ylabel(f"{pair_name[1]} Price", color=COLORS[1])
    ax1.set_title(f"Pair: {pair_name[0]} / {pair_name[1]} -- Price Series",
                  fontsize=14, fontweight="bold")
    lines1, labels1 = ax1.get_legend_handles_labels()
    lines2, labels2 = ax1b.get_legend_handles_labels()
    ax1.legend(lines1 + lines2, labels1 + labels2, loc="upper left")

    spread = df["spread"]
    ax2 = fig.add_subplot(gs[1])
    ax2.plot(spread.index, spread, color=COLORS[2], linewidth=1)
    ax2.axhline(spread.mean(), color=COLORS[3], linestyle="--", linewidth=0.8,
                label=f"Mean: {spread.mean():.4f}")
    ax2.set_title("Rolling Hedge-Ratio Spread", fontweight="bold")
    ax2.set_ylabel("Spread")
    ax2.legend(loc="upper right")

    return _save(fig, save_path, "01_pair_overview.png")


def plot_hedge_ratio(result, save_path: str) -> str:
    """Fig 2: Rolling hedge ratio (beta) and intercept (alpha)."""
    df = _frame(result)
    fig, axes = plt.subplots(2, 1, figsize=(14, 7), sharex=True)

    axes[0].plot(df.index, df["hedge_ratio"], color=COLORS[0], linewidth=1)
    axes[0].set_title(f"Rolling Hedge Ratio (lookback {result.config.lookback_window})",
                      fontweight="bold")
    axes[0].set_ylabel("Beta")

    axes[1].plot(df.index, df["alpha"], color=COLORS[1], linewidth=1)
    axes[1].set_title("Rolling Intercept", fontweight="bold")
    axes[1].set_ylabel("Alpha")

    return _save(fig, save_path, "02_hedge_ratio.png")


def plot_spread_bands(result: AnalysisResult, save_path: str) -> str:
    """Fig 3: Spread with rolling mean and sigma bands."""
    df = _frame(result)
    bands = result.bands
    fig, ax = plt.subplots(figsize=(14, 6))

    ax.plot(df.index, df["spread"], color=COLORS[0], linewidth=0.9, label="Spread")
    ax.plot(bands.index, bands["mean"], color=COLORS[3], linewidth=0.8,
            linestyle="--", label="Rolling mean")
    ax.fill_between(bands.index, bands["lower_1"], bands["upper_1"],
                    color=COLORS[2], alpha=0.15, label="+/- 1 std")
    ax.plot(bands.index, bands["upper_2"], color=RED, linestyle=":",
            linewidth=0.7, label="+/- 2 std")
    ax.plot(bands.index, bands["lower_2"], color=RED, linestyle=":", linewidth=0.7)
    ax.set_title("Spread with Rolling Bands", fontweight="bold")
    ax.set_ylabel("Spread")
    ax.legend(loc="upper right", ncol=2)

    return _save(fig, save_path, "03_spread_bands.png")


def plot_trading_signals(result: BacktestResult, save_path: str) -> str:
    """Fig 4: Z-score with thresholds and trade entries/exits."""
    df = _frame(result)
    cfg = result.config
    z = df["zscore"]
    fig, ax = plt.subplots(figsize=(14, 6))

    ax.plot(z.index, z, color=COLORS[0], linewidth=0.8, alpha=0.8)
    ax.axhline(cfg.entry_z, color=RED, linestyle="--", linewidth=0.8,
               label=f"Entry (+/-{cfg.entry_z})")
    ax.axhline(-cfg.entry_z, color=RED, linestyle="--", linewidth=0.8)
    ax.axhline(cfg.exit_z, color=COLORS[2], linestyle=":", linewidth=0.7,
               label=f"Exit (+/-{cfg.exit_z})")
    ax.axhline(-cfg.exit_z, color=COLORS[2], linestyle=":", linewidth=0.7)
    ax.axhline(0, color="#8b949e", linewidth=0.5)

    for trade in result.trades:
        color = COLORS[2] if trade.side == Side.LONG else RED
        ax.axvspan(pd.Timestamp(trade.entry_date), pd.Timestamp(trade.exit_date),
                   color=color, alpha=0.12)
        ax.scatter([pd.Timestamp(trade.entry_date)], [z.iloc[trade.entry_index]],
                   color=color, marker="^" if trade.side == Side.LONG else "v", s=30)
        ax.scatter([pd.Timestamp(trade.exit_date)], [z.iloc[trade.exit_index]],
                   color="#c9d1d9", marker="x", s=25)

    ax.set_title("Z-Score Trading Signals", fontsize=13, fontweight="bold")
    ax.set_ylabel("Z-Score")
    ax.legend(loc="upper right", fontsize=8)

    return _save(fig, save_path, "04_trading_signals.png")


def plot_price_scatter(result, pair_name: Tuple[str, str], save_path: str) -> str:
    """Fig 5: Close A against close B with full-sample OLS line."""
    df = _frame(result)
    fig, ax = plt.subplots(figsize=(8, 7))
    sns.regplot(x=df["close_b"], y=df["close_a"], ax=ax, ci=None,
                scatter_kws={"s": 8, "alpha": 0.5, "color": COLORS[0]},
                line_kws={"color": COLORS[1], "linewidth": 1.2})
    ax.set_xlabel(f"{pair_name[1]} Close")
    ax.set_ylabel(f"{pair_name[0]} Close")
    ax.set_title(f"{pair_name[0]} vs {pair_name[1]}", fontweight="bold")
    return _save(fig, save_path, "05_price_scatter.png")


def plot_trade_pnl_distribution(result: BacktestResult, save_path: str) -> Optional[str]:
    """Fig 6: Trade profit histogram and KPI box."""
    ledger = trades_to_frame(result.trades)
    if ledger.empty:
        log.info("No trades; skipping P&L distribution figure")
        return None

    fig, axes = plt.subplots(1, 2, figsize=(14, 6))
    profits = ledger["profit"].astype(float)
    sns.histplot(profits, bins=min(30, max(5, len(profits))), ax=axes[0],
                 color=COLORS[0], edgecolor="#30363d")
    axes[0].axvline(profits.mean(), color=COLORS[3], linestyle="--", linewidth=1.2,
                    label=f"Mean: {profits.mean():.3f}")
    axes[0].set_title("Trade Profit Distribution (spread units)", fontweight="bold")
    axes[0].set_xlabel("Profit")
    axes[0].legend()

    axes[1].axis("off")
    s = result.summary
    stats_text = (
        f"Trade Statistics\n"
        f"{'=' * 30}\n"
        f"Total Trades:    {s.total_trades}\n"
        f"  Long Trades:   {s.n_long}\n"
        f"  Short Trades:  {s.n_short}\n"
        f"{'=' * 30}\n"
        f"Win Rate:        {s.win_rate:.1f}%\n"
        f"Total Profit:    {s.total_profit:.3f}\n"
        f"Avg Profit:      {s.avg_profit:.3f}\n"
        f"Profit Factor:   {s.profit_factor:.2f}\n"
        f"{'=' * 30}\n"
        f"Avg Holding:     {s.avg_holding_days:.1f} days\n"
        f"{'=' * 30}"
    )
    axes[1].text(0.15, 0.85, stats_text, transform=axes[1].transAxes,
                 fontsize=11, verticalalignment="top", color="#c9d1d9",
                 fontfamily="monospace",
                 bbox=dict(boxstyle="round,pad=0.5", facecolor="#21262d",
                           edgecolor="#30363d"))

    fig.suptitle("Trade Performance Analysis", fontsize=14,
                 fontweight="bold", y=1.02)
    return _save(fig, save_path, "06_trade_pnl_distribution.png")


def generate_all_figures(analysis: AnalysisResult, backtest: BacktestResult,
                         pair_name: Tuple[str, str], save_path: str) -> List[str]:
    """Render every figure for one pair; returns the written file paths."""
    paths = [
        plot_pair_overview(analysis, pair_name, save_path),
        plot_hedge_ratio(analysis, save_path),
        plot_spread_bands(analysis, save_path),
        plot_trading_signals(backtest, save_path),
        plot_price_scatter(analysis, pair_name, save_path),
        plot_trade_pnl_distribution(backtest, save_path),
    ]
    return [p for p in paths if p is not None]
