"""Matplotlib figures for pair analysis and backtest results."""
