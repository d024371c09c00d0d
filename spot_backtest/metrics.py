"""
Backtest metrics over realized trade profits and the running PnL curve.

The Sharpe-like ratio is per-trade and not annualized:
mean(profits) / sample_std(profits) · sqrt(n).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class BacktestMetrics:
    """Summary statistics of one backtest run."""

    trades: int
    wins: int
    losses: int
    win_rate: float
    total_pnl: float
    avg_pnl: float
    sharpe: float
    max_drawdown: float


def sharpe_ratio(profits: Sequence[float]) -> float:
    """Per-trade Sharpe with sample stddev (n−1). 0 for fewer than 2 trades or zero spread."""
    arr = np.asarray(profits, dtype=float)
    if len(arr) < 2:
        return 0.0
    std = float(np.std(arr, ddof=1))
    if std <= 0:
        return 0.0
    return float(np.mean(arr) / std * np.sqrt(len(arr)))


def drawdown_series(pnl_curve: Sequence[float]) -> np.ndarray:
    """Peak-to-current drawdown per point; peak starts at 0 and never decreases."""
    values = np.asarray(pnl_curve, dtype=float)
    if len(values) == 0:
        return values
    peak = np.maximum.accumulate(np.maximum(values, 0.0))
    return peak - values


def compute_metrics(profits: Sequence[float], pnl_curve: Sequence[float] = ()) -> BacktestMetrics:
    """
    Parameters
    ----------
    profits : sequence of float
        Net profit of each closed trade, in order.
    pnl_curve : sequence of float
        Cumulative PnL after each bar, used for max drawdown.

    Returns
    -------
    BacktestMetrics
        A trade with profit <= 0 counts as a loss. Win rate is a percentage.
    """
    arr = np.asarray(profits, dtype=float)
    n = len(arr)
    wins = int(np.count_nonzero(arr > 0))
    total = float(arr.sum()) if n else 0.0
    dd = drawdown_series(pnl_curve)
    return BacktestMetrics(
        trades=n,
        wins=wins,
        losses=n - wins,
        win_rate=wins / n * 100.0 if n else 0.0,
        total_pnl=total,
        avg_pnl=total / n if n else 0.0,
        sharpe=sharpe_ratio(arr),
        max_drawdown=float(dd.max()) if len(dd) else 0.0,
    )
