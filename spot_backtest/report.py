"""
Print performance summaries for backtests and threshold searches.
"""

from __future__ import annotations

from collections.abc import Sequence

from spot_backtest.engine import BacktestResult
from spot_backtest.metrics import BacktestMetrics
from spot_backtest.optimizer import ThresholdResult


def print_report(result: BacktestResult, *, title: str = "Backtest") -> BacktestMetrics:
    """
    Print a performance summary of a backtest run.

    Parameters
    ----------
    result : BacktestResult
        Output of BacktestEngine.run() or run_backtest().
    title : str
        Heading line.

    Returns
    -------
    BacktestMetrics
        The metrics printed (e.g. for programmatic use).
    """
    m = result.metrics
    print(f"--- {title} Performance ---")
    print(f"Trades:          {m.trades}")
    print(f"Wins / losses:   {m.wins} / {m.losses}")
    print(f"Win rate:        {m.win_rate:.2f}%")
    print(f"Total PnL:       {m.total_pnl:,.2f}")
    print(f"Avg PnL/trade:   {m.avg_pnl:,.2f}")
    print(f"Sharpe (trade):  {m.sharpe:.2f}")
    print(f"Max drawdown:    {m.max_drawdown:,.2f}")
    print("----------------------------")
    return m


def print_threshold_report(results: Sequence[ThresholdResult]) -> None:
    """One line per pair with the winning thresholds."""
    print("--- Threshold Optimization ---")
    if not results:
        print("No pairs optimized.")
    for r in results:
        print(
            f"{r.pair:<10} entry={r.entry_threshold:.4f} exit={r.exit_threshold:.4f} "
            f"pnl={r.total_pnl:,.2f} win_rate={r.win_rate:.2f}% ({r.evaluated} combos)"
        )
    print("------------------------------")
