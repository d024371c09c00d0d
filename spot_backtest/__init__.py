"""
Backtesting and threshold optimization on top of spot-core.

Replays historical candles through the same Strategy interface used live;
computes trade metrics; grid-searches entry/exit thresholds.
"""

from spot_backtest.data_loader import candles_from_closes, candles_from_records, load_candles, normalize_candles
from spot_backtest.engine import BacktestEngine, BacktestResult, BacktestTrade, run_backtest
from spot_backtest.metrics import BacktestMetrics, compute_metrics, sharpe_ratio
from spot_backtest.optimizer import (
    ThresholdResult,
    evaluate_threshold_grid,
    grid_values,
    optimize_thresholds,
    run_threshold_grid_search,
)
from spot_backtest.report import print_report, print_threshold_report

__all__ = [
    "BacktestEngine",
    "BacktestMetrics",
    "BacktestResult",
    "BacktestTrade",
    "ThresholdResult",
    "candles_from_closes",
    "candles_from_records",
    "compute_metrics",
    "evaluate_threshold_grid",
    "grid_values",
    "load_candles",
    "normalize_candles",
    "optimize_thresholds",
    "print_report",
    "print_threshold_report",
    "run_backtest",
    "run_threshold_grid_search",
    "sharpe_ratio",
]
