"""
Tests for backtesting: BacktestEngine, metrics, threshold grid search, reports.
"""

import math
import statistics
from datetime import datetime, timedelta

import pandas as pd
import pytest

from spot_backtest import (
    BacktestEngine,
    candles_from_closes,
    compute_metrics,
    evaluate_threshold_grid,
    grid_values,
    optimize_thresholds,
    print_report,
    print_threshold_report,
    run_backtest,
    run_threshold_grid_search,
    sharpe_ratio,
)
from spot_core import Signal, Strategy
from spot_core.execution import PaperBrokerClient
from spot_core.strategies import SMAStrategy


class _Scripted(Strategy):
    """Returns the scripted signals in order, then NONE."""

    def __init__(self, *signals: Signal) -> None:
        self.signals = list(signals)

    def on_quote(self, data, config):
        return self.signals.pop(0) if self.signals else Signal.NONE


# --- Metrics ---


def test_compute_metrics():
    m = compute_metrics([10.0, -5.0, 5.0])
    assert m.trades == 3
    assert m.wins == 2
    assert m.losses == 1
    assert m.win_rate == pytest.approx(200.0 / 3)
    assert m.total_pnl == pytest.approx(10.0)
    assert m.avg_pnl == pytest.approx(10.0 / 3)
    expected = statistics.mean([10.0, -5.0, 5.0]) / statistics.stdev([10.0, -5.0, 5.0]) * math.sqrt(3)
    assert m.sharpe == pytest.approx(expected)


def test_compute_metrics_empty():
    m = compute_metrics([])
    assert m.trades == 0
    assert m.win_rate == 0.0
    assert m.sharpe == 0.0
    assert m.max_drawdown == 0.0


def test_zero_profit_counts_as_loss():
    m = compute_metrics([0.0, 1.0])
    assert m.wins == 1
    assert m.losses == 1


def test_sharpe_degenerate_cases():
    assert sharpe_ratio([5.0]) == 0.0
    assert sharpe_ratio([2.0, 2.0, 2.0]) == 0.0


def test_max_drawdown_from_curve():
    assert compute_metrics([], [0.0, 10.0, 5.0, 12.0, 2.0]).max_drawdown == pytest.approx(10.0)
    assert compute_metrics([], [-5.0]).max_drawdown == pytest.approx(5.0)


# --- BacktestEngine ---


def test_backtest_round_trips_with_fees():
    candles = candles_from_closes([100.0, 105.0, 110.0, 108.0, 104.0])
    strategy = _Scripted(Signal.BUY, Signal.NONE, Signal.SELL, Signal.BUY, Signal.SELL)
    result = BacktestEngine(strategy, fee_rate=0.001).run(candles)

    assert len(result.trades) == 2
    assert result.trades[0].profit == pytest.approx(10.0 - 0.21)
    assert result.trades[1].profit == pytest.approx(-4.0 - 0.212)
    assert result.metrics.total_pnl == pytest.approx(9.79 - 4.212)
    assert result.metrics.wins == 1
    assert len(result.pnl_history) == 5
    assert result.drawdown_history[-1][1] == pytest.approx(4.212)
    assert result.metrics.max_drawdown == pytest.approx(4.212)


def test_backtest_ignores_redundant_signals():
    candles = candles_from_closes([100.0, 101.0, 102.0, 103.0])
    strategy = _Scripted(Signal.SELL, Signal.BUY, Signal.BUY, Signal.SELL)
    result = run_backtest(strategy, candles)
    assert len(result.trades) == 1
    assert result.trades[0].entry_price == 101.0
    assert result.trades[0].exit_price == 103.0


def test_backtest_open_position_not_realized():
    result = run_backtest(_Scripted(Signal.BUY), candles_from_closes([100.0, 50.0]))
    assert result.trades == []
    assert result.metrics.total_pnl == 0.0


def test_backtest_stake_size_scales_profit():
    candles = candles_from_closes([100.0, 110.0])
    result = run_backtest(_Scripted(Signal.BUY, Signal.SELL), candles, stake_size=2.0)
    assert result.metrics.total_pnl == pytest.approx(20.0)


def test_backtest_with_sma_strategy():
    closes = [10.0, 10.0, 10.0, 13.0, 13.0, 8.0, 6.0, 6.0]
    result = run_backtest(SMAStrategy(2, 3), candles_from_closes(closes))
    assert len(result.trades) == 1
    assert result.trades[0].entry_price == 13.0
    assert result.trades[0].exit_price == 8.0


def test_backtest_result_frame():
    result = run_backtest(_Scripted(Signal.BUY, Signal.SELL), candles_from_closes([100.0, 90.0]))
    frame = result.to_frame()
    assert list(frame.columns) == ["pnl", "drawdown"]
    assert frame["pnl"].iloc[-1] == pytest.approx(-10.0)
    assert frame["drawdown"].iloc[-1] == pytest.approx(10.0)
    assert isinstance(frame.index, pd.DatetimeIndex)


# --- Threshold grid search ---


def test_grid_values_inclusive():
    assert grid_values(0.01, 0.05, 0.04) == [0.01, 0.05]
    assert grid_values(0.1, 0.3, 0.1) == [0.1, 0.2, 0.3]
    assert grid_values(0.05, 0.01, 0.01) == []


def test_grid_values_rejects_non_positive_step():
    with pytest.raises(ValueError):
        grid_values(0.01, 0.05, 0.0)


def test_threshold_grid_search_best_combination():
    candles = candles_from_closes([100.0, 105.0, 95.0, 100.0], pair="XBTZAR")
    result = run_threshold_grid_search(candles, 0.0, 0.01, 0.05, 0.04)
    assert result.evaluated == 4
    # entry 0.01 buys 105 and stops out at 95; entry 0.05 never triggers.
    assert (result.entry_threshold, result.exit_threshold) == (0.05, 0.01)
    assert result.total_pnl == 0.0
    assert result.win_rate == 0.0
    assert result.pair == "XBTZAR"


def test_threshold_grid_rows_in_iteration_order():
    grid = evaluate_threshold_grid([100.0, 105.0, 95.0, 100.0], 0.0, 0.01, 0.05, 0.04)
    combos = list(zip(grid["entry_threshold"], grid["exit_threshold"]))
    assert combos == [(0.01, 0.01), (0.01, 0.05), (0.05, 0.01), (0.05, 0.05)]
    assert grid["total_pnl"].tolist() == pytest.approx([-10.0, -10.0, 0.0, 0.0])


def test_threshold_grid_fee_on_both_legs():
    grid = evaluate_threshold_grid([100.0, 110.0, 100.0], 0.01, 0.05, 0.05, 0.01)
    assert grid["total_pnl"].iloc[0] == pytest.approx(-10.0 - 2.1)


def test_threshold_grid_search_empty_candles():
    with pytest.raises(ValueError):
        run_threshold_grid_search(candles_from_closes([]), 0.0, 0.01, 0.05, 0.01)


def test_optimize_thresholds_skips_pairs_without_candles():
    broker = PaperBrokerClient()
    now = datetime(2024, 1, 1, 1, 0, 0)
    candles = candles_from_closes([100.0, 105.0, 95.0, 100.0], start=now - timedelta(minutes=10))
    broker.set_candles("XBTZAR", candles)
    results = optimize_thresholds(broker, ["XBTZAR", "ETHZAR"], 60, 0.0, 0.01, 0.05, 0.04, now=now)
    assert [r.pair for r in results] == ["XBTZAR"]
    assert results[0].evaluated == 4


# --- Reports ---


def test_print_report(capsys):
    result = run_backtest(_Scripted(Signal.BUY, Signal.SELL), candles_from_closes([100.0, 110.0]))
    metrics = print_report(result)
    out = capsys.readouterr().out
    assert "Trades:          1" in out
    assert metrics.total_pnl == pytest.approx(10.0)


def test_print_threshold_report(capsys):
    candles = candles_from_closes([100.0, 105.0, 95.0, 100.0])
    print_threshold_report([run_threshold_grid_search(candles, 0.0, 0.01, 0.05, 0.04, pair="XBTZAR")])
    out = capsys.readouterr().out
    assert "XBTZAR" in out
    assert "(4 combos)" in out
