"""
Backtesting engine: replay historical candles through a Strategy.

Each bar becomes a zero-spread quote at the close. A single-position state
machine enters on BUY when flat and exits on SELL when positioned; fees are
charged on both legs. Positions still open at the end are not realized.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

import pandas as pd

from spot_core import Config, MarketData, Signal, Strategy

from spot_backtest.metrics import BacktestMetrics, compute_metrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BacktestTrade:
    """One round trip: entry and exit at bar closes."""

    entry_time: datetime
    exit_time: datetime
    entry_price: float
    exit_price: float
    size: float
    fee: float
    profit: float


@dataclass
class BacktestResult:
    """Trades, per-bar PnL and drawdown histories, and summary metrics."""

    metrics: BacktestMetrics
    trades: list[BacktestTrade] = field(default_factory=list)
    pnl_history: list[tuple[datetime, float]] = field(default_factory=list)
    drawdown_history: list[tuple[datetime, float]] = field(default_factory=list)

    def to_frame(self) -> pd.DataFrame:
        """PnL and drawdown per bar, indexed by bar time."""
        return pd.DataFrame(
            {
                "pnl": [p for _, p in self.pnl_history],
                "drawdown": [d for _, d in self.drawdown_history],
            },
            index=pd.DatetimeIndex([t for t, _ in self.pnl_history], name="datetime"),
        )


class BacktestEngine:
    """
    Run a strategy over candles with a fixed stake and fee rate.

    config is passed to the strategy on every bar; by default entry/exit
    thresholds are zero and stake_size matches `stake_size`.
    """

    def __init__(
        self,
        strategy: Strategy,
        fee_rate: float = 0.0,
        *,
        stake_size: float = 1.0,
        config: Config | None = None,
    ) -> None:
        self.strategy = strategy
        self.fee_rate = fee_rate
        self.stake_size = stake_size
        self.config = config or Config(entry_threshold=0.0, exit_threshold=0.0, stake_size=stake_size)

    def run(self, candles: pd.DataFrame) -> BacktestResult:
        """
        Parameters
        ----------
        candles : pd.DataFrame
            DatetimeIndex and a close column, oldest first.
        """
        trades: list[BacktestTrade] = []
        pnl_history: list[tuple[datetime, float]] = []
        drawdown_history: list[tuple[datetime, float]] = []

        in_position = False
        entry_price = 0.0
        entry_time: datetime | None = None
        total = 0.0
        peak = 0.0
        stake = self.stake_size

        for ts, close in candles["close"].items():
            bar_time = ts.to_pydatetime() if hasattr(ts, "to_pydatetime") else ts
            price = float(close)
            signal = self.strategy.on_quote(MarketData.from_price(price, bar_time), self.config)

            if signal is Signal.BUY and not in_position:
                in_position = True
                entry_price = price
                entry_time = bar_time
            elif signal is Signal.SELL and in_position:
                gross = (price - entry_price) * stake
                fee = self.fee_rate * (entry_price + price) * stake
                profit = gross - fee
                total += profit
                trades.append(
                    BacktestTrade(
                        entry_time=entry_time,
                        exit_time=bar_time,
                        entry_price=entry_price,
                        exit_price=price,
                        size=stake,
                        fee=fee,
                        profit=profit,
                    )
                )
                in_position = False

            if total > peak:
                peak = total
            pnl_history.append((bar_time, total))
            drawdown_history.append((bar_time, peak - total))

        metrics = compute_metrics([t.profit for t in trades], [p for _, p in pnl_history])
        logger.debug("Backtest: %d trades, total PnL %.8f", metrics.trades, metrics.total_pnl)
        return BacktestResult(
            metrics=metrics,
            trades=trades,
            pnl_history=pnl_history,
            drawdown_history=drawdown_history,
        )


def run_backtest(strategy: Strategy, candles: pd.DataFrame, fee_rate: float = 0.0, *, stake_size: float = 1.0) -> BacktestResult:
    """Single-pass backtest of `strategy` over `candles`."""
    return BacktestEngine(strategy, fee_rate, stake_size=stake_size).run(candles)
