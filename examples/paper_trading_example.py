"""
Paper trading example: the full executor chain against the paper broker.

Shows: TradingSession ticking a strategy, Logging → Sizing → VWAP → Simulated
executors, slices persisted to SQLite, an observer printing each tick.
"""

from __future__ import annotations

import logging
import math
import threading
from datetime import datetime, timedelta

from spot_core import Config, MarketData, build_sizer
from spot_core.execution import (
    LoggingExecutor,
    OrderBook,
    OrderBookLevel,
    PaperBrokerClient,
    SimulatedExecutor,
    SizingExecutor,
    TickResult,
    TradingSession,
    VWAPExecutor,
)
from spot_core.storage import SQLiteTradeStore
from spot_core.strategies import SMAStrategy


def print_tick_observer(result: TickResult) -> None:
    status = "ok" if result.ok else f"error: {result.message}"
    print(f"  [Tick] {result.data.timestamp:%H:%M:%S} mid={result.data.mid:.2f} {result.signal.value} ({status})")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    config = Config(
        pair="XBTZAR",
        stake_size=0.02,
        position_limit=0.05,
        max_drawdown=50_000.0,
        short_window=3,
        long_window=6,
        initial_equity=0.1,
        position_sizer_type="kelly",
        kelly_win_prob=0.55,
        kelly_win_loss_ratio=1.5,
        twap_slices=3,
        vwap_source="orderbook",
        vwap_orderbook_depth_levels=3,
    )

    # Synthetic feed: one quote per tick along a sine wave.
    start = datetime(2024, 1, 1, 12, 0, 0)
    tick = {"i": 0}

    def quote_source(pairs: list[str]) -> dict[str, MarketData]:
        i = tick["i"]
        tick["i"] += 1
        mid = 1_000_000.0 + 20_000.0 * math.sin(i / 3)
        ts = start + timedelta(seconds=i)
        return {p: MarketData(bid=mid - 500, ask=mid + 500, timestamp=ts) for p in pairs}

    broker = PaperBrokerClient({"ZAR": 100_000.0}, quote_source=quote_source)
    broker.set_order_book(
        OrderBook(
            pair=config.pair,
            bids=[OrderBookLevel(999_000.0, 0.2), OrderBookLevel(998_000.0, 0.5)],
            asks=[OrderBookLevel(1_001_000.0, 0.1), OrderBookLevel(1_002_000.0, 0.3), OrderBookLevel(1_003_000.0, 0.6)],
        )
    )

    simulated = SimulatedExecutor()
    with SQLiteTradeStore(":memory:") as store:
        executor = LoggingExecutor(
            SizingExecutor(
                VWAPExecutor.from_config(simulated, broker, config, store=store),
                build_sizer(config),
            )
        )
        session = TradingSession(
            SMAStrategy(config.short_window, config.long_window),
            executor,
            broker,
            lambda: config,
            observers=[print_tick_observer],
        )

        print("--- Paper trading: 30 ticks ---")
        session.run(0.0, threading.Event(), max_ticks=30)
        session.shutdown()

        print(f"\nRealized PnL: {simulated.total_pnl:,.2f} ZAR")
        for trade in store.list_trades():
            sizes = ", ".join(f"{s.size:.6f}" for s in store.list_slices(trade.id))
            print(f"  Trade {trade.id}: {trade.side} {trade.volume:.6f} @ {trade.price:.2f} slices=[{sizes}]")


if __name__ == "__main__":
    main()
