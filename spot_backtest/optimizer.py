"""
Threshold grid search.

For every (entry, exit) pair on an inclusive grid, run a simple breakout
simulation over the closes (enter when price exceeds the window's first close
by `entry`, exit when price falls `exit` below the entry price) and keep the
combination with the highest total PnL. Ties go to the first combination in
iteration order: entry ascending, then exit ascending.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pandas as pd

from spot_core.execution.broker import BrokerClient

logger = logging.getLogger(__name__)

GRID_COLUMNS = ["entry_threshold", "exit_threshold", "total_pnl", "trades", "wins", "win_rate"]


@dataclass(frozen=True)
class ThresholdResult:
    """Best thresholds for one pair."""

    pair: str
    entry_threshold: float
    exit_threshold: float
    total_pnl: float
    win_rate: float
    evaluated: int = 0


def grid_values(start: float, end: float, step: float) -> list[float]:
    """
    start, start+step, ... up to and including end. Values are computed as
    start + i·step (no accumulated float drift) and rounded to 12 places.
    """
    if step <= 0:
        raise ValueError(f"grid step must be positive, got {step}")
    if end < start:
        return []
    count = int(math.floor((end - start) / step + 1e-9)) + 1
    return [round(start + i * step, 12) for i in range(count)]


def simulate_thresholds(closes: Sequence[float], entry: float, exit_: float, fee_rate: float) -> tuple[float, int, int]:
    """Unit-stake breakout simulation. Returns (total_pnl, trades, wins)."""
    if not closes:
        return 0.0, 0, 0
    reference = closes[0]
    in_position = False
    entry_price = 0.0
    total = 0.0
    trades = 0
    wins = 0
    for price in closes:
        if not in_position and price > reference * (1 + entry):
            in_position = True
            entry_price = price
        if in_position and price < entry_price * (1 - exit_):
            profit = (price - entry_price) - (entry_price + price) * fee_rate
            total += profit
            trades += 1
            if profit > 0:
                wins += 1
            in_position = False
    return total, trades, wins


def evaluate_threshold_grid(
    closes: Sequence[float],
    fee_rate: float,
    grid_start: float,
    grid_end: float,
    grid_step: float,
) -> pd.DataFrame:
    """One row per (entry, exit) combination, in iteration order."""
    values = grid_values(grid_start, grid_end, grid_step)
    prices = [float(c) for c in closes]
    rows = []
    for entry in values:
        for exit_ in values:
            total, trades, wins = simulate_thresholds(prices, entry, exit_, fee_rate)
            rows.append(
                {
                    "entry_threshold": entry,
                    "exit_threshold": exit_,
                    "total_pnl": total,
                    "trades": trades,
                    "wins": wins,
                    "win_rate": wins / trades * 100.0 if trades else 0.0,
                }
            )
    return pd.DataFrame(rows, columns=GRID_COLUMNS)


def run_threshold_grid_search(
    candles: pd.DataFrame,
    fee_rate: float,
    grid_start: float,
    grid_end: float,
    grid_step: float,
    *,
    pair: str | None = None,
) -> ThresholdResult:
    """Best (entry, exit) thresholds over the candles' closes."""
    if candles.empty:
        raise ValueError("no candles to optimize over")
    grid = evaluate_threshold_grid(candles["close"].tolist(), fee_rate, grid_start, grid_end, grid_step)
    if grid.empty:
        raise ValueError(f"empty grid: start={grid_start}, end={grid_end}, step={grid_step}")
    # idxmax returns the first occurrence of the maximum, which is the tie-break we want.
    best = grid.loc[grid["total_pnl"].idxmax()]
    return ThresholdResult(
        pair=pair if pair is not None else candles.attrs.get("pair", ""),
        entry_threshold=float(best["entry_threshold"]),
        exit_threshold=float(best["exit_threshold"]),
        total_pnl=float(best["total_pnl"]),
        win_rate=float(best["win_rate"]),
        evaluated=len(grid),
    )


def optimize_thresholds(
    broker: BrokerClient,
    pairs: Sequence[str],
    since_minutes: int,
    fee_rate: float,
    grid_start: float,
    grid_end: float,
    grid_step: float,
    *,
    now: datetime | None = None,
) -> list[ThresholdResult]:
    """
    Grid-search each pair over its one-minute candles of the last `since_minutes`.
    Pairs with no candles, or whose candles cannot be fetched, are skipped.
    """
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(minutes=since_minutes)
    results: list[ThresholdResult] = []
    for pair in pairs:
        try:
            candles = broker.get_candles(pair, since, 60)
        except Exception as e:  # noqa: BLE001
            logger.warning("Skipping %s: candles unavailable: %s", pair, e)
            continue
        if candles.empty:
            logger.info("Skipping %s: no candles since %s", pair, since.isoformat())
            continue
        results.append(
            run_threshold_grid_search(candles, fee_rate, grid_start, grid_end, grid_step, pair=pair)
        )
    return results
