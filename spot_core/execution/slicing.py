"""
Sliced execution: TWAP (equal slices) and VWAP (volume-weighted slices).

Both split config.stake_size into N child executions on the inner executor,
waiting `interval` between slices (not after the last). The wait observes the
cancellation token; an error on any slice aborts the remaining ones.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone

import numpy as np

from spot_core.config import Config
from spot_core.errors import ExecutionCancelled
from spot_core.market import MarketData, Side, Signal
from spot_core.storage import TradeStore

from spot_core.execution.broker import BrokerClient
from spot_core.execution.executor import Executor

logger = logging.getLogger(__name__)

# Candle resolution used for historical volume profiles.
HISTORY_CANDLE_SECONDS = 60


def equal_weights(n: int) -> list[float]:
    return [1.0 / n] * n


def bucket_weights(volumes: Sequence[float], n: int) -> list[float]:
    """
    Partition `volumes` into n contiguous buckets and return each bucket's share
    of the total. Bucket i covers [floor(i·m/n), floor((i+1)·m/n)). Falls back to
    equal weights when there is no volume at all.
    """
    vols = np.asarray(volumes, dtype=float)
    m = len(vols)
    total = float(vols.sum()) if m else 0.0
    if m == 0 or total <= 0:
        return equal_weights(n)
    idx = np.arange(n + 1)
    edges = (idx * m) // n
    edges[-1] = m
    cumulative = np.concatenate(([0.0], np.cumsum(vols)))
    sums = cumulative[edges[1:]] - cumulative[edges[:-1]]
    return [float(s / total) for s in sums]


def historical_weights(
    broker: BrokerClient,
    pair: str,
    window_minutes: int,
    n: int,
    now: datetime | None = None,
) -> list[float]:
    """Weights from per-minute candle volumes over the trailing window."""
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(minutes=window_minutes)
    try:
        candles = broker.get_candles(pair, since, HISTORY_CANDLE_SECONDS)
    except Exception as e:  # noqa: BLE001
        logger.warning("Historical volume unavailable for %s, using equal weights: %s", pair, e)
        return equal_weights(n)
    if candles is None or candles.empty or "volume" not in candles.columns:
        return equal_weights(n)
    return bucket_weights(candles["volume"].astype(float).tolist(), n)


def orderbook_weights(
    broker: BrokerClient,
    pair: str,
    side: Side,
    depth_levels: int,
    n: int,
) -> list[float]:
    """Weights from the top `depth_levels` levels on the side the order would take."""
    try:
        book = broker.get_order_book(pair)
    except Exception as e:  # noqa: BLE001
        logger.warning("Order book unavailable for %s, using equal weights: %s", pair, e)
        return equal_weights(n)
    levels = book.side_for(side)
    if depth_levels > 0:
        levels = levels[:depth_levels]
    return bucket_weights([lvl.volume for lvl in levels], n)


def hybrid_weights(historical: Sequence[float], orderbook: Sequence[float], weight: float) -> list[float]:
    """Per-slice blend: weight·historical + (1−weight)·orderbook."""
    return [weight * h + (1 - weight) * b for h, b in zip(historical, orderbook)]


def _seconds(interval: timedelta | float) -> float:
    if isinstance(interval, timedelta):
        return interval.total_seconds()
    return float(interval)


class _SlicingExecutor(Executor):
    def __init__(self, inner: Executor, slices: int, interval: timedelta | float) -> None:
        self.inner = inner
        self.slices = max(1, int(slices))
        self.interval = _seconds(interval)

    def _wait(self, cancel: threading.Event | None) -> None:
        if cancel is None:
            if self.interval > 0:
                time.sleep(self.interval)
            return
        if cancel.wait(self.interval):
            raise ExecutionCancelled("execution cancelled between slices")

    def cancel_all(self, *, cancel: threading.Event | None = None) -> None:
        self.inner.cancel_all(cancel=cancel)


class TWAPExecutor(_SlicingExecutor):
    """Equal slices of config.stake_size every `interval`."""

    @classmethod
    def from_config(cls, inner: Executor, config: Config) -> TWAPExecutor:
        return cls(inner, config.twap_slices, config.slice_interval)

    def execute(
        self,
        signal: Signal,
        data: MarketData,
        config: Config,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        if signal is Signal.NONE:
            return
        logger.info("TWAP: executing %d slices every %.3fs", self.slices, self.interval)
        slice_config = config.override(stake_size=config.stake_size / self.slices)
        for i in range(self.slices):
            self.inner.execute(signal, data, slice_config, cancel=cancel)
            if i < self.slices - 1:
                self._wait(cancel)


class VWAPExecutor(_SlicingExecutor):
    """
    Volume-weighted slices. Weight source is config.vwap_source: "historical"
    (trailing candle volume), "orderbook" (depth on the taken side) or "hybrid";
    anything else, or an unavailable source, gives equal weights.

    With a store, the parent trade is saved before the first slice and each
    slice after it executes; a store failure aborts the remaining slices.
    """

    def __init__(
        self,
        inner: Executor,
        broker: BrokerClient,
        slices: int,
        interval: timedelta | float,
        store: TradeStore | None = None,
    ) -> None:
        super().__init__(inner, slices, interval)
        self.broker = broker
        self.store = store

    @classmethod
    def from_config(
        cls,
        inner: Executor,
        broker: BrokerClient,
        config: Config,
        store: TradeStore | None = None,
    ) -> VWAPExecutor:
        return cls(inner, broker, config.twap_slices, config.slice_interval, store)

    def weights(self, signal: Signal, config: Config) -> list[float]:
        n = self.slices
        source = config.vwap_source
        if source == "historical":
            return historical_weights(self.broker, config.pair, config.vwap_history_window_minutes, n)
        if source == "orderbook":
            return orderbook_weights(self.broker, config.pair, signal.side, config.vwap_orderbook_depth_levels, n)
        if source == "hybrid":
            hist = historical_weights(self.broker, config.pair, config.vwap_history_window_minutes, n)
            book = orderbook_weights(self.broker, config.pair, signal.side, config.vwap_orderbook_depth_levels, n)
            return hybrid_weights(hist, book, config.vwap_hybrid_weight)
        return equal_weights(n)

    def execute(
        self,
        signal: Signal,
        data: MarketData,
        config: Config,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        if signal is Signal.NONE:
            return
        weights = self.weights(signal, config)
        logger.info(
            "VWAP: executing %d slices every %.3fs (source=%s, weights=%s)",
            self.slices,
            self.interval,
            config.vwap_source or "equal",
            ", ".join(f"{w:.4f}" for w in weights),
        )

        trade_id: int | None = None
        if self.store is not None:
            trade_id = self.store.save_trade(data.timestamp, config.pair, signal.value, data.mid, config.stake_size)

        for i, weight in enumerate(weights):
            size = config.stake_size * weight
            if size > 0:
                self.inner.execute(signal, data, config.override(stake_size=size), cancel=cancel)
            else:
                logger.debug("VWAP: slice %d has zero weight, nothing sent", i)
            if self.store is not None and trade_id is not None:
                self.store.save_slice(trade_id, i, size, weight)
            if i < self.slices - 1:
                self._wait(cancel)
