"""
Multi-pair opportunity scan.

Each pair is analysed independently on a thread pool. A pair is dropped from
the results when its 24h volume is below `min_volume`, its spread is narrower
than the Bollinger volatility band, or the top of the bid book cannot absorb
config.stake_size. Surviving pairs count consecutive entry-threshold hits in a
ScanState owned by the caller; after `confirmations` hits in a row the pair is
flagged BUY unless RSI is overbought, the short SMA is not above the long SMA,
or the MACD histogram is not positive.

Candles and order books are optional inputs: when they cannot be fetched, or
there are too few candles for a filter, that filter is not applied.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import numpy as np
import pandas as pd

from spot_core.config import Config
from spot_core.market import MarketData, Signal

from spot_core.execution.broker import BrokerClient

logger = logging.getLogger(__name__)

# Bid levels summed by the depth check when the config does not say.
DEFAULT_DEPTH_LEVELS = 5


class ScanState:
    """Consecutive entry-threshold hits per pair. Safe to share across scan threads."""

    def __init__(self) -> None:
        self._hits: dict[str, int] = {}
        self._lock = threading.Lock()

    def record(self, pair: str, hit: bool) -> int:
        """Count a hit (or reset on a miss) and return the current streak."""
        with self._lock:
            count = self._hits.get(pair, 0) + 1 if hit else 0
            self._hits[pair] = count
            return count

    def hits(self, pair: str) -> int:
        with self._lock:
            return self._hits.get(pair, 0)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


@dataclass(frozen=True)
class ScanResult:
    pair: str
    signal: Signal
    consecutive_hits: int = 0
    bid: float = 0.0
    ask: float = 0.0
    rsi: float | None = None
    error: str | None = None

    @property
    def spread(self) -> float:
        return self.ask - self.bid


def scan_rsi(closes: Sequence[float], period: int) -> float | None:
    """
    RSI over the last period+1 closes, None with fewer. Unlike the strategy's
    RSI, a window with gains and no losses is 100 (fully overbought) and a
    flat window is neutral 50.
    """
    if period <= 0 or len(closes) <= period:
        return None
    deltas = np.diff(np.asarray(closes[-(period + 1):], dtype=float))
    gains = float(deltas[deltas > 0].sum())
    losses = float(-deltas[deltas < 0].sum())
    if losses == 0:
        return 100.0 if gains > 0 else 50.0
    return 100.0 - 100.0 / (1.0 + gains / losses)


def macd_histogram(closes: Sequence[float], fast: int, slow: int, signal: int) -> float:
    """Last MACD histogram value; EMAs seeded with the first close."""
    prices = pd.Series(closes, dtype=float)
    macd = prices.ewm(span=fast, adjust=False).mean() - prices.ewm(span=slow, adjust=False).mean()
    signal_line = macd.ewm(span=signal, adjust=False).mean()
    return float(macd.iloc[-1] - signal_line.iloc[-1])


def _lookback_minutes(config: Config) -> int:
    return max(
        config.bb_period + 1,
        config.rsi_period + 1,
        config.long_window + 1,
        max(config.macd_slow_period, config.macd_signal_period) + 1,
    )


def _fetch_closes(broker: BrokerClient, pair: str, config: Config, now: datetime) -> list[float]:
    since = now - timedelta(minutes=_lookback_minutes(config))
    try:
        candles = broker.get_candles(pair, since, 60)
    except Exception as e:  # noqa: BLE001
        logger.warning("Candles unavailable for %s, skipping candle filters: %s", pair, e)
        return []
    if candles.empty:
        return []
    return candles["close"].astype(float).tolist()


def _too_quiet(quote: MarketData, closes: list[float], config: Config) -> bool:
    """Spread narrower than bb_multiplier·σ of the last bb_period+1 closes."""
    if config.bb_period <= 1 or config.bb_multiplier <= 0 or len(closes) < config.bb_period + 1:
        return False
    sigma = float(np.std(closes[-(config.bb_period + 1):]))
    return quote.ask - quote.bid < sigma * config.bb_multiplier


def _too_shallow(broker: BrokerClient, pair: str, config: Config) -> bool:
    """Top bid levels hold less volume than one stake."""
    if config.stake_size <= 0:
        return False
    try:
        book = broker.get_order_book(pair)
    except Exception as e:  # noqa: BLE001
        logger.warning("Order book unavailable for %s, skipping depth check: %s", pair, e)
        return False
    levels = config.vwap_orderbook_depth_levels if config.vwap_orderbook_depth_levels > 0 else DEFAULT_DEPTH_LEVELS
    depth = sum(level.volume for level in book.bids[:levels])
    return depth < config.stake_size


def _trend_confirms(closes: list[float], config: Config) -> bool:
    """Short SMA strictly above long SMA; passes when there is not enough history."""
    short, long_ = config.short_window, config.long_window
    if short <= 0 or long_ <= 0 or len(closes) < long_:
        return True
    return float(np.mean(closes[-short:])) > float(np.mean(closes[-long_:]))


def _momentum_confirms(closes: list[float], config: Config) -> bool:
    """MACD histogram positive; passes when there is not enough history."""
    fast, slow, signal = config.macd_fast_period, config.macd_slow_period, config.macd_signal_period
    if fast <= 0 or slow <= 0 or signal <= 0:
        return True
    window = max(slow, signal) + 1
    if len(closes) < window:
        return True
    return macd_histogram(closes[-window:], fast, slow, signal) > 0


def _scan_one(
    broker: BrokerClient,
    pair: str,
    quote: MarketData,
    config: Config,
    state: ScanState,
    entry_threshold: float,
    confirmations: int,
    min_volume: float,
    now: datetime,
) -> ScanResult | None:
    """ScanResult for the pair, or None when a pre-filter drops it."""
    if min_volume > 0 and quote.volume_24h < min_volume:
        return None
    closes = _fetch_closes(broker, pair, config, now)
    if _too_quiet(quote, closes, config) or _too_shallow(broker, pair, config):
        return None

    hit = entry_threshold > 0 and quote.ask > quote.bid * (1 + entry_threshold)
    streak = state.record(pair, hit)
    if streak < confirmations:
        return ScanResult(pair=pair, signal=Signal.NONE, consecutive_hits=streak, bid=quote.bid, ask=quote.ask)

    rsi = scan_rsi(closes, config.rsi_period)
    confirmed = (
        (rsi is None or rsi <= config.rsi_overbought)
        and _trend_confirms(closes, config)
        and _momentum_confirms(closes, config)
    )
    return ScanResult(
        pair=pair,
        signal=Signal.BUY if confirmed else Signal.NONE,
        consecutive_hits=streak,
        bid=quote.bid,
        ask=quote.ask,
        rsi=rsi,
    )


def scan_pairs(
    broker: BrokerClient,
    pairs: Sequence[str],
    config: Config,
    state: ScanState,
    *,
    entry_threshold: float,
    confirmations: int = 2,
    min_volume: float = 0.0,
    max_workers: int = 4,
    now: datetime | None = None,
) -> list[ScanResult]:
    """
    Scan pairs concurrently. Results come back in the order of `pairs`, minus
    the pairs dropped by the volume, volatility and depth filters. An
    unexpected failure on one pair is reported on its result and does not stop
    the scan.
    """
    if not pairs:
        return []
    now = now or datetime.now(timezone.utc)
    quotes = broker.get_tickers(list(pairs))

    def work(pair: str) -> ScanResult | None:
        quote = quotes.get(pair)
        if quote is None:
            return ScanResult(pair=pair, signal=Signal.NONE, error="no quote")
        try:
            return _scan_one(broker, pair, quote, config, state, entry_threshold, confirmations, min_volume, now)
        except Exception as e:  # noqa: BLE001
            logger.warning("Scan of %s failed: %s", pair, e)
            return ScanResult(pair=pair, signal=Signal.NONE, consecutive_hits=state.hits(pair), error=str(e))

    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        return [r for r in pool.map(work, pairs) if r is not None]
