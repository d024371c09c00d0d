"""
Relative Strength Index.

Simple (non-smoothed) average gain/loss over the trailing `period` price changes.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Sequence

import numpy as np

from spot_core.config import Config
from spot_core.errors import InvalidStrategyParameters
from spot_core.market import MarketData, Signal
from spot_core.strategy import Strategy


def relative_strength_index(prices: Sequence[float], period: int) -> float | None:
    """
    RSI over the last `period` changes of `prices`.

    Returns None when fewer than period+1 prices are available or when the
    average loss is zero (RSI undefined rather than a spurious 100).
    """
    if period <= 0 or len(prices) <= period:
        return None
    window = np.asarray(prices[-(period + 1):], dtype=float)
    deltas = np.diff(window)
    avg_gain = float(deltas[deltas > 0].sum()) / period
    avg_loss = float(-deltas[deltas < 0].sum()) / period
    if avg_loss == 0:
        return None
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


class RSIStrategy(Strategy):
    """Sell when RSI >= overbought, buy when RSI <= oversold."""

    def __init__(self, period: int, overbought: float, oversold: float) -> None:
        if period <= 0:
            raise InvalidStrategyParameters(f"invalid RSI period: {period}")
        self.period = period
        self.overbought = overbought
        self.oversold = oversold
        self._prices: deque[float] = deque(maxlen=period + 1)

    def on_quote(self, data: MarketData, config: Config) -> Signal:
        self._prices.append(data.mid)
        rsi = relative_strength_index(list(self._prices), self.period)
        if rsi is None:
            return Signal.NONE
        if rsi >= self.overbought:
            return Signal.SELL
        if rsi <= self.oversold:
            return Signal.BUY
        return Signal.NONE
