"""
Bollinger Bands mean reversion: sell above the upper band, buy below the lower.
"""

from __future__ import annotations

from collections import deque

import numpy as np

from spot_core.config import Config
from spot_core.errors import InvalidStrategyParameters
from spot_core.market import MarketData, Signal
from spot_core.strategy import Strategy


class BollingerBandsStrategy(Strategy):
    """Bands are mean ± multiplier·σ over the last `period` mids (population σ)."""

    def __init__(self, period: int, multiplier: float) -> None:
        if period <= 0 or multiplier <= 0:
            raise InvalidStrategyParameters(
                f"invalid Bollinger Bands parameters: period={period}, multiplier={multiplier}"
            )
        self.period = period
        self.multiplier = multiplier
        self._prices: deque[float] = deque(maxlen=period)

    def bands(self) -> tuple[float, float, float] | None:
        """(lower, mean, upper) for the current window, or None while filling."""
        if len(self._prices) < self.period:
            return None
        window = np.fromiter(self._prices, dtype=float)
        mean = float(window.mean())
        sigma = float(window.std())
        return mean - self.multiplier * sigma, mean, mean + self.multiplier * sigma

    def on_quote(self, data: MarketData, config: Config) -> Signal:
        price = data.mid
        self._prices.append(price)
        bands = self.bands()
        if bands is None:
            return Signal.NONE
        lower, _, upper = bands
        if price > upper:
            return Signal.SELL
        if price < lower:
            return Signal.BUY
        return Signal.NONE
