"""
Simple moving average crossover.

Buy when the short SMA rises above the long SMA by more than entry_threshold,
sell when it falls below by more than exit_threshold.
"""

from __future__ import annotations

from collections import deque

from spot_core.config import Config
from spot_core.errors import InvalidStrategyParameters
from spot_core.market import MarketData, Signal
from spot_core.strategy import Strategy


class SMAStrategy(Strategy):
    """Running-sum SMA pair. Emits NONE until the long window is full."""

    def __init__(self, short_window: int, long_window: int) -> None:
        if short_window <= 0 or long_window <= 0 or short_window >= long_window:
            raise InvalidStrategyParameters(
                f"invalid SMA windows: short={short_window}, long={long_window}"
            )
        self.short_window = short_window
        self.long_window = long_window
        self._short: deque[float] = deque()
        self._long: deque[float] = deque()
        self._short_sum = 0.0
        self._long_sum = 0.0

    def on_quote(self, data: MarketData, config: Config) -> Signal:
        price = data.mid

        self._short.append(price)
        self._short_sum += price
        if len(self._short) > self.short_window:
            self._short_sum -= self._short.popleft()

        self._long.append(price)
        self._long_sum += price
        if len(self._long) > self.long_window:
            self._long_sum -= self._long.popleft()

        if len(self._long) < self.long_window:
            return Signal.NONE

        short_avg = self._short_sum / self.short_window
        long_avg = self._long_sum / self.long_window

        if short_avg > long_avg + config.entry_threshold:
            return Signal.BUY
        if short_avg < long_avg - config.exit_threshold:
            return Signal.SELL
        return Signal.NONE
