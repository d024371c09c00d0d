"""
MACD: fast EMA minus slow EMA, compared against an EMA of itself (signal line).
"""

from __future__ import annotations

from spot_core.config import Config
from spot_core.errors import InvalidStrategyParameters
from spot_core.market import MarketData, Signal
from spot_core.strategy import Strategy


def ema_alpha(period: int) -> float:
    """Standard EMA smoothing constant 2/(n+1)."""
    return 2.0 / (period + 1)


class MACDStrategy(Strategy):
    """
    First quote seeds both price EMAs and returns NONE. Afterwards:
    BUY if MACD > signal line, SELL if below, NONE on equality.
    """

    def __init__(self, fast_period: int, slow_period: int, signal_period: int) -> None:
        if fast_period <= 0 or slow_period <= 0 or signal_period <= 0:
            raise InvalidStrategyParameters(
                f"invalid MACD periods: fast={fast_period}, slow={slow_period}, signal={signal_period}"
            )
        self.fast_period = fast_period
        self.slow_period = slow_period
        self.signal_period = signal_period
        self._ema_fast = 0.0
        self._ema_slow = 0.0
        self._ema_signal = 0.0
        self._initialized = False

    @property
    def macd(self) -> float:
        return self._ema_fast - self._ema_slow

    @property
    def signal_line(self) -> float:
        return self._ema_signal

    def on_quote(self, data: MarketData, config: Config) -> Signal:
        price = data.mid
        if not self._initialized:
            self._ema_fast = price
            self._ema_slow = price
            self._ema_signal = 0.0
            self._initialized = True
            return Signal.NONE

        a_fast = ema_alpha(self.fast_period)
        a_slow = ema_alpha(self.slow_period)
        a_signal = ema_alpha(self.signal_period)
        self._ema_fast = a_fast * price + (1 - a_fast) * self._ema_fast
        self._ema_slow = a_slow * price + (1 - a_slow) * self._ema_slow
        macd = self.macd
        self._ema_signal = a_signal * macd + (1 - a_signal) * self._ema_signal

        if macd > self._ema_signal:
            return Signal.BUY
        if macd < self._ema_signal:
            return Signal.SELL
        return Signal.NONE
