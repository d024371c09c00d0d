"""
Strategy combinators: unanimous composite and fast/slow multi-timeframe filter.
"""

from __future__ import annotations

from spot_core.config import Config
from spot_core.market import MarketData, Signal
from spot_core.strategy import Strategy
from spot_core.strategies.bollinger import BollingerBandsStrategy
from spot_core.strategies.macd import MACDStrategy
from spot_core.strategies.rsi import RSIStrategy
from spot_core.strategies.sma import SMAStrategy
from spot_core.strategies.threshold import ThresholdStrategy


class CompositeStrategy(Strategy):
    """
    AND gate over sub-strategies: BUY only if all say BUY, SELL only if all say SELL.
    Every sub-strategy sees every quote, so rolling windows stay in step.
    """

    def __init__(self, *strategies: Strategy) -> None:
        self.strategies: list[Strategy] = list(strategies)

    def on_quote(self, data: MarketData, config: Config) -> Signal:
        signals = [s.on_quote(data, config) for s in self.strategies]
        if not signals:
            return Signal.NONE
        if all(sig is Signal.BUY for sig in signals):
            return Signal.BUY
        if all(sig is Signal.SELL for sig in signals):
            return Signal.SELL
        return Signal.NONE


def indicator_family(config: Config, scale: int = 1) -> list[Strategy]:
    """SMA, threshold, RSI, MACD and Bollinger strategies with periods multiplied by `scale`."""
    return [
        SMAStrategy(config.short_window * scale, config.long_window * scale),
        ThresholdStrategy(),
        RSIStrategy(config.rsi_period * scale, config.rsi_overbought, config.rsi_oversold),
        MACDStrategy(
            config.macd_fast_period * scale,
            config.macd_slow_period * scale,
            config.macd_signal_period * scale,
        ),
        BollingerBandsStrategy(config.bb_period * scale, config.bb_multiplier),
    ]


class MultiTimeframeStrategy(Strategy):
    """Emit a signal only when the fast and slow strategies agree on it."""

    def __init__(self, fast: Strategy, slow: Strategy) -> None:
        self.fast = fast
        self.slow = slow

    @classmethod
    def from_config(cls, config: Config) -> MultiTimeframeStrategy:
        """Fast composite on configured periods, slow composite on doubled periods."""
        return cls(
            fast=CompositeStrategy(*indicator_family(config, 1)),
            slow=CompositeStrategy(*indicator_family(config, 2)),
        )

    def on_quote(self, data: MarketData, config: Config) -> Signal:
        fast = self.fast.on_quote(data, config)
        slow = self.slow.on_quote(data, config)
        if fast is slow:
            return fast
        return Signal.NONE
