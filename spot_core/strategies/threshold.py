"""
Spread threshold strategy. Stateless: reads entry/exit thresholds from config.
"""

from spot_core.config import Config
from spot_core.market import MarketData, Signal
from spot_core.strategy import Strategy


class ThresholdStrategy(Strategy):
    """BUY when ask > bid·(1+entry), SELL when bid < ask·(1−exit). Zero thresholds disable a side."""

    def on_quote(self, data: MarketData, config: Config) -> Signal:
        if config.entry_threshold > 0 and data.ask > data.bid * (1 + config.entry_threshold):
            return Signal.BUY
        if config.exit_threshold > 0 and data.bid < data.ask * (1 - config.exit_threshold):
            return Signal.SELL
        return Signal.NONE
