"""
Indicator strategies and combinators.
"""

from spot_core.strategies.bollinger import BollingerBandsStrategy
from spot_core.strategies.composite import CompositeStrategy, MultiTimeframeStrategy, indicator_family
from spot_core.strategies.macd import MACDStrategy
from spot_core.strategies.rsi import RSIStrategy, relative_strength_index
from spot_core.strategies.sma import SMAStrategy
from spot_core.strategies.threshold import ThresholdStrategy

__all__ = [
    "BollingerBandsStrategy",
    "CompositeStrategy",
    "MACDStrategy",
    "MultiTimeframeStrategy",
    "RSIStrategy",
    "SMAStrategy",
    "ThresholdStrategy",
    "indicator_family",
    "relative_strength_index",
]
