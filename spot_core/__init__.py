"""
spot-core: signal-to-execution pipeline for a spot exchange.

Quote → Strategy → Signal → Executor chain. Broker, persistence and config
storage are interfaces; the HTTP layer and dashboard live elsewhere.
"""

__version__ = "0.1.0"

from spot_core.config import Config, ConfigStore, JSONConfigStore
from spot_core.errors import (
    BrokerError,
    DrawdownExceededError,
    ExecutionCancelled,
    ExecutionError,
    InvalidStrategyParameters,
    PositionLimitError,
    SpotCoreError,
)
from spot_core.market import MarketData, Side, Signal
from spot_core.risk import PositionLedger
from spot_core.sizing import FixedSizer, KellySizer, PositionSizer, build_sizer
from spot_core.strategy import Strategy

__all__ = [
    "BrokerError",
    "Config",
    "ConfigStore",
    "DrawdownExceededError",
    "ExecutionCancelled",
    "ExecutionError",
    "FixedSizer",
    "InvalidStrategyParameters",
    "JSONConfigStore",
    "KellySizer",
    "MarketData",
    "PositionLedger",
    "PositionLimitError",
    "PositionSizer",
    "Side",
    "Signal",
    "SpotCoreError",
    "Strategy",
    "build_sizer",
]
