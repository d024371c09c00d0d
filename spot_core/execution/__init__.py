"""
Execution layer: executor chain, broker abstraction, paper broker, tick driver.

Executors: SimulatedExecutor, LiveExecutor (innermost); SizingExecutor,
TWAPExecutor, VWAPExecutor, LoggingExecutor (decorators).
"""

from spot_core.execution.broker import BrokerClient
from spot_core.execution.decorators import LoggingExecutor, SizingExecutor
from spot_core.execution.engine import TickResult, TradingSession, run_strategy_tick
from spot_core.execution.executor import Executor, SimulatedExecutor
from spot_core.execution.live import LiveExecutor
from spot_core.execution.paper import PaperBrokerClient
from spot_core.execution.slicing import TWAPExecutor, VWAPExecutor
from spot_core.execution.types import LimitOrder, OrderBook, OrderBookLevel

__all__ = [
    "BrokerClient",
    "Executor",
    "LimitOrder",
    "LiveExecutor",
    "LoggingExecutor",
    "OrderBook",
    "OrderBookLevel",
    "PaperBrokerClient",
    "SimulatedExecutor",
    "SizingExecutor",
    "TWAPExecutor",
    "TickResult",
    "TradingSession",
    "VWAPExecutor",
    "run_strategy_tick",
]
