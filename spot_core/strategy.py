"""
Strategy: interface for signal generation.

Strategies consume one quote at a time and emit exactly one Signal per call.
Rolling indicator state lives on the instance and is never shared, so each
traded pair needs its own strategy instance.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from spot_core.config import Config
    from spot_core.market import MarketData, Signal


class Strategy(ABC):
    """
    Base class for strategies. Called at most once per quote; must not block.
    Emits Signal.NONE while its window is still filling rather than raising.
    """

    @abstractmethod
    def on_quote(self, data: "MarketData", config: "Config") -> "Signal":
        """Advance internal state with this quote and return the resulting signal."""
        ...
