"""
Market value types: quote snapshot, signal, order side.

Immutable. Produced by the broker (live ticker) or the backtester (candle close)
and consumed by every strategy call.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Signal(Enum):
    """Trading intent emitted once per quote by a strategy."""

    NONE = "none"
    BUY = "buy"
    SELL = "sell"

    @property
    def side(self) -> "Side":
        """Order side for BUY/SELL. NONE has no side."""
        if self is Signal.NONE:
            raise ValueError("Signal.NONE has no order side")
        return Side(self.value)


class Side(Enum):
    BUY = "buy"
    SELL = "sell"


@dataclass(frozen=True)
class MarketData:
    """
    Best bid/ask at an instant. Mid-price is the reference price everywhere.
    volume_24h is the rolling 24h base volume when the ticker feed provides it.
    """

    bid: float
    ask: float
    timestamp: datetime
    volume_24h: float = 0.0

    def __post_init__(self) -> None:
        if not isinstance(self.timestamp, datetime):
            object.__setattr__(self, "timestamp", datetime.fromisoformat(str(self.timestamp)))

    @property
    def mid(self) -> float:
        return (self.bid + self.ask) / 2

    @classmethod
    def from_price(cls, price: float, timestamp: datetime) -> MarketData:
        """Zero-spread quote, e.g. from a historical close."""
        return cls(bid=price, ask=price, timestamp=timestamp)
