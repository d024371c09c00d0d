"""
Execution-layer types: order book snapshot and placed limit orders.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from spot_core.market import Side


@dataclass(frozen=True)
class OrderBookLevel:
    price: float
    volume: float


@dataclass(frozen=True)
class OrderBook:
    """
    Depth snapshot. Bids sorted by price descending, asks ascending
    (best level first on both sides).
    """

    pair: str
    bids: list[OrderBookLevel] = field(default_factory=list)
    asks: list[OrderBookLevel] = field(default_factory=list)

    def side_for(self, side: Side) -> list[OrderBookLevel]:
        """Levels a taker on `side` would consume: asks for BUY, bids for SELL."""
        return self.asks if side == Side.BUY else self.bids

    @property
    def best_bid(self) -> float | None:
        return self.bids[0].price if self.bids else None

    @property
    def best_ask(self) -> float | None:
        return self.asks[0].price if self.asks else None


@dataclass(frozen=True)
class LimitOrder:
    """A limit order as sent to the broker. client_order_id makes retries idempotent."""

    pair: str
    side: Side
    price: float
    volume: float
    base_account_id: int
    counter_account_id: int
    client_order_id: str
    order_id: str | None = None
    timestamp: datetime | None = None
