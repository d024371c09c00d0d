"""
Broker abstraction layer.

BrokerClient ABC: tickers, order book, candles, limit orders, balances.
Calls are synchronous from the pipeline's point of view; failures raise
BrokerError (or the adapter's own exception) and are never retried here.
Retries belong to the adapter and must reuse the client order id.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING

from spot_core.market import MarketData, Side

from spot_core.execution.types import OrderBook

if TYPE_CHECKING:
    import pandas as pd


# Candle frames: DatetimeIndex named "datetime", these columns.
CANDLE_COLUMNS = ("open", "high", "low", "close", "volume")


class BrokerClient(ABC):
    """
    Abstract exchange client. Implementations: PaperBrokerClient (in this
    package) and exchange-specific adapters outside the core.
    """

    @abstractmethod
    def get_tickers(self, pairs: list[str]) -> dict[str, MarketData]:
        """Latest best bid/ask per pair."""
        ...

    @abstractmethod
    def get_order_book(self, pair: str) -> OrderBook:
        ...

    @abstractmethod
    def get_candles(self, pair: str, since: datetime, duration_seconds: int) -> "pd.DataFrame":
        """
        Candles of `duration_seconds` starting at or after `since`, oldest first.
        DataFrame with DatetimeIndex and columns open, high, low, close, volume.
        """
        ...

    @abstractmethod
    def post_limit_order(
        self,
        pair: str,
        side: Side,
        price: float,
        volume: float,
        base_account_id: int,
        counter_account_id: int,
        client_order_id: str,
    ) -> str:
        """Place a limit order; return the broker's order id."""
        ...

    @abstractmethod
    def get_balances(self) -> dict[str, float]:
        """Available balance per asset."""
        ...

    def get_quote(self, pair: str) -> MarketData:
        """Latest quote for a single pair."""
        return self.get_tickers([pair])[pair]
