"""
Paper broker: in-memory BrokerClient for simulation, demos and tests.

No exchange connection. Quotes, order books and candles are injected; limit
orders are acknowledged immediately and kept in an order log. Balances move as
if every order filled at its limit price.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Callable

import pandas as pd

from spot_core.errors import BrokerError
from spot_core.market import MarketData, Side

from spot_core.execution.broker import CANDLE_COLUMNS, BrokerClient
from spot_core.execution.types import LimitOrder, OrderBook

logger = logging.getLogger(__name__)


def _empty_candles() -> pd.DataFrame:
    df = pd.DataFrame(columns=list(CANDLE_COLUMNS), dtype=float)
    df.index = pd.DatetimeIndex([], name="datetime")
    return df


def split_pair(pair: str) -> tuple[str, str]:
    """Split e.g. XBTZAR into (XBT, ZAR). Three-letter codes unless a separator is present."""
    for sep in ("/", "-", "_"):
        if sep in pair:
            base, counter = pair.split(sep, 1)
            return base, counter
    return pair[:3], pair[3:]


class PaperBrokerClient(BrokerClient):
    """
    Simulated broker. Pass quote_source(pairs -> quotes) for a live-updating feed,
    or set quotes directly with set_quote(). Unknown pairs raise BrokerError.
    """

    def __init__(
        self,
        balances: dict[str, float] | None = None,
        *,
        quote_source: Callable[[list[str]], dict[str, MarketData]] | None = None,
    ) -> None:
        self._balances: dict[str, float] = dict(balances or {})
        self._quotes: dict[str, MarketData] = {}
        self._books: dict[str, OrderBook] = {}
        self._candles: dict[str, pd.DataFrame] = {}
        self._quote_source = quote_source
        self._order_log: list[LimitOrder] = []

    def set_quote(self, pair: str, quote: MarketData) -> None:
        self._quotes[pair] = quote

    def set_order_book(self, book: OrderBook) -> None:
        self._books[book.pair] = book

    def set_candles(self, pair: str, candles: pd.DataFrame) -> None:
        self._candles[pair] = candles.sort_index()

    def get_tickers(self, pairs: list[str]) -> dict[str, MarketData]:
        if self._quote_source is not None:
            return self._quote_source(pairs)
        missing = [p for p in pairs if p not in self._quotes]
        if missing:
            raise BrokerError(f"no quote for pair(s): {', '.join(missing)}")
        return {p: self._quotes[p] for p in pairs}

    def get_order_book(self, pair: str) -> OrderBook:
        book = self._books.get(pair)
        if book is None:
            raise BrokerError(f"no order book for pair {pair}")
        return book

    def get_candles(self, pair: str, since: datetime, duration_seconds: int) -> pd.DataFrame:
        df = self._candles.get(pair)
        if df is None or df.empty:
            return _empty_candles()
        since_ts = pd.Timestamp(since)
        if df.index.tz is None and since_ts.tz is not None:
            since_ts = since_ts.tz_convert(None)
        elif df.index.tz is not None and since_ts.tz is None:
            since_ts = since_ts.tz_localize(df.index.tz)
        return df[df.index >= since_ts]

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
        if price <= 0 or volume < 0:
            raise BrokerError(f"invalid order: price={price}, volume={volume}")
        order_id = f"paper-{uuid.uuid4().hex[:12]}"
        base, counter = split_pair(pair)
        if side == Side.BUY:
            self._balances[counter] = self._balances.get(counter, 0.0) - price * volume
            self._balances[base] = self._balances.get(base, 0.0) + volume
        else:
            self._balances[base] = self._balances.get(base, 0.0) - volume
            self._balances[counter] = self._balances.get(counter, 0.0) + price * volume
        self._order_log.append(
            LimitOrder(
                pair=pair,
                side=side,
                price=price,
                volume=volume,
                base_account_id=base_account_id,
                counter_account_id=counter_account_id,
                client_order_id=client_order_id,
                order_id=order_id,
                timestamp=datetime.now(),
            )
        )
        logger.info("Paper order %s: %s %s %.8f @ %.8f", order_id, side.value, pair, volume, price)
        return order_id

    def get_balances(self) -> dict[str, float]:
        return dict(self._balances)

    def get_order_log(self) -> list[LimitOrder]:
        """All orders posted so far, oldest first."""
        return list(self._order_log)
