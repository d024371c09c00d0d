"""
Persistence of executed trades and their TWAP/VWAP slices.

TradeStore is the interface the VWAP executor writes through; SQLiteTradeStore
is the local implementation. Writes are synchronous and errors propagate.
"""

from __future__ import annotations

import logging
import sqlite3
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TradeRecord:
    """Parent order as persisted before slicing."""

    id: int
    timestamp: datetime
    pair: str
    side: str
    price: float
    volume: float


@dataclass(frozen=True)
class SliceRecord:
    """One executed slice of a trade."""

    id: int
    trade_id: int
    index: int
    size: float
    weight: float


class TradeStore(ABC):
    """Write trades/slices during execution; read them back for reporting."""

    @abstractmethod
    def save_trade(self, timestamp: datetime, pair: str, side: str, price: float, volume: float) -> int:
        """Insert a trade and return its id."""
        ...

    @abstractmethod
    def save_slice(self, trade_id: int, index: int, size: float, weight: float) -> None:
        ...

    @abstractmethod
    def list_trades(self) -> list[TradeRecord]:
        """All trades ordered by timestamp."""
        ...

    @abstractmethod
    def list_slices(self, trade_id: int) -> list[SliceRecord]:
        """Slices of one trade ordered by slice index."""
        ...


class SQLiteTradeStore(TradeStore):
    """
    SQLite-backed store. Pass ":memory:" for an ephemeral database.
    Foreign keys are enforced, so a slice for an unknown trade is rejected.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = str(path)
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(self.path, isolation_level=None, check_same_thread=False)
        self._conn.execute("PRAGMA foreign_keys=ON;")
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS trades (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              timestamp TEXT NOT NULL,
              pair TEXT NOT NULL,
              side TEXT NOT NULL,
              price REAL NOT NULL,
              volume REAL NOT NULL
            );
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS slices (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              trade_id INTEGER NOT NULL,
              slice_index INTEGER NOT NULL,
              size REAL NOT NULL,
              weight REAL NOT NULL,
              FOREIGN KEY (trade_id) REFERENCES trades(id)
            );
            """
        )
        self._conn.execute("CREATE INDEX IF NOT EXISTS idx_slices_trade ON slices(trade_id);")

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> SQLiteTradeStore:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def save_trade(self, timestamp: datetime, pair: str, side: str, price: float, volume: float) -> int:
        cur = self._conn.execute(
            "INSERT INTO trades(timestamp, pair, side, price, volume) VALUES (?, ?, ?, ?, ?)",
            (timestamp.isoformat(), pair, side, float(price), float(volume)),
        )
        trade_id = int(cur.lastrowid)
        logger.debug("Saved trade %d: %s %s %.8f @ %.8f", trade_id, pair, side, volume, price)
        return trade_id

    def save_slice(self, trade_id: int, index: int, size: float, weight: float) -> None:
        self._conn.execute(
            "INSERT INTO slices(trade_id, slice_index, size, weight) VALUES (?, ?, ?, ?)",
            (trade_id, index, float(size), float(weight)),
        )

    def list_trades(self) -> list[TradeRecord]:
        rows = self._conn.execute(
            "SELECT id, timestamp, pair, side, price, volume FROM trades ORDER BY timestamp, id"
        ).fetchall()
        return [
            TradeRecord(
                id=r[0],
                timestamp=datetime.fromisoformat(r[1]),
                pair=r[2],
                side=r[3],
                price=r[4],
                volume=r[5],
            )
            for r in rows
        ]

    def list_slices(self, trade_id: int) -> list[SliceRecord]:
        rows = self._conn.execute(
            "SELECT id, trade_id, slice_index, size, weight FROM slices WHERE trade_id = ? ORDER BY slice_index",
            (trade_id,),
        ).fetchall()
        return [SliceRecord(id=r[0], trade_id=r[1], index=r[2], size=r[3], weight=r[4]) for r in rows]
