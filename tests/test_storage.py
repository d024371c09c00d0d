"""
Tests for SQLiteTradeStore.
"""

import sqlite3
from datetime import datetime

import pytest

from spot_core.storage import SQLiteTradeStore


def test_save_and_list_trades_ordered_by_time():
    with SQLiteTradeStore(":memory:") as store:
        later = store.save_trade(datetime(2024, 1, 2), "XBTZAR", "sell", 110.0, 1.0)
        earlier = store.save_trade(datetime(2024, 1, 1), "ETHZAR", "buy", 50.0, 2.0)
        trades = store.list_trades()
    assert [t.id for t in trades] == [earlier, later]
    assert trades[0].timestamp == datetime(2024, 1, 1)
    assert trades[0].pair == "ETHZAR"


def test_slices_belong_to_trade():
    with SQLiteTradeStore(":memory:") as store:
        trade_id = store.save_trade(datetime(2024, 1, 1), "XBTZAR", "buy", 100.0, 1.0)
        store.save_slice(trade_id, 1, 0.6, 0.6)
        store.save_slice(trade_id, 0, 0.4, 0.4)
        slices = store.list_slices(trade_id)
    assert [s.index for s in slices] == [0, 1]
    assert slices[0].size == 0.4
    assert slices[1].trade_id == trade_id


def test_slice_for_unknown_trade_rejected():
    with SQLiteTradeStore(":memory:") as store:
        with pytest.raises(sqlite3.IntegrityError):
            store.save_slice(999, 0, 1.0, 1.0)


def test_file_store_persists(tmp_path):
    path = tmp_path / "data" / "trades.sqlite3"
    with SQLiteTradeStore(path) as store:
        store.save_trade(datetime(2024, 1, 1), "XBTZAR", "buy", 100.0, 1.0)
    with SQLiteTradeStore(path) as store:
        assert len(store.list_trades()) == 1
