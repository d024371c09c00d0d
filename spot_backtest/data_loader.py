"""
Load historical candles from CSV or DataFrame for backtesting.

Candles are OHLCV DataFrames with a DatetimeIndex named "datetime", the same
shape BrokerClient.get_candles returns.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import pandas as pd

OHLCV = ("open", "high", "low", "close", "volume")

_ALIASES = {
    "o": "open",
    "h": "high",
    "l": "low",
    "c": "close",
    "v": "volume",
    "vol": "volume",
    "time": "timestamp",
    "date": "timestamp",
    "datetime": "timestamp",
}


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Lowercase column names and map common aliases onto OHLCV/timestamp."""
    out = df.copy()
    out.columns = [str(c).lower().strip() for c in out.columns]
    return out.rename(columns={k: v for k, v in _ALIASES.items() if k in out.columns})


def _finish(out: pd.DataFrame, pair: str | None) -> pd.DataFrame:
    out = out.sort_index()
    out.index.name = "datetime"
    out = out[[c for c in OHLCV if c in out.columns]].astype(float)
    if "close" not in out.columns:
        raise ValueError("candles need a close column")
    if pair is not None:
        out.attrs["pair"] = pair
    return out


def normalize_candles(df: pd.DataFrame, *, pair: str | None = None) -> pd.DataFrame:
    """
    Normalize a raw frame into backtest candles.

    A timestamp-like column (timestamp/time/date/datetime) becomes the index;
    otherwise the existing index is parsed as datetimes. Epoch-millisecond
    integers, as exchanges commonly return them, are recognised.
    """
    out = _normalize_columns(df)
    if "timestamp" in out.columns:
        ts = out.pop("timestamp")
        out.index = _to_datetime(ts)
    elif not isinstance(out.index, pd.DatetimeIndex):
        out.index = _to_datetime(pd.Series(out.index))
    return _finish(out, pair)


def _to_datetime(values: pd.Series) -> pd.DatetimeIndex:
    if pd.api.types.is_integer_dtype(values):
        return pd.DatetimeIndex(pd.to_datetime(values, unit="ms"))
    return pd.DatetimeIndex(pd.to_datetime(values))


def load_candles(path: str | Path, *, pair: str | None = None) -> pd.DataFrame:
    """Read candles from a CSV file with a timestamp column and OHLCV columns."""
    return normalize_candles(pd.read_csv(path), pair=pair)


def candles_from_records(records: Iterable[Mapping[str, Any]], *, pair: str | None = None) -> pd.DataFrame:
    """Build candles from dicts with timestamp, open, high, low, close, volume keys."""
    return normalize_candles(pd.DataFrame(list(records)), pair=pair)


def candles_from_closes(
    closes: Iterable[float],
    *,
    start: str | pd.Timestamp = "2024-01-01",
    freq: str = "1min",
    pair: str | None = None,
) -> pd.DataFrame:
    """Flat candles (open=high=low=close, zero volume) from a close series."""
    values = [float(c) for c in closes]
    index = pd.date_range(start, periods=len(values), freq=freq)
    df = pd.DataFrame(
        {"open": values, "high": values, "low": values, "close": values, "volume": [0.0] * len(values)},
        index=index,
    )
    return _finish(df, pair)
