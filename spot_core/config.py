"""
Config: the per-call parameter bundle for strategies, sizing and execution.

Validated with pydantic and frozen; executors override fields for a single call
via Config.override(), which returns a copy. ConfigStore persists it as JSON.
"""

from __future__ import annotations

import json
import logging
import os
import re
from abc import ABC, abstractmethod
from datetime import timedelta
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

logger = logging.getLogger(__name__)

# Environment variable naming the JSON config file used by JSONConfigStore().
CONFIG_PATH_ENV = "SPOT_CORE_CONFIG"
DEFAULT_CONFIG_PATH = "config/config.json"

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?)(ns|us|µs|ms|h|m|s)")
_DURATION_UNITS = {
    "h": 3600.0,
    "m": 60.0,
    "s": 1.0,
    "ms": 1e-3,
    "us": 1e-6,
    "µs": 1e-6,
    "ns": 1e-9,
}


def parse_duration(text: str) -> timedelta:
    """Parse a Go-style duration string ("30s", "1m30s", "250ms"). Bare numbers are seconds."""
    s = text.strip()
    if not s:
        raise ValueError("empty duration")
    try:
        return timedelta(seconds=float(s))
    except ValueError:
        pass
    pos = 0
    seconds = 0.0
    for m in _DURATION_PART.finditer(s):
        if m.start() != pos:
            break
        seconds += float(m.group(1)) * _DURATION_UNITS[m.group(2)]
        pos = m.end()
    if pos != len(s):
        raise ValueError(f"invalid duration {text!r}")
    return timedelta(seconds=seconds)


def format_duration(value: timedelta) -> str:
    """Inverse of parse_duration at millisecond resolution, e.g. "1m30s"."""
    total_ms = round(value.total_seconds() * 1000)
    if total_ms == 0:
        return "0s"
    if total_ms < 1000:
        return f"{total_ms}ms"
    hours, rem = divmod(total_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if rem:
        parts.append(f"{rem / 1000:g}s")
    return "".join(parts)


class Config(BaseModel):
    """
    Trading parameters. One instance is passed to every strategy and executor call.
    Field names match the JSON keys of the config file.
    """

    pair: str = "XBTZAR"
    entry_threshold: float = 0.0
    exit_threshold: float = 0.0
    stake_size: float = 0.0
    cooldown: timedelta = timedelta(0)
    position_limit: float = 0.0
    max_drawdown: float = 0.0

    # SMA
    short_window: int = 5
    long_window: int = 10

    # Broker accounts
    base_account_id: int = 0
    counter_account_id: int = 0

    # RSI
    rsi_period: int = 14
    rsi_overbought: float = 70.0
    rsi_oversold: float = 30.0

    # MACD
    macd_fast_period: int = 12
    macd_slow_period: int = 26
    macd_signal_period: int = 9

    # Bollinger Bands
    bb_period: int = 20
    bb_multiplier: float = 2.0

    # Sizing
    initial_equity: float = 0.0
    position_sizer_type: Literal["fixed", "kelly"] = "fixed"
    kelly_win_prob: float = 0.5
    kelly_win_loss_ratio: float = 1.0

    # Slicing
    twap_slices: int = Field(default=1, ge=0)
    twap_interval_seconds: float = Field(default=0.0, ge=0)
    vwap_source: Optional[Literal["historical", "orderbook", "hybrid"]] = None
    vwap_history_window_minutes: int = 60
    vwap_orderbook_depth_levels: int = 10
    vwap_hybrid_weight: float = Field(default=0.5, ge=0.0, le=1.0)

    db_path: str = "spot_core.sqlite3"

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("cooldown", mode="before")
    @classmethod
    def _parse_cooldown(cls, v: Any) -> Any:
        if isinstance(v, str):
            return parse_duration(v)
        if isinstance(v, (int, float)):
            return timedelta(seconds=v)
        return v

    @field_validator("position_sizer_type", mode="before")
    @classmethod
    def _default_sizer(cls, v: Any) -> Any:
        if v is None or v == "":
            return "fixed"
        return str(v).strip().lower()

    @field_validator("vwap_source", mode="before")
    @classmethod
    def _blank_source(cls, v: Any) -> Any:
        if v is None or v == "":
            return None
        return str(v).strip().lower()

    @model_validator(mode="after")
    def _non_negative_cooldown(self) -> Config:
        if self.cooldown < timedelta(0):
            raise ValueError("cooldown must not be negative")
        return self

    @field_serializer("cooldown")
    def _serialize_cooldown(self, v: timedelta) -> str:
        return format_duration(v)

    @property
    def slice_interval(self) -> timedelta:
        return timedelta(seconds=self.twap_interval_seconds)

    def override(self, **changes: Any) -> Config:
        """Copy with the given fields replaced. Self is left untouched."""
        return self.model_copy(update=changes)


class ConfigStore(ABC):
    """Load/save Config. The pipeline only reads; writes come from the outer layer."""

    @abstractmethod
    def load_config(self) -> Config:
        ...

    @abstractmethod
    def save_config(self, config: Config) -> None:
        ...


class JSONConfigStore(ConfigStore):
    """Config persisted as a single JSON object with snake_case keys."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path or os.environ.get(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH))

    def load_config(self) -> Config:
        with self.path.open("r", encoding="utf-8") as fh:
            raw = json.load(fh)
        config = Config.model_validate(raw)
        logger.debug("Loaded config for %s from %s", config.pair, self.path)
        return config

    def save_config(self, config: Config) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as fh:
            json.dump(config.model_dump(mode="json"), fh, indent=2)
        logger.debug("Saved config for %s to %s", config.pair, self.path)
