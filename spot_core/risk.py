"""
Position/PnL ledger with the risk invariants every executor relies on.

At most one open position; peak PnL never decreases; the drawdown flag is
sticky. One ledger per executor per pair: it is not safe for concurrent use.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from spot_core.errors import DrawdownExceededError, PositionLimitError


def check_position_limit(stake_size: float, position_limit: float) -> None:
    """Raise PositionLimitError if an entry of stake_size would breach the limit."""
    if stake_size > position_limit:
        raise PositionLimitError(stake_size, position_limit)


@dataclass
class PositionLedger:
    """Open position, realized PnL and drawdown state for one pair."""

    position: float = 0.0
    entry_price: float = 0.0
    total_pnl: float = 0.0
    peak_pnl: float = 0.0
    max_drawdown_exceeded: bool = False
    last_trade_time: datetime | None = None

    @property
    def is_flat(self) -> bool:
        return self.position == 0

    @property
    def drawdown(self) -> float:
        return self.peak_pnl - self.total_pnl

    def in_cooldown(self, now: datetime, cooldown: timedelta) -> bool:
        return self.last_trade_time is not None and now - self.last_trade_time < cooldown

    def open(self, size: float, price: float) -> None:
        if not self.is_flat:
            raise RuntimeError("ledger already holds a position")
        self.position = size
        self.entry_price = price

    def flatten(self) -> None:
        """Drop the open position without realizing PnL."""
        self.position = 0.0

    def close(self, price: float, max_drawdown: float) -> float:
        """
        Realize PnL at price and flatten. Returns the trade profit.

        Raises DrawdownExceededError (after flattening) if peak − total exceeds
        max_drawdown; the exceeded flag then stays set for the ledger's lifetime.
        """
        profit = (price - self.entry_price) * self.position
        self.total_pnl += profit
        if self.total_pnl > self.peak_pnl:
            self.peak_pnl = self.total_pnl
        self.position = 0.0
        drawdown = self.drawdown
        if drawdown > max_drawdown:
            self.max_drawdown_exceeded = True
            raise DrawdownExceededError(max_drawdown, drawdown)
        return profit
