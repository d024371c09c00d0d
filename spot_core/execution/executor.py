"""
Executor interface and the simulated (paper PnL) executor.

Executors compose by wrapping: each decorator does its part and delegates to
an inner Executor; the innermost one places or simulates the order. Success
returns None; failures raise and travel up the chain unchanged.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod

from spot_core.config import Config
from spot_core.market import MarketData, Signal
from spot_core.risk import PositionLedger, check_position_limit

logger = logging.getLogger(__name__)


class Executor(ABC):
    """
    Turns a signal into orders. `cancel` is the session's cancellation token;
    executors that wait must observe it.
    """

    @abstractmethod
    def execute(
        self,
        signal: Signal,
        data: MarketData,
        config: Config,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        ...

    @abstractmethod
    def cancel_all(self, *, cancel: threading.Event | None = None) -> None:
        ...


class SimulatedExecutor(Executor):
    """
    Paper execution at mid-price with the full set of risk controls:
    cooldown, one open position, position limit on entry, PnL and drawdown on exit.

    Not thread-safe; use one instance per pair.
    """

    def __init__(self) -> None:
        self.ledger = PositionLedger()

    @property
    def position(self) -> float:
        return self.ledger.position

    @property
    def total_pnl(self) -> float:
        return self.ledger.total_pnl

    @property
    def max_drawdown_exceeded(self) -> bool:
        return self.ledger.max_drawdown_exceeded

    def execute(
        self,
        signal: Signal,
        data: MarketData,
        config: Config,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        ledger = self.ledger
        if ledger.in_cooldown(data.timestamp, config.cooldown):
            logger.debug("Signal %s ignored: inside cooldown", signal.value)
            return
        # A BUY rejected by the position limit does not start a cooldown.
        if signal is Signal.BUY and ledger.is_flat:
            check_position_limit(config.stake_size, config.position_limit)
        ledger.last_trade_time = data.timestamp

        price = data.mid
        if signal is Signal.BUY:
            if not ledger.is_flat:
                return
            ledger.open(config.stake_size, price)
            logger.debug("Simulated entry %.8f @ %.8f", config.stake_size, price)
        elif signal is Signal.SELL:
            if ledger.is_flat:
                return
            profit = ledger.close(price, config.max_drawdown)
            logger.debug("Simulated exit @ %.8f, profit %.8f, total %.8f", price, profit, ledger.total_pnl)

    def cancel_all(self, *, cancel: threading.Event | None = None) -> None:
        self.ledger.flatten()
