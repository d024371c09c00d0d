"""
Live executor: places real limit orders through a BrokerClient.

Mirrors the simulated executor's entry/exit rules (one position, position
limit) but tracks only the open position; PnL comes from the exchange.
Broker errors propagate unchanged and leave the position as it was.
"""

from __future__ import annotations

import logging
import threading
import uuid

from spot_core.config import Config
from spot_core.market import MarketData, Side, Signal
from spot_core.risk import PositionLedger, check_position_limit

from spot_core.execution.broker import BrokerClient
from spot_core.execution.executor import Executor

logger = logging.getLogger(__name__)


def new_client_order_id() -> str:
    return str(uuid.uuid4())


class LiveExecutor(Executor):
    """
    BUY while flat posts a bid at mid for config.stake_size; SELL while
    positioned posts an ask at mid for the whole position. Other combinations
    are no-ops. Not thread-safe; one instance per pair.
    """

    def __init__(self, broker: BrokerClient) -> None:
        self.broker = broker
        self.ledger = PositionLedger()

    @property
    def position(self) -> float:
        return self.ledger.position

    def execute(
        self,
        signal: Signal,
        data: MarketData,
        config: Config,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        price = data.mid
        if signal is Signal.BUY:
            if not self.ledger.is_flat:
                return
            check_position_limit(config.stake_size, config.position_limit)
            order_id = self._post(config, Side.BUY, price, config.stake_size)
            self.ledger.open(config.stake_size, price)
            logger.info("Live entry %s: %s %.8f @ %.8f", order_id, config.pair, config.stake_size, price)
        elif signal is Signal.SELL:
            if self.ledger.is_flat:
                return
            volume = self.ledger.position
            order_id = self._post(config, Side.SELL, price, volume)
            self.ledger.flatten()
            logger.info("Live exit %s: %s %.8f @ %.8f", order_id, config.pair, volume, price)

    def _post(self, config: Config, side: Side, price: float, volume: float) -> str:
        return self.broker.post_limit_order(
            pair=config.pair,
            side=side,
            price=price,
            volume=volume,
            base_account_id=config.base_account_id,
            counter_account_id=config.counter_account_id,
            client_order_id=new_client_order_id(),
        )

    def cancel_all(self, *, cancel: threading.Event | None = None) -> None:
        # Limit orders are fire-and-forget here; nothing is tracked to cancel.
        logger.debug("LiveExecutor.cancel_all: no outstanding orders tracked")
