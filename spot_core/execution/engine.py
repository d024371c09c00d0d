"""
Tick driver: quote → strategy → signal → executor chain.

run_strategy_tick is the single-tick entry point for the outer (API/UI) layer.
TradingSession repeats it on an interval for one pair until its cancellation
token is set; cancellation is honoured between ticks, and inside sliced
executions through the same token. Nothing here retries.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from spot_core.config import Config, ConfigStore
from spot_core.market import MarketData, Signal
from spot_core.strategy import Strategy

from spot_core.execution.broker import BrokerClient
from spot_core.execution.executor import Executor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TickResult:
    """Outcome of one tick. error is the executor's exception, if any."""

    signal: Signal
    data: MarketData
    error: Exception | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def message(self) -> str | None:
        return str(self.error) if self.error is not None else None


TickObserver = Callable[[TickResult], None]


def run_strategy_tick(
    strategy: Strategy,
    executor: Executor,
    data: MarketData,
    config: Config,
    *,
    cancel: threading.Event | None = None,
) -> TickResult:
    """
    Run one quote through strategy and executor chain. Executor errors are
    captured on the result (ok=False), never retried.
    """
    signal = strategy.on_quote(data, config)
    try:
        executor.execute(signal, data, config, cancel=cancel)
    except Exception as e:  # noqa: BLE001
        logger.warning("Tick for %s failed on %s: %s", config.pair, signal.value, e)
        return TickResult(signal=signal, data=data, error=e)
    return TickResult(signal=signal, data=data)


class TradingSession:
    """
    Periodic driver for one pair. Owns nothing shared: give each pair its own
    strategy and executor instances.

    config_source is a ConfigStore or a zero-argument callable; it is read on
    every tick so config changes take effect without a restart.
    """

    def __init__(
        self,
        strategy: Strategy,
        executor: Executor,
        broker: BrokerClient,
        config_source: ConfigStore | Callable[[], Config],
        *,
        observers: Sequence[TickObserver] = (),
    ) -> None:
        self.strategy = strategy
        self.executor = executor
        self.broker = broker
        self._config_source = config_source
        self.observers: list[TickObserver] = list(observers)
        self.ticks = 0

    def load_config(self) -> Config:
        if isinstance(self._config_source, ConfigStore):
            return self._config_source.load_config()
        return self._config_source()

    def run_once(self, *, cancel: threading.Event | None = None) -> TickResult:
        """Fetch the latest quote for the configured pair and run one tick."""
        config = self.load_config()
        data = self.broker.get_quote(config.pair)
        result = run_strategy_tick(self.strategy, self.executor, data, config, cancel=cancel)
        self.ticks += 1
        for obs in self.observers:
            obs(result)
        return result

    def run(
        self,
        interval_seconds: float,
        cancel: threading.Event,
        *,
        max_ticks: int | None = None,
    ) -> int:
        """
        Tick every interval_seconds until cancel is set (or max_ticks reached).
        A tick in progress always completes. Returns the number of ticks run.
        """
        ran = 0
        while not cancel.is_set():
            self.run_once(cancel=cancel)
            ran += 1
            if max_ticks is not None and ran >= max_ticks:
                break
            if cancel.wait(interval_seconds):
                break
        logger.info("Trading session stopped after %d tick(s)", ran)
        return ran

    def shutdown(self) -> None:
        """Cancel outstanding orders / flatten via the executor chain."""
        self.executor.cancel_all()
