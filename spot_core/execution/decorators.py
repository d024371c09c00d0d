"""
Pass-through executor decorators: position sizing and activity logging.
"""

from __future__ import annotations

import logging
import threading

from spot_core.config import Config
from spot_core.market import MarketData, Signal
from spot_core.sizing import PositionSizer

from spot_core.execution.executor import Executor

logger = logging.getLogger(__name__)


class SizingExecutor(Executor):
    """Replace config.stake_size with the sizer's stake (on a copy), then delegate."""

    def __init__(self, inner: Executor, sizer: PositionSizer) -> None:
        self.inner = inner
        self.sizer = sizer

    def execute(
        self,
        signal: Signal,
        data: MarketData,
        config: Config,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        stake = self.sizer.size(config.initial_equity, config)
        self.inner.execute(signal, data, config.override(stake_size=stake), cancel=cancel)

    def cancel_all(self, *, cancel: threading.Event | None = None) -> None:
        self.inner.cancel_all(cancel=cancel)


class LoggingExecutor(Executor):
    """
    Log every call and every error, then re-raise the error unchanged.
    Purely observational: never alters control flow.
    """

    def __init__(
        self,
        inner: Executor,
        activity_logger: logging.Logger | None = None,
        error_logger: logging.Logger | None = None,
    ) -> None:
        self.inner = inner
        self.activity_logger = activity_logger or logger
        self.error_logger = error_logger or logger

    def execute(
        self,
        signal: Signal,
        data: MarketData,
        config: Config,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        self.activity_logger.info(
            "Execute: signal=%s, bid=%.8f, ask=%.8f, time=%s, cfg=%s",
            signal.value,
            data.bid,
            data.ask,
            data.timestamp.isoformat(),
            config.model_dump(mode="json"),
        )
        try:
            self.inner.execute(signal, data, config, cancel=cancel)
        except Exception as e:
            self.error_logger.error("Execute error: %s", e)
            raise

    def cancel_all(self, *, cancel: threading.Event | None = None) -> None:
        self.activity_logger.info("CancelAll")
        try:
            self.inner.cancel_all(cancel=cancel)
        except Exception as e:
            self.error_logger.error("CancelAll error: %s", e)
            raise
