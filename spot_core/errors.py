"""
Exception hierarchy for the signal-to-execution pipeline.

Construction errors fail fast in __init__; execution errors are raised by
executors and travel up the decorator chain unchanged.
"""


class SpotCoreError(Exception):
    """Base class for errors raised by spot_core."""


class InvalidStrategyParameters(SpotCoreError, ValueError):
    """Indicator periods or multipliers rejected at strategy construction."""


class ExecutionError(SpotCoreError):
    """An executor refused or failed to act on a signal."""


class PositionLimitError(ExecutionError):
    """Stake size exceeds the configured position limit."""

    def __init__(self, stake_size: float, position_limit: float) -> None:
        super().__init__(f"stake size {stake_size:.2f} > position limit {position_limit:.2f}")
        self.stake_size = stake_size
        self.position_limit = position_limit


class DrawdownExceededError(ExecutionError):
    """Cumulative drawdown breached the configured maximum. Position is already flat."""

    def __init__(self, max_drawdown: float, drawdown: float) -> None:
        super().__init__(f"max drawdown {max_drawdown:.2f} exceeded (drawdown {drawdown:.2f})")
        self.max_drawdown = max_drawdown
        self.drawdown = drawdown


class ExecutionCancelled(ExecutionError):
    """Cancellation token was set while waiting between slices."""


class BrokerError(SpotCoreError):
    """Broker collaborator failure (network, rejection, unknown pair)."""
