"""
Position sizing: turn equity and config into a stake amount.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from spot_core.config import Config


class PositionSizer(ABC):
    """Decides how much to stake on the next entry."""

    @abstractmethod
    def size(self, equity: float, config: Config) -> float:
        ...


class FixedSizer(PositionSizer):
    """Always config.stake_size."""

    def size(self, equity: float, config: Config) -> float:
        return config.stake_size


class KellySizer(PositionSizer):
    """
    Kelly fraction f = p − (1−p)/b of equity, clamped to [0, config.stake_size].
    The stake size is a hard ceiling however optimistic p and b are.
    """

    def __init__(self, win_prob: float, win_loss_ratio: float) -> None:
        if not 0.0 <= win_prob <= 1.0:
            raise ValueError(f"win probability must be in [0, 1], got {win_prob}")
        if win_loss_ratio <= 0:
            raise ValueError(f"win/loss ratio must be positive, got {win_loss_ratio}")
        self.win_prob = win_prob
        self.win_loss_ratio = win_loss_ratio

    @property
    def fraction(self) -> float:
        return self.win_prob - (1.0 - self.win_prob) / self.win_loss_ratio

    def size(self, equity: float, config: Config) -> float:
        return max(0.0, min(self.fraction * equity, config.stake_size))


def build_sizer(config: Config) -> PositionSizer:
    """Sizer named by config.position_sizer_type."""
    if config.position_sizer_type == "kelly":
        return KellySizer(config.kelly_win_prob, config.kelly_win_loss_ratio)
    return FixedSizer()
