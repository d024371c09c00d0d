"""
Tests for executors: SimulatedExecutor risk rules, LiveExecutor on the paper
broker, sizing and logging decorators.
"""

import logging
from datetime import datetime, timedelta

import pytest

from spot_core import (
    BrokerError,
    Config,
    DrawdownExceededError,
    KellySizer,
    MarketData,
    PositionLimitError,
    Signal,
)
from spot_core.execution import (
    Executor,
    LiveExecutor,
    LoggingExecutor,
    PaperBrokerClient,
    SimulatedExecutor,
    SizingExecutor,
)
from spot_core.market import Side

T0 = datetime(2024, 1, 1, 12, 0, 0)


def _quote(price: float, seconds: float = 0.0, spread: float = 0.0) -> MarketData:
    return MarketData(bid=price - spread / 2, ask=price + spread / 2, timestamp=T0 + timedelta(seconds=seconds))


class RecordingExecutor(Executor):
    """Innermost test executor: records (signal, stake_size); optionally fails on call N."""

    def __init__(self, fail_on: int | None = None) -> None:
        self.calls: list[tuple[Signal, float]] = []
        self.cancelled = 0
        self.fail_on = fail_on

    def execute(self, signal, data, config, *, cancel=None):
        self.calls.append((signal, config.stake_size))
        if self.fail_on is not None and len(self.calls) == self.fail_on:
            raise RuntimeError(f"boom on call {self.fail_on}")

    def cancel_all(self, *, cancel=None):
        self.cancelled += 1


def _config(**kw) -> Config:
    base = dict(pair="XBTZAR", stake_size=1.0, position_limit=10.0, max_drawdown=100.0)
    base.update(kw)
    return Config(**base)


# --- SimulatedExecutor ---


def test_simulated_round_trip():
    ex = SimulatedExecutor()
    cfg = _config()
    ex.execute(Signal.BUY, _quote(100.0, 0), cfg)
    assert ex.position == 1.0
    ex.execute(Signal.SELL, _quote(110.0, 1), cfg)
    assert ex.position == 0.0
    assert ex.total_pnl == pytest.approx(10.0)
    assert ex.ledger.peak_pnl == pytest.approx(10.0)


def test_simulated_fills_at_mid():
    ex = SimulatedExecutor()
    ex.execute(Signal.BUY, _quote(100.0, 0, spread=2.0), _config())
    assert ex.ledger.entry_price == 100.0


def test_simulated_second_buy_is_noop():
    ex = SimulatedExecutor()
    cfg = _config()
    ex.execute(Signal.BUY, _quote(100.0, 0), cfg)
    ex.execute(Signal.BUY, _quote(120.0, 1), cfg)
    assert ex.position == 1.0
    assert ex.ledger.entry_price == 100.0


def test_simulated_sell_while_flat_is_noop():
    ex = SimulatedExecutor()
    ex.execute(Signal.SELL, _quote(100.0), _config())
    assert ex.position == 0.0
    assert ex.total_pnl == 0.0


def test_simulated_position_limit():
    ex = SimulatedExecutor()
    with pytest.raises(PositionLimitError) as exc:
        ex.execute(Signal.BUY, _quote(100.0), _config(stake_size=5.0, position_limit=1.0))
    assert "stake size 5.00 > position limit 1.00" in str(exc.value)
    assert ex.position == 0.0


def test_simulated_drawdown_breach_flattens_and_raises():
    ex = SimulatedExecutor()
    cfg = _config(max_drawdown=5.0)
    ex.execute(Signal.BUY, _quote(100.0, 0), cfg)
    with pytest.raises(DrawdownExceededError):
        ex.execute(Signal.SELL, _quote(90.0, 1), cfg)
    assert ex.position == 0.0
    assert ex.total_pnl == pytest.approx(-10.0)
    assert ex.ledger.peak_pnl == 0.0
    assert ex.max_drawdown_exceeded is True


def test_simulated_drawdown_measured_from_peak():
    ex = SimulatedExecutor()
    cfg = _config(max_drawdown=5.0)
    ex.execute(Signal.BUY, _quote(100.0, 0), cfg)
    ex.execute(Signal.SELL, _quote(120.0, 1), cfg)
    ex.execute(Signal.BUY, _quote(120.0, 2), cfg)
    # total 16, peak 20, drawdown 4: within limit
    ex.execute(Signal.SELL, _quote(116.0, 3), cfg)
    assert ex.total_pnl == pytest.approx(16.0)
    assert not ex.max_drawdown_exceeded


def test_simulated_zero_max_drawdown_rejects_any_loss():
    ex = SimulatedExecutor()
    cfg = _config(max_drawdown=0.0)
    ex.execute(Signal.BUY, _quote(100.0, 0), cfg)
    with pytest.raises(DrawdownExceededError):
        ex.execute(Signal.SELL, _quote(99.0, 1), cfg)


def test_simulated_cooldown_ignores_signals():
    ex = SimulatedExecutor()
    cfg = _config(cooldown="60s")
    ex.execute(Signal.BUY, _quote(100.0, 0), cfg)
    ex.execute(Signal.SELL, _quote(110.0, 30), cfg)
    assert ex.position == 1.0
    ex.execute(Signal.SELL, _quote(110.0, 61), cfg)
    assert ex.position == 0.0


def test_simulated_cooldown_restarts_on_any_signal():
    ex = SimulatedExecutor()
    cfg = _config(cooldown="60s")
    ex.execute(Signal.NONE, _quote(100.0, 0), cfg)
    ex.execute(Signal.BUY, _quote(100.0, 10), cfg)
    assert ex.position == 0.0


def test_simulated_rejected_buy_does_not_start_cooldown():
    ex = SimulatedExecutor()
    cfg = _config(cooldown="60s", position_limit=1.0)
    with pytest.raises(PositionLimitError):
        ex.execute(Signal.BUY, _quote(100.0, 0), cfg.override(stake_size=5.0))
    assert ex.ledger.last_trade_time is None
    ex.execute(Signal.BUY, _quote(100.0, 10), cfg)
    assert ex.position == 1.0


def test_simulated_cancel_all_idempotent():
    ex = SimulatedExecutor()
    ex.execute(Signal.BUY, _quote(100.0), _config())
    ex.cancel_all()
    assert ex.position == 0.0
    ex.cancel_all()
    assert ex.position == 0.0


# --- LiveExecutor ---


def _paper_broker() -> PaperBrokerClient:
    return PaperBrokerClient({"ZAR": 10_000.0, "XBT": 0.0})


def test_live_entry_and_exit_post_orders():
    broker = _paper_broker()
    ex = LiveExecutor(broker)
    cfg = _config(stake_size=0.5, base_account_id=1, counter_account_id=2)

    ex.execute(Signal.BUY, _quote(100.0, 0, spread=2.0), cfg)
    orders = broker.get_order_log()
    assert len(orders) == 1
    assert orders[0].side == Side.BUY
    assert orders[0].price == 100.0
    assert orders[0].volume == 0.5
    assert orders[0].base_account_id == 1
    assert ex.position == 0.5
    assert broker.get_balances()["ZAR"] == pytest.approx(9_950.0)
    assert broker.get_balances()["XBT"] == pytest.approx(0.5)

    ex.execute(Signal.SELL, _quote(110.0, 1), cfg)
    orders = broker.get_order_log()
    assert len(orders) == 2
    assert orders[1].side == Side.SELL
    assert orders[1].volume == 0.5
    assert ex.position == 0.0
    assert orders[0].client_order_id != orders[1].client_order_id


def test_live_noop_combinations_post_nothing():
    broker = _paper_broker()
    ex = LiveExecutor(broker)
    cfg = _config()
    ex.execute(Signal.SELL, _quote(100.0), cfg)
    ex.execute(Signal.NONE, _quote(100.0), cfg)
    assert broker.get_order_log() == []


def test_live_position_limit_posts_nothing():
    broker = _paper_broker()
    ex = LiveExecutor(broker)
    with pytest.raises(PositionLimitError):
        ex.execute(Signal.BUY, _quote(100.0), _config(stake_size=2.0, position_limit=1.0))
    assert broker.get_order_log() == []
    assert ex.position == 0.0


def test_live_broker_error_leaves_position():
    broker = _paper_broker()
    ex = LiveExecutor(broker)
    with pytest.raises(BrokerError):
        ex.execute(Signal.BUY, _quote(0.0), _config())
    assert ex.position == 0.0


def test_live_cancel_all_is_noop():
    broker = _paper_broker()
    ex = LiveExecutor(broker)
    ex.execute(Signal.BUY, _quote(100.0), _config())
    ex.cancel_all()
    assert ex.position == 1.0
    assert len(broker.get_order_log()) == 1


# --- SizingExecutor ---


def test_sizing_executor_overrides_stake_on_copy():
    inner = RecordingExecutor()
    ex = SizingExecutor(inner, KellySizer(0.6, 2.0))
    cfg = _config(stake_size=100.0, initial_equity=1000.0)
    ex.execute(Signal.BUY, _quote(100.0), cfg)
    assert inner.calls == [(Signal.BUY, 100.0)]
    ex.execute(Signal.BUY, _quote(100.0), cfg.override(initial_equity=50.0))
    assert inner.calls[-1][1] == pytest.approx(20.0)
    assert cfg.stake_size == 100.0


def test_sizing_executor_delegates_cancel_all():
    inner = RecordingExecutor()
    SizingExecutor(inner, KellySizer(0.6, 2.0)).cancel_all()
    assert inner.cancelled == 1


# --- LoggingExecutor ---


def test_logging_executor_logs_and_delegates(caplog):
    inner = RecordingExecutor()
    ex = LoggingExecutor(inner)
    with caplog.at_level(logging.INFO, logger="spot_core.execution.decorators"):
        ex.execute(Signal.BUY, _quote(100.0), _config())
    assert inner.calls == [(Signal.BUY, 1.0)]
    assert any("Execute: signal=buy" in r.getMessage() for r in caplog.records)


def test_logging_executor_reraises_unchanged(caplog):
    inner = RecordingExecutor(fail_on=1)
    errors = logging.getLogger("test.errors")
    ex = LoggingExecutor(inner, error_logger=errors)
    with caplog.at_level(logging.ERROR, logger="test.errors"):
        with pytest.raises(RuntimeError, match="boom on call 1"):
            ex.execute(Signal.SELL, _quote(100.0), _config())
    assert any(r.name == "test.errors" and "boom" in r.getMessage() for r in caplog.records)


def test_logging_executor_cancel_all():
    inner = RecordingExecutor()
    LoggingExecutor(inner).cancel_all()
    assert inner.cancelled == 1


def test_full_chain_sizes_then_simulates():
    sim = SimulatedExecutor()
    chain = LoggingExecutor(SizingExecutor(sim, KellySizer(0.6, 2.0)))
    cfg = _config(stake_size=5.0, initial_equity=10.0, position_limit=5.0)
    chain.execute(Signal.BUY, _quote(100.0), cfg)
    assert sim.position == pytest.approx(4.0)
