"""
Tests for the tick driver: run_strategy_tick and TradingSession.
"""

import json
import threading
from datetime import datetime

import pytest

from spot_core import BrokerError, Config, JSONConfigStore, MarketData, PositionLimitError, Signal, Strategy
from spot_core.execution import PaperBrokerClient, SimulatedExecutor, TradingSession, run_strategy_tick

T0 = datetime(2024, 1, 1, 12, 0, 0)


class _Scripted(Strategy):
    """Returns the scripted signals in order, then NONE."""

    def __init__(self, *signals: Signal) -> None:
        self.signals = list(signals)

    def on_quote(self, data, config):
        return self.signals.pop(0) if self.signals else Signal.NONE


def _config(**kw) -> Config:
    base = dict(pair="XBTZAR", stake_size=1.0, position_limit=1.0, max_drawdown=100.0)
    base.update(kw)
    return Config(**base)


def _broker(price: float = 100.0) -> PaperBrokerClient:
    broker = PaperBrokerClient({"ZAR": 1_000.0})
    broker.set_quote("XBTZAR", MarketData(bid=price - 1, ask=price + 1, timestamp=T0))
    return broker


# --- run_strategy_tick ---


def test_tick_success():
    ex = SimulatedExecutor()
    result = run_strategy_tick(_Scripted(Signal.BUY), ex, MarketData.from_price(100.0, T0), _config())
    assert result.ok
    assert result.signal is Signal.BUY
    assert result.message is None
    assert ex.position == 1.0


def test_tick_captures_executor_error():
    ex = SimulatedExecutor()
    result = run_strategy_tick(
        _Scripted(Signal.BUY), ex, MarketData.from_price(100.0, T0), _config(position_limit=0.5)
    )
    assert not result.ok
    assert isinstance(result.error, PositionLimitError)
    assert "position limit" in result.message
    assert ex.position == 0.0


# --- TradingSession ---


def test_session_run_once_uses_broker_quote():
    ex = SimulatedExecutor()
    session = TradingSession(_Scripted(Signal.BUY), ex, _broker(200.0), _config)
    result = session.run_once()
    assert result.ok
    assert result.data.mid == 200.0
    assert ex.ledger.entry_price == 200.0
    assert session.ticks == 1


def test_session_run_stops_at_max_ticks_and_notifies_observers():
    seen = []
    session = TradingSession(
        _Scripted(Signal.BUY, Signal.NONE, Signal.SELL),
        SimulatedExecutor(),
        _broker(),
        _config,
        observers=[seen.append],
    )
    ran = session.run(0, threading.Event(), max_ticks=3)
    assert ran == 3
    assert [r.signal for r in seen] == [Signal.BUY, Signal.NONE, Signal.SELL]


def test_session_run_honours_preset_cancel():
    session = TradingSession(_Scripted(), SimulatedExecutor(), _broker(), _config)
    cancel = threading.Event()
    cancel.set()
    assert session.run(0, cancel) == 0
    assert session.ticks == 0


def test_session_observer_can_cancel():
    cancel = threading.Event()
    session = TradingSession(
        _Scripted(), SimulatedExecutor(), _broker(), _config, observers=[lambda r: cancel.set()]
    )
    assert session.run(60.0, cancel) == 1


def test_session_broker_error_propagates():
    session = TradingSession(_Scripted(), SimulatedExecutor(), PaperBrokerClient(), _config)
    with pytest.raises(BrokerError):
        session.run_once()


def test_session_reads_config_store_each_tick(tmp_path):
    path = tmp_path / "config.json"
    store = JSONConfigStore(path)
    store.save_config(_config(position_limit=0.5))
    ex = SimulatedExecutor()
    session = TradingSession(_Scripted(Signal.BUY, Signal.BUY), ex, _broker(), store)

    assert isinstance(session.run_once().error, PositionLimitError)
    raw = json.loads(path.read_text())
    raw["position_limit"] = 2.0
    path.write_text(json.dumps(raw))
    assert session.run_once().ok
    assert ex.position == 1.0


def test_session_shutdown_flattens():
    ex = SimulatedExecutor()
    session = TradingSession(_Scripted(Signal.BUY), ex, _broker(), _config)
    session.run_once()
    session.shutdown()
    assert ex.position == 0.0
