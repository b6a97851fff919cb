"""Unit tests for risk.manager."""

import pytest
from pvd_bot.risk.manager import RiskManager, protective_prices
from pvd_bot.core.types import SignalSide


def test_size_position_quantity():
    rm = RiskManager(leverage=5, max_position_pct=2.0, min_notional=5.0)
    # 1000 * 5 * 2% / 50 = 2.0
    r = rm.size_position(1000.0, 50.0)
    assert r.allowed is True
    assert r.quantity == pytest.approx(2.0)


def test_size_position_non_positive_balance():
    rm = RiskManager()
    r = rm.size_position(0.0, 50.0)
    assert r.allowed is False
    assert "balance" in r.reason


def test_size_position_invalid_price():
    r = RiskManager().size_position(1000.0, 0.0)
    assert r.allowed is False


def test_size_position_below_min_notional():
    rm = RiskManager(leverage=1, max_position_pct=2.0, min_notional=5.0)
    # 10 * 2% = 0.2 notional
    r = rm.size_position(10.0, 50.0)
    assert r.allowed is False
    assert "notional" in r.reason


def test_size_position_rounds_to_zero():
    rm = RiskManager(leverage=1, max_position_pct=2.0, min_notional=0.0)
    r = rm.size_position(10.0, 1_000_000.0)
    assert r.allowed is False
    assert "rounds to 0" in r.reason


def test_size_position_uses_exchange_filters():
    info = {
        "filters": [
            {"filterType": "LOT_SIZE", "minQty": "0.01", "stepSize": "0.01"},
            {"filterType": "MIN_NOTIONAL", "notional": "5"},
        ]
    }
    rm = RiskManager(leverage=1, max_position_pct=2.0, min_notional=1.0, symbol_info=info)
    # 1000 * 2% / 30 = 0.6667 -> 0.66
    r = rm.size_position(1000.0, 30.0)
    assert r.allowed is True
    assert r.quantity == pytest.approx(0.66)
    rm.update_symbol_info({"filters": [{"filterType": "MIN_NOTIONAL", "notional": "100"}]})
    assert rm.size_position(1000.0, 30.0).allowed is False


def test_leverage_floor():
    assert RiskManager(leverage=0).leverage == 1


def test_protective_prices():
    sl, tp = protective_prices(SignalSide.LONG, 100.0, 0.25, 0.6)
    assert sl == pytest.approx(99.75)
    assert tp == pytest.approx(100.6)
    sl, tp = protective_prices(SignalSide.SHORT, 100.0, 0.25, 0.6)
    assert sl == pytest.approx(100.25)
    assert tp == pytest.approx(99.4)
