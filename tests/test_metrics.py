"""Unit tests for analytics.metrics."""

from datetime import datetime, timezone

import pytest
from pvd_bot.analytics.metrics import (
    max_drawdown,
    win_rate,
    profit_factor,
    expectancy,
    summarize,
    format_stats,
)
from pvd_bot.core.types import Position, SignalSide


def test_win_rate():
    assert win_rate([1, -1, 1, 1]) == 0.75
    assert win_rate([]) == 0.0


def test_profit_factor():
    assert profit_factor([10, -5, 10, -5]) == 2.0
    assert profit_factor([10, 10]) == float("inf")
    assert profit_factor([-5, -5]) == 0.0
    assert profit_factor([]) == 0.0


def test_expectancy():
    assert expectancy([10, -5, 5]) == pytest.approx(10 / 3)
    assert expectancy([]) == 0.0


def test_max_drawdown():
    # cumulative 10 -> 5 -> -5 -> 15: peak 10, trough -5
    assert max_drawdown([10.0, -5.0, -10.0, 20.0]) == pytest.approx(-15.0)
    assert max_drawdown([1.0, 2.0]) == 0.0
    assert max_drawdown([]) == 0.0


def test_max_drawdown_from_start():
    assert max_drawdown([-3.0, -2.0, 4.0]) == pytest.approx(-5.0)


def _closed(pnl):
    return Position(
        position_id=str(pnl), symbol="BTCUSDT", side=SignalSide.LONG, entry_price=100.0,
        quantity=1.0, stop_loss_price=99.0, take_profit_price=101.0, trailing_stop_price=99.0,
        trailing_pct=0.002, max_hold_bars=12, entry_time=datetime(2026, 1, 1, tzinfo=timezone.utc), pnl=pnl,
    )


def test_summarize():
    st = summarize([_closed(10.0), _closed(-5.0), _closed(15.0), _closed(-3.0)], open_count=1)
    assert st.total_trades == 5
    assert st.closed_trades == 4
    assert st.open_trades == 1
    assert st.total_pnl == pytest.approx(17.0)
    assert st.win_rate == 0.5
    assert st.avg_win == pytest.approx(12.5)
    assert st.avg_loss == pytest.approx(-4.0)
    assert st.expectancy == pytest.approx(4.25)
    assert st.max_drawdown == pytest.approx(-5.0)


def test_format_stats():
    text = format_stats(summarize([_closed(2.0)]), "USDT")
    assert "Total trades: 1" in text
    assert "Win rate: 100.00%" in text
    assert "USDT" in text
