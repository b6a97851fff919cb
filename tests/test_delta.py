"""Unit tests for signals.delta."""

from datetime import datetime, timedelta, timezone

import pytest

from pvd_bot.core.types import Bar, DeltaSample, Quote, SignalSide, TradeTick
from pvd_bot.signals.delta import CandleDeltaEstimator, DeltaFilter, TradeDeltaEstimator

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def bar(o, h, l, c, v=100.0):
    return Bar(T0, T0 + timedelta(seconds=59), o, h, l, c, v)


def sample(value):
    return DeltaSample(value=value, buy_volume=max(value, 0.0), sell_volume=max(-value, 0.0))


def test_candle_delta_up_bar_closing_at_high():
    d = CandleDeltaEstimator().estimate(bar(100.0, 101.0, 99.0, 101.0))
    assert d.buy_volume == pytest.approx(80.0)
    assert d.sell_volume == pytest.approx(20.0)
    assert d.value == pytest.approx(60.0)


def test_candle_delta_down_bar():
    d = CandleDeltaEstimator().estimate(bar(101.0, 101.5, 99.0, 100.0))
    # location 0.4 -> skew 0.12
    assert d.buy_volume == pytest.approx(38.0)
    assert d.sell_volume == pytest.approx(62.0)
    assert d.value == pytest.approx(-24.0)


def test_candle_delta_doji_counts_as_down():
    d = CandleDeltaEstimator().estimate(bar(100.0, 101.0, 99.0, 100.0))
    assert d.value < 0


def test_candle_delta_flat_range_splits_evenly():
    d = CandleDeltaEstimator().estimate(bar(100.0, 100.0, 100.0, 100.0, v=50.0))
    assert d.value == 0.0
    assert d.buy_volume == d.sell_volume == 25.0


def ticks(*pairs):
    return [TradeTick(T0 + timedelta(seconds=i), p, q) for i, (p, q) in enumerate(pairs)]


def test_trade_delta_classifies_by_quote():
    trades = ticks((100.1, 2.0), (100.2, 1.0), (99.9, 1.0), (100.0, 5.0))
    d = TradeDeltaEstimator(lookback_ticks=40).estimate(bar(100, 101, 99, 100.5), trades, Quote(99.9, 100.1))
    assert d.buy_volume == 3.0
    assert d.sell_volume == 1.0
    assert d.value == 2.0


def test_trade_delta_lookback_ticks():
    trades = ticks((100.1, 2.0), (100.2, 1.0), (99.9, 1.0), (99.8, 4.0))
    d = TradeDeltaEstimator(lookback_ticks=2).estimate(bar(100, 101, 99, 100.5), trades, Quote(99.9, 100.1))
    assert d.value == -5.0


def test_trade_delta_time_window():
    trades = ticks((100.1, 2.0), (100.2, 1.0), (99.9, 1.0), (100.1, 4.0))
    est = TradeDeltaEstimator(lookback_ticks=0, window_seconds=1.0)
    assert [t.quantity for t in est.window(trades)] == [1.0, 4.0]


def test_trade_delta_ignores_trades_after_bar_close():
    trades = [
        TradeTick(T0 + timedelta(seconds=30), 100.1, 1.0),
        TradeTick(T0 + timedelta(seconds=61), 99.9, 50.0),
    ]
    d = TradeDeltaEstimator().estimate(bar(100, 101, 99, 100.5), trades, Quote(99.9, 100.1))
    assert d == DeltaSample(1.0, 1.0, 0.0)


def test_trade_delta_bar_bounds():
    trades = [
        TradeTick(T0 - timedelta(seconds=5), 99.9, 3.0),
        TradeTick(T0 + timedelta(seconds=10), 100.1, 2.0),
    ]
    b = bar(100, 101, 99, 100.5)
    quote = Quote(99.9, 100.1)
    assert TradeDeltaEstimator().estimate(b, trades, quote).value == 2.0
    # A seconds window may reach back before the bar open
    assert TradeDeltaEstimator(window_seconds=30.0).estimate(b, trades, quote).value == -1.0


def test_trade_delta_without_quote_is_zero():
    d = TradeDeltaEstimator().estimate(bar(100, 101, 99, 100.5), ticks((100.1, 2.0)), None)
    assert d == DeltaSample(0.0, 0.0, 0.0)


def test_dynamic_threshold_needs_ten_samples():
    f = DeltaFilter(mode="dynamic")
    for _ in range(9):
        f.record(sample(100.0))
    assert f.threshold() is None
    r = f.check(sample(100.0), SignalSide.LONG)
    assert not r.passed
    assert "9/10" in r.reason
    f.record(sample(100.0))
    assert f.threshold() == pytest.approx(80.0)
    assert f.check(sample(100.0), SignalSide.LONG).passed


def test_dynamic_threshold_direction():
    f = DeltaFilter(mode="dynamic")
    for v in (100.0, -100.0) * 5:
        f.record(sample(v))
    assert f.check(sample(-90.0), SignalSide.SHORT).passed
    assert not f.check(sample(-90.0), SignalSide.LONG).passed
    assert not f.check(sample(50.0), SignalSide.LONG).passed


def test_absolute_threshold():
    f = DeltaFilter(mode="absolute", absolute_threshold=100.0)
    assert f.threshold() == 100.0
    assert f.check(sample(100.0), SignalSide.LONG).passed
    assert f.check(sample(-100.0), SignalSide.SHORT).passed
    assert not f.check(sample(99.9), SignalSide.LONG).passed


def test_history_is_bounded():
    f = DeltaFilter(history_size=100)
    for i in range(150):
        f.record(sample(float(i)))
    assert len(f.history) == 100
    assert f.history[0].value == 50.0
    assert f.latest.value == 149.0


def test_unknown_mode_rejected():
    with pytest.raises(ValueError):
        DeltaFilter(mode="percentile")
