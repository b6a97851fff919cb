"""Unit tests for signals.patterns."""

from datetime import datetime, timedelta, timezone

from pvd_bot.core.types import Bar, PatternKind, SignalSide
from pvd_bot.signals.patterns import PatternDetector

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def bar(o, h, l, c, v=100.0, i=0):
    start = T0 + timedelta(minutes=i)
    return Bar(start, start + timedelta(seconds=59), o, h, l, c, v)


def test_bullish_engulfing():
    prev = bar(10.0, 10.2, 8.8, 9.0)
    cur = bar(8.5, 11.2, 8.4, 11.0)
    r = PatternDetector().detect(cur, prev)
    assert r.kind is PatternKind.ENGULFING
    assert r.direction is SignalSide.LONG
    assert r.confidence == 0.8
    assert r.name == "Bullish Engulfing"


def test_bearish_engulfing():
    prev = bar(9.0, 10.1, 8.9, 10.0)
    cur = bar(10.5, 10.6, 8.4, 8.5)
    r = PatternDetector().detect(cur, prev)
    assert r.kind is PatternKind.ENGULFING
    assert r.direction is SignalSide.SHORT


def test_hammer():
    prev = bar(10.0, 10.2, 9.9, 10.05)
    cur = bar(10.0, 10.15, 9.0, 10.1)
    r = PatternDetector().detect(cur, prev)
    assert r.kind is PatternKind.HAMMER
    assert r.direction is SignalSide.LONG
    assert r.confidence == 0.7


def test_inverted_hammer():
    prev = bar(101.0, 102.0, 100.5, 101.5)
    cur = bar(101.9, 105.4, 100.0, 102.9)
    r = PatternDetector().detect(cur, prev)
    assert r.kind is PatternKind.INVERTED_HAMMER
    assert r.direction is SignalSide.LONG


def test_small_body_closing_low_is_not_hammer():
    prev = bar(10.0, 10.2, 9.9, 10.05)
    cur = bar(10.1, 11.0, 9.0, 10.0)
    assert PatternDetector().hammer(cur).kind is PatternKind.NONE


def test_inside_bar_is_never_actionable():
    prev = bar(100.0, 103.0, 98.0, 101.0)
    cur = bar(100.2, 101.5, 99.5, 100.3)
    d = PatternDetector()
    assert d.detect(cur, prev).kind is PatternKind.NONE
    classified = d.classify(cur, prev)
    assert classified.kind is PatternKind.INSIDE_BAR
    assert classified.direction is None
    assert not classified.actionable


def _range_bars(n):
    return [bar(100.0, 101.0, 99.0, 100.5, i=i) for i in range(n)]


def test_breakout_above_prior_window():
    prior = _range_bars(5)
    cur = bar(101.2, 101.6, 101.0, 101.5, i=5)
    r = PatternDetector(b_lookback=5).detect(cur, prior[-1], prior)
    assert r.kind is PatternKind.BREAKOUT
    assert r.direction is SignalSide.LONG
    assert r.confidence == 0.75


def test_breakout_below_prior_window():
    prior = _range_bars(5)
    cur = bar(98.8, 99.0, 98.4, 98.5, i=5)
    r = PatternDetector(b_lookback=5).breakout(cur, prior)
    assert r.direction is SignalSide.SHORT


def test_breakout_needs_full_window():
    prior = _range_bars(4)
    cur = bar(101.2, 101.6, 101.0, 101.5, i=4)
    assert PatternDetector(b_lookback=5).breakout(cur, prior).kind is PatternKind.NONE


def test_breakout_ignores_current_bar_extremes():
    prior = _range_bars(5)
    # Own high above close must not block the breakout
    cur = bar(101.2, 103.0, 101.0, 101.5, i=5)
    assert PatternDetector(b_lookback=5).breakout(cur, prior).direction is SignalSide.LONG


def test_momentum_candle():
    prev = bar(100.0, 100.1, 99.9, 100.05)
    cur = bar(100.0, 101.0, 99.95, 100.9)
    r = PatternDetector().detect(cur, prev)
    assert r.kind is PatternKind.MOMENTUM
    assert r.direction is SignalSide.LONG


def test_momentum_needs_volume():
    cur = bar(100.0, 101.0, 99.95, 100.9, v=0.0)
    assert PatternDetector().momentum(cur).kind is PatternKind.NONE


def test_zero_range_bar_is_none():
    prev = bar(100.0, 101.0, 99.0, 100.5)
    cur = bar(100.0, 100.0, 100.0, 100.0)
    assert PatternDetector().detect(cur, prev).kind is PatternKind.NONE


def test_engulfing_wins_over_momentum():
    prev = bar(100.2, 100.3, 99.8, 99.9)
    cur = bar(99.8, 100.7, 99.7, 100.6)
    assert PatternDetector().detect(cur, prev).kind is PatternKind.ENGULFING
