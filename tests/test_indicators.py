"""Unit tests for indicators.calculator."""

from datetime import datetime, timedelta, timezone

import pytest

from pvd_bot.core.types import Bar
from pvd_bot.indicators.calculator import MIN_BARS, build_snapshots, compute_indicators

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def rising(n, step=0.1):
    bars = []
    for i in range(n):
        start = T0 + timedelta(minutes=i)
        o = 100.0 + i * step
        c = o + step
        bars.append(Bar(start, start + timedelta(seconds=59), o, c + 0.05, o - 0.05, c, 100.0))
    return bars


def test_short_history_has_no_indicators():
    assert compute_indicators(rising(MIN_BARS - 1)) == [None] * (MIN_BARS - 1)


def test_indicators_start_at_min_bars():
    out = compute_indicators(rising(60))
    assert all(x is None for x in out[: MIN_BARS - 1])
    assert all(x is not None for x in out[MIN_BARS - 1:])


def test_ema_longer_than_history_reports_zero():
    out = compute_indicators(rising(60), ema_periods=(8, 30, 144))
    last = out[-1]
    assert last.ema_value(144) == 0.0
    assert last.ema_value(8) > last.ema_value(30) > 0.0
    # First reported bar already has a full EMA30 window
    assert out[MIN_BARS - 1].ema_value(30) > 0.0


def test_rsi_all_gains_is_100():
    last = compute_indicators(rising(60))[-1]
    assert last.rsi == pytest.approx(100.0)
    assert last.macd > 0.0


def test_no_lookahead():
    bars = rising(60)
    full = compute_indicators(bars, ema_periods=(8, 30))
    partial = compute_indicators(bars[:40], ema_periods=(8, 30))
    assert partial[39] == full[39]


def test_build_snapshots_drops_warmup_bars():
    bars = rising(60)
    snaps = build_snapshots(bars)
    assert len(snaps) == 60 - (MIN_BARS - 1)
    assert snaps[0].bar is bars[MIN_BARS - 1]
    assert snaps[-1].bar is bars[-1]
