"""Unit tests for strategies.pattern_volume_delta."""

from datetime import datetime, timedelta, timezone

from pvd_bot.core.config import Config
from pvd_bot.core.types import Bar, DeltaSample, EntrySignal, IndicatorSet, MarketSnapshot, PatternKind
from pvd_bot.signals.trend import TrendFilter
from pvd_bot.strategies.pattern_volume_delta import PatternVolumeDeltaStrategy

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def snap(i, o, h, l, c, v=100.0, ema30=100.0):
    start = T0 + timedelta(minutes=i)
    b = Bar(start, start + timedelta(seconds=59), o, h, l, c, v)
    return MarketSnapshot(b, IndicatorSet(ema={30: ema30}))


def flat(i):
    # Tiny bearish bar: no pattern against an identical neighbour
    return snap(i, 100.0, 100.1, 99.9, 99.95)


def delta(value):
    return DeltaSample(value, max(value, 0.0), max(-value, 0.0))


def feed_flat(strategy, n=24, d=10.0):
    for i in range(n):
        strategy.append(flat(i), delta(d))


def engulfing_pair(start, v=200.0, ema30=100.0):
    prev = snap(start, 100.2, 100.3, 99.8, 99.9)
    cur = snap(start + 1, 99.8, 100.7, 99.7, 100.6, v=v, ema30=ema30)
    return prev, cur


def test_full_pass_long_entry():
    s = PatternVolumeDeltaStrategy()
    feed_flat(s)
    prev, cur = engulfing_pair(24)
    s.append(prev, delta(-10.0))
    r = s.on_bar(cur, delta(100.0))
    assert r.signal is EntrySignal.LONG_ENTRY
    assert r.passed
    assert r.pattern.kind is PatternKind.ENGULFING
    assert r.delta.value == 100.0
    assert s.last_rejection == ""


def test_evaluate_is_idempotent():
    s = PatternVolumeDeltaStrategy()
    feed_flat(s)
    prev, cur = engulfing_pair(24)
    s.append(prev, delta(-10.0))
    s.append(cur, delta(100.0))
    assert s.evaluate() == s.evaluate()
    assert len(s.history) == 26


def test_short_history_rejected():
    s = PatternVolumeDeltaStrategy()
    r = s.on_bar(flat(0), delta(10.0))
    assert r.signal is EntrySignal.NONE
    assert r.reason == "history 1/2 bars"


def test_no_pattern_rejected():
    s = PatternVolumeDeltaStrategy()
    feed_flat(s, n=5)
    r = s.evaluate()
    assert r.signal is EntrySignal.NONE
    assert r.reason == "pattern: none detected"


def test_low_volume_rejected():
    s = PatternVolumeDeltaStrategy()
    feed_flat(s)
    prev, cur = engulfing_pair(24, v=100.0)
    s.append(prev, delta(-10.0))
    r = s.on_bar(cur, delta(100.0))
    assert r.signal is EntrySignal.NONE
    assert r.reason.startswith("volume")
    assert r.pattern.kind is PatternKind.ENGULFING


def test_missing_delta_rejected():
    s = PatternVolumeDeltaStrategy()
    for i in range(24):
        s.append(flat(i), None)
    prev, cur = engulfing_pair(24)
    s.append(prev, None)
    r = s.on_bar(cur, None)
    assert r.reason == "delta: no sample"


def test_bar_without_sample_does_not_reuse_previous_delta():
    s = PatternVolumeDeltaStrategy()
    feed_flat(s)
    prev, cur = engulfing_pair(24)
    s.append(prev, delta(100.0))
    r = s.on_bar(cur, None)
    assert r.signal is EntrySignal.NONE
    assert r.reason == "delta: no sample"
    assert r.delta is None
    assert s.delta_filter.latest.value == 100.0


def test_short_delta_history_rejected():
    s = PatternVolumeDeltaStrategy()
    for i in range(20):
        s.append(flat(i), None)
    feed_flat(s, n=4)
    prev, cur = engulfing_pair(24)
    s.append(prev, delta(-10.0))
    r = s.on_bar(cur, delta(100.0))
    assert r.reason.startswith("delta: history 6/10")


def test_delta_against_direction_rejected():
    s = PatternVolumeDeltaStrategy()
    feed_flat(s)
    prev, cur = engulfing_pair(24)
    s.append(prev, delta(-10.0))
    r = s.on_bar(cur, delta(-100.0))
    assert r.signal is EntrySignal.NONE
    assert r.reason.startswith("delta")
    assert s.last_rejection == r.reason


def test_trend_filter_rejects_counter_trend():
    s = PatternVolumeDeltaStrategy(trend_filter=TrendFilter(30))
    feed_flat(s)
    prev, cur = engulfing_pair(24, ema30=101.0)
    s.append(prev, delta(-10.0))
    r = s.on_bar(cur, delta(100.0))
    assert r.signal is EntrySignal.NONE
    assert r.reason.startswith("trend")


def test_histories_are_bounded():
    s = PatternVolumeDeltaStrategy()
    feed_flat(s, n=250)
    assert len(s.history) == 200
    assert len(s.delta_filter.history) == 100
    assert s.history[0].bar.start_time == T0 + timedelta(minutes=50)


def test_from_config():
    cfg = Config(use_trend_filter=False, v_mult=2.0, delta_thresh_mode="absolute", delta_thresh_abs=50.0)
    s = PatternVolumeDeltaStrategy.from_config(cfg)
    assert s.trend_filter is None
    assert s.volume_filter.multiplier == 2.0
    assert s.delta_filter.threshold() == 50.0
    assert PatternVolumeDeltaStrategy.from_config(Config()).trend_filter is not None


def test_current_pattern_reports_inside_bar():
    s = PatternVolumeDeltaStrategy()
    s.append(snap(0, 100.0, 103.0, 98.0, 101.0), delta(1.0))
    s.append(snap(1, 100.2, 101.5, 99.5, 100.3), delta(1.0))
    assert s.current_pattern().kind is PatternKind.INSIDE_BAR
    assert s.evaluate().reason == "pattern: none detected"
