"""
Indicator calculator: EMAs, MACD(12, 26, 9) and RSI(14) per bar.
No lookahead: the value at index i only uses bars 0..i.
"""

from __future__ import annotations
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from pvd_bot.core.types import Bar, IndicatorSet, MarketSnapshot

MIN_BARS = 30
DEFAULT_EMA_PERIODS = (8, 30, 55, 144, 169)


def bars_to_frame(bars: Sequence[Bar]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "open": [b.open for b in bars],
            "high": [b.high for b in bars],
            "low": [b.low for b in bars],
            "close": [b.close for b in bars],
            "volume": [b.volume for b in bars],
        }
    )


def _rsi(close: pd.Series, length: int = 14) -> pd.Series:
    delta = close.diff()
    up = delta.clip(lower=0)
    down = (-delta).clip(lower=0)
    rs = up.rolling(length).mean() / down.rolling(length).mean().replace(0, np.nan)
    rsi = 100 - (100 / (1 + rs))
    # No losses in the window means RSI 100
    return rsi.where(~(down.rolling(length).mean() == 0), 100.0)


def compute_indicators(
    bars: Sequence[Bar],
    ema_periods: Sequence[int] = DEFAULT_EMA_PERIODS,
) -> List[Optional[IndicatorSet]]:
    """
    Return one IndicatorSet per bar, None where the trailing window is shorter
    than MIN_BARS. EMA periods longer than the history report 0.0.
    """
    n = len(bars)
    if n < MIN_BARS:
        return [None] * n
    df = bars_to_frame(bars)
    close = df["close"]

    emas = {}
    for period in sorted(set(ema_periods)):
        if n >= period:
            emas[period] = close.ewm(span=period, adjust=False).mean()

    ema_fast = close.ewm(span=12, adjust=False).mean()
    ema_slow = close.ewm(span=26, adjust=False).mean()
    macd = ema_fast - ema_slow
    macd_signal = macd.ewm(span=9, adjust=False).mean()
    macd_hist = macd - macd_signal
    rsi = _rsi(close, 14)

    def value(series: pd.Series, i: int) -> float:
        v = series.iloc[i]
        return 0.0 if pd.isna(v) else float(v)

    out: List[Optional[IndicatorSet]] = []
    for i in range(n):
        if i < MIN_BARS - 1:
            out.append(None)
            continue
        out.append(IndicatorSet(
            ema={p: (value(s, i) if i >= p - 1 else 0.0) for p, s in emas.items()},
            macd=value(macd, i),
            macd_signal=value(macd_signal, i),
            macd_histogram=value(macd_hist, i),
            rsi=value(rsi, i),
        ))
    return out


def build_snapshots(
    bars: Sequence[Bar],
    indicators: Optional[Sequence[Optional[IndicatorSet]]] = None,
    ema_periods: Sequence[int] = DEFAULT_EMA_PERIODS,
) -> List[MarketSnapshot]:
    """Pair bars with their indicators, dropping bars without a full set."""
    if indicators is None:
        indicators = compute_indicators(bars, ema_periods)
    return [MarketSnapshot(bar=b, indicators=ind) for b, ind in zip(bars, indicators) if ind is not None]
