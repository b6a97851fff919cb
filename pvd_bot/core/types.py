"""
Core data types: bars, indicator snapshots, patterns, delta samples, positions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Optional


class SignalSide(str, Enum):
    LONG = "BUY"
    SHORT = "SELL"

    @property
    def sign(self) -> int:
        return 1 if self is SignalSide.LONG else -1

    @property
    def opposite(self) -> "SignalSide":
        """Order side that closes a position on this side."""
        return SignalSide.SHORT if self is SignalSide.LONG else SignalSide.LONG


class EntrySignal(str, Enum):
    NONE = "NONE"
    LONG_ENTRY = "LONG_ENTRY"
    SHORT_ENTRY = "SHORT_ENTRY"

    @property
    def side(self) -> Optional[SignalSide]:
        if self is EntrySignal.LONG_ENTRY:
            return SignalSide.LONG
        if self is EntrySignal.SHORT_ENTRY:
            return SignalSide.SHORT
        return None

    @classmethod
    def for_side(cls, side: Optional[SignalSide]) -> "EntrySignal":
        if side is SignalSide.LONG:
            return cls.LONG_ENTRY
        if side is SignalSide.SHORT:
            return cls.SHORT_ENTRY
        return cls.NONE


@dataclass(frozen=True)
class Bar:
    """Closed OHLCV candle."""
    start_time: datetime
    end_time: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float
    quote_volume: float = 0.0

    @property
    def body(self) -> float:
        return abs(self.close - self.open)

    @property
    def range(self) -> float:
        return self.high - self.low

    @property
    def is_bullish(self) -> bool:
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        return self.close < self.open

    @property
    def upper_shadow(self) -> float:
        return self.high - max(self.open, self.close)

    @property
    def lower_shadow(self) -> float:
        return min(self.open, self.close) - self.low

    @property
    def midpoint(self) -> float:
        return (self.high + self.low) / 2.0

    def is_valid(self) -> bool:
        return self.high >= max(self.open, self.close) >= min(self.open, self.close) >= self.low


@dataclass(frozen=True)
class IndicatorSet:
    """Indicators attached to one bar. EMA values keyed by period."""
    ema: Dict[int, float] = field(default_factory=dict)
    macd: float = 0.0
    macd_signal: float = 0.0
    macd_histogram: float = 0.0
    rsi: float = 0.0

    def ema_value(self, period: int) -> float:
        return self.ema.get(period, 0.0)


@dataclass(frozen=True)
class MarketSnapshot:
    bar: Bar
    indicators: IndicatorSet


class PatternKind(str, Enum):
    NONE = "None"
    ENGULFING = "Engulfing"
    HAMMER = "Hammer"
    INVERTED_HAMMER = "Inverted Hammer"
    INSIDE_BAR = "Inside Bar"
    BREAKOUT = "Breakout"
    MOMENTUM = "Momentum Candle"


@dataclass(frozen=True)
class PatternResult:
    kind: PatternKind = PatternKind.NONE
    direction: Optional[SignalSide] = None
    confidence: float = 0.0
    name: str = "None"

    @property
    def actionable(self) -> bool:
        return self.direction is not None


NO_PATTERN = PatternResult()


@dataclass(frozen=True)
class DeltaSample:
    """Aggressor buy volume minus aggressor sell volume for one bar."""
    value: float
    buy_volume: float
    sell_volume: float


@dataclass(frozen=True)
class TradeTick:
    time: datetime
    price: float
    quantity: float


@dataclass(frozen=True)
class Quote:
    bid: float
    ask: float


class PositionStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class ExitReason(str, Enum):
    TAKE_PROFIT = "take_profit"
    TRAILING_STOP = "trailing_stop"
    STOP_LOSS = "stop_loss"
    TIMEOUT = "timeout"
    EXCHANGE = "exchange"
    MANUAL = "manual"


@dataclass
class Position:
    """Locally tracked position, mutated on every price update while open."""
    position_id: str
    symbol: str
    side: SignalSide
    entry_price: float
    quantity: float
    stop_loss_price: float
    take_profit_price: float
    trailing_stop_price: float
    trailing_pct: float
    max_hold_bars: int
    entry_time: datetime
    trailing_enabled: bool = False
    bars_held: int = 0
    highest_price: float = 0.0
    lowest_price: float = 0.0
    status: PositionStatus = PositionStatus.OPEN
    exit_price: Optional[float] = None
    exit_time: Optional[datetime] = None
    exit_reason: Optional[ExitReason] = None
    pnl: float = 0.0
    pnl_pct: float = 0.0
    trading_fee: float = 0.0
    funding_fee: float = 0.0

    @property
    def is_open(self) -> bool:
        return self.status is PositionStatus.OPEN

    @property
    def fees(self) -> float:
        return self.trading_fee + self.funding_fee

    @property
    def notional(self) -> float:
        return self.entry_price * self.quantity

    def unrealized_pnl(self, price: float) -> float:
        return (price - self.entry_price) * self.quantity * self.side.sign


@dataclass(frozen=True)
class ExchangePosition:
    """Position as reported by the exchange."""
    symbol: str
    side: SignalSide
    quantity: float
    entry_price: float
    unrealized_pnl: float = 0.0
    leverage: int = 1
