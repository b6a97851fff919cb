"""Abstract execution interface: market data, balance and order placement."""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from pvd_bot.core.types import Bar, ExchangePosition, Quote, SignalSide, TradeTick


@dataclass
class OrderResult:
    """Result of placing an order (or batch)."""
    success: bool
    order_id: Optional[str] = None
    avg_price: Optional[float] = None
    quantity: Optional[float] = None
    message: str = ""


class ExecutionClient(ABC):
    """Exchange collaborator. Every call may block on I/O; retries live here, not in the core."""

    @abstractmethod
    def get_recent_bars(self, symbol: str, interval: str, count: int) -> List[Bar]:
        """Bars in ascending time; may be shorter than ``count``; the last one may still be forming."""
        pass

    @abstractmethod
    def get_account_balance(self, asset: str) -> float:
        """Available balance of ``asset`` for sizing."""
        pass

    @abstractmethod
    def place_order(
        self,
        symbol: str,
        side: SignalSide,
        quantity: float,
        stop_price: Optional[float] = None,
        take_profit_price: Optional[float] = None,
    ) -> OrderResult:
        """Market entry with optional reduce-only SL / TP triggers."""
        pass

    @abstractmethod
    def close_position(self, symbol: str) -> OrderResult:
        """Cancel resting orders and flatten the position with a reduce-only market order."""
        pass

    @abstractmethod
    def get_last_price(self, symbol: str) -> float:
        pass

    @abstractmethod
    def get_open_position(self, symbol: str) -> Optional[ExchangePosition]:
        """Current exchange-side position for symbol, or None."""
        pass

    @abstractmethod
    def set_leverage(self, symbol: str, leverage: int) -> None:
        pass

    def get_symbol_info(self, symbol: str) -> Optional[dict]:
        """Exchange symbol info (filters). Default none."""
        return None

    def get_recent_trades(self, symbol: str, limit: int = 100) -> List[TradeTick]:
        """Recent public trades, oldest first. Default empty."""
        return []

    def get_book_ticker(self, symbol: str) -> Optional[Quote]:
        """Best bid / ask. Default none."""
        return None

    def list_perpetual_symbols(self, quote_asset: str) -> List[str]:
        """Tradable perpetual symbols quoted in ``quote_asset``. Default empty."""
        return []
