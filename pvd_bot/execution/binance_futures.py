"""
Binance USDT-M Futures execution with retry and rate-limit handling.
"""

from __future__ import annotations
import logging
import time
from datetime import datetime, timezone
from functools import wraps
from typing import Dict, List, Optional

from binance.client import Client
from binance.exceptions import BinanceAPIException

from pvd_bot.core.types import Bar, ExchangePosition, Quote, SignalSide, TradeTick
from pvd_bot.execution.base import ExecutionClient, OrderResult
from pvd_bot.utils.exchange_filters import format_decimal, parse_symbol_filters, round_price

logger = logging.getLogger("pvd_bot.execution.binance")


def retry_on_rate_limit(max_retries: int = 3, base_delay: float = 1.0):
    """Decorator: retry on 429 or 418 (rate limit) with exponential backoff."""
    attempts = max(1, max_retries)

    def decorator(f):
        @wraps(f)
        def wrapped(*args, **kwargs):
            for attempt in range(attempts):
                try:
                    return f(*args, **kwargs)
                except BinanceAPIException as e:
                    if e.status_code in (429, 418) and attempt < attempts - 1:
                        delay = base_delay * (2 ** attempt)
                        logger.warning("Rate limited, retry in %.1fs (attempt %d)", delay, attempt + 1)
                        time.sleep(delay)
                    else:
                        raise
        return wrapped
    return decorator


def _ms_to_dt(ms) -> datetime:
    return datetime.fromtimestamp(int(ms) / 1000.0, tz=timezone.utc)


class BinanceFuturesClient(ExecutionClient):
    """Binance USDT-M Futures client (testnet and live)."""

    def __init__(self, api_key: str, api_secret: str, testnet: bool = True):
        self._client = Client(api_key, api_secret, testnet=testnet)
        if testnet:
            logger.info("Binance Futures: using TESTNET")
        else:
            logger.info("Binance Futures: using LIVE")
        self._symbol_info_cache: Dict[str, dict] = {}

    @retry_on_rate_limit(max_retries=3, base_delay=1.0)
    def get_recent_bars(self, symbol: str, interval: str, count: int) -> List[Bar]:
        raw = self._client.futures_klines(symbol=symbol, interval=interval, limit=count)
        bars = []
        for k in raw:
            bars.append(Bar(
                start_time=_ms_to_dt(k[0]),
                end_time=_ms_to_dt(k[6]),
                open=float(k[1]),
                high=float(k[2]),
                low=float(k[3]),
                close=float(k[4]),
                volume=float(k[5]),
                quote_volume=float(k[7]),
            ))
        return bars

    @retry_on_rate_limit(max_retries=2)
    def get_account_balance(self, asset: str) -> float:
        for b in self._client.futures_account_balance():
            if b.get("asset", "").upper() == asset.upper():
                return float(b.get("availableBalance", b.get("balance", 0.0)))
        logger.warning("No %s balance on futures account", asset)
        return 0.0

    @retry_on_rate_limit(max_retries=2)
    def get_symbol_info(self, symbol: str) -> Optional[dict]:
        if symbol in self._symbol_info_cache:
            return self._symbol_info_cache[symbol]
        info = self._client.futures_exchange_info()
        for s in info.get("symbols", []):
            self._symbol_info_cache[s.get("symbol")] = s
        return self._symbol_info_cache.get(symbol)

    @retry_on_rate_limit(max_retries=2)
    def list_perpetual_symbols(self, quote_asset: str) -> List[str]:
        info = self._client.futures_exchange_info()
        return [
            s["symbol"]
            for s in info.get("symbols", [])
            if s.get("contractType") == "PERPETUAL"
            and s.get("status") == "TRADING"
            and s.get("quoteAsset", "").upper() == quote_asset.upper()
        ]

    @retry_on_rate_limit(max_retries=2)
    def get_last_price(self, symbol: str) -> float:
        res = self._client.futures_mark_price(symbol=symbol)
        return float(res["markPrice"])

    @retry_on_rate_limit(max_retries=2)
    def get_book_ticker(self, symbol: str) -> Optional[Quote]:
        res = self._client.futures_orderbook_ticker(symbol=symbol)
        return Quote(bid=float(res["bidPrice"]), ask=float(res["askPrice"]))

    @retry_on_rate_limit(max_retries=2)
    def get_recent_trades(self, symbol: str, limit: int = 100) -> List[TradeTick]:
        raw = self._client.futures_aggregate_trades(symbol=symbol, limit=limit)
        return [TradeTick(time=_ms_to_dt(t["T"]), price=float(t["p"]), quantity=float(t["q"])) for t in raw]

    @retry_on_rate_limit(max_retries=2)
    def get_open_position(self, symbol: str) -> Optional[ExchangePosition]:
        for p in self._client.futures_position_information(symbol=symbol):
            amt = float(p.get("positionAmt", 0.0))
            if amt != 0:
                return ExchangePosition(
                    symbol=symbol,
                    side=SignalSide.LONG if amt > 0 else SignalSide.SHORT,
                    quantity=abs(amt),
                    entry_price=float(p.get("entryPrice", 0)),
                    unrealized_pnl=float(p.get("unRealizedProfit", 0)),
                    leverage=int(p.get("leverage", 1)),
                )
        return None

    def set_leverage(self, symbol: str, leverage: int) -> None:
        try:
            self._client.futures_change_leverage(symbol=symbol, leverage=leverage)
            logger.info("Leverage set to %sx for %s", leverage, symbol)
        except BinanceAPIException as e:
            logger.warning("Could not set leverage for %s: %s", symbol, e)

    @retry_on_rate_limit(max_retries=3, base_delay=1.0)
    def _create_order(self, **params) -> dict:
        return self._client.futures_create_order(**params)

    def place_order(
        self,
        symbol: str,
        side: SignalSide,
        quantity: float,
        stop_price: Optional[float] = None,
        take_profit_price: Optional[float] = None,
    ) -> OrderResult:
        """Market entry, then reduce-only STOP_MARKET and TAKE_PROFIT_MARKET on mark price."""
        tick = parse_symbol_filters(self.get_symbol_info(symbol)).price_tick
        qty = format_decimal(quantity)
        try:
            res = self._create_order(symbol=symbol, side=side.value, type="MARKET", quantity=qty)
        except BinanceAPIException as e:
            logger.exception("Binance entry order error %s: %s", symbol, e)
            return OrderResult(success=False, message=str(e))
        order_id = str(res.get("orderId"))
        avg = float(res.get("avgPrice") or 0.0) or None
        close_side = side.opposite.value
        try:
            if stop_price:
                self._create_order(
                    symbol=symbol, side=close_side, type="STOP_MARKET",
                    stopPrice=format_decimal(round_price(stop_price, tick)),
                    quantity=qty, reduceOnly=True, workingType="MARK_PRICE",
                )
            if take_profit_price:
                self._create_order(
                    symbol=symbol, side=close_side, type="TAKE_PROFIT_MARKET",
                    stopPrice=format_decimal(round_price(take_profit_price, tick)),
                    quantity=qty, reduceOnly=True, workingType="MARK_PRICE",
                )
        except BinanceAPIException as e:
            # Entry already filled: the exposure is real and must be tracked
            logger.exception("Binance SL/TP order error %s (entry %s filled): %s", symbol, order_id, e)
            return OrderResult(success=True, order_id=order_id, avg_price=avg, quantity=quantity,
                               message=f"protective orders failed: {e}")
        return OrderResult(success=True, order_id=order_id, avg_price=avg, quantity=quantity)

    @retry_on_rate_limit(max_retries=2)
    def _cancel_all(self, symbol: str) -> None:
        self._client.futures_cancel_all_open_orders(symbol=symbol)

    def close_position(self, symbol: str) -> OrderResult:
        pos = self.get_open_position(symbol)
        try:
            self._cancel_all(symbol)
            if pos is None:
                return OrderResult(success=True, message="no exchange position")
            res = self._create_order(
                symbol=symbol, side=pos.side.opposite.value, type="MARKET",
                quantity=format_decimal(pos.quantity), reduceOnly=True,
            )
        except BinanceAPIException as e:
            logger.exception("Binance close error %s: %s", symbol, e)
            return OrderResult(success=False, message=str(e))
        avg = float(res.get("avgPrice") or 0.0) or None
        return OrderResult(success=True, order_id=str(res.get("orderId")), avg_price=avg, quantity=pos.quantity)
