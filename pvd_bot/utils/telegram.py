"""Telegram notifications. Never log token or chat_id; never block trading."""

from __future__ import annotations
import logging
import threading
from typing import Optional

import requests

from pvd_bot.core.types import ExitReason, Position, SignalSide

logger = logging.getLogger("pvd_bot.utils.telegram")


def send_telegram(text: str, bot_token: str = "", chat_id: str = "") -> bool:
    """Send message to Telegram. Returns True on success, False otherwise."""
    if not bot_token or not chat_id:
        logger.debug("Telegram not configured, skipping message (len=%d)", len(text))
        return False
    try:
        url = f"https://api.telegram.org/bot{bot_token}/sendMessage"
        payload = {"chat_id": chat_id, "text": text}
        r = requests.post(url, json=payload, timeout=10)
        if r.status_code != 200:
            logger.warning("Telegram send failed: %s %s", r.status_code, r.text[:200])
            return False
        return True
    except Exception as e:
        logger.exception("Telegram error: %s", e)
        return False


class TelegramNotifier:
    """Fire-and-forget: each message goes out on its own daemon thread."""

    def __init__(self, bot_token: str = "", chat_id: str = ""):
        self._bot_token = bot_token
        self._chat_id = chat_id

    @property
    def enabled(self) -> bool:
        return bool(self._bot_token and self._chat_id)

    def notify(self, text: str) -> Optional[threading.Thread]:
        if not self.enabled:
            logger.debug("Telegram disabled: %s", text[:120])
            return None
        t = threading.Thread(
            target=send_telegram,
            args=(text, self._bot_token, self._chat_id),
            name="telegram-notify",
            daemon=True,
        )
        t.start()
        return t

    def entry(self, symbol: str, side: SignalSide, quantity: float, price: float,
              stop_loss: float, take_profit: float, order_id: str) -> None:
        arrow = "📈" if side is SignalSide.LONG else "📉"
        self.notify(
            f"{arrow} Entry {side.name} {symbol}\n"
            f"qty={quantity} price={price:.6f}\n"
            f"SL={stop_loss:.6f} TP={take_profit:.6f}\n"
            f"order={order_id}"
        )

    def exit(self, position: Position) -> None:
        reason = position.exit_reason.value if isinstance(position.exit_reason, ExitReason) else "-"
        self.notify(
            f"Exit {position.side.name} {position.symbol} ({reason})\n"
            f"entry={position.entry_price:.6f} exit={position.exit_price:.6f}\n"
            f"PnL={position.pnl:.4f} ({position.pnl_pct:.2f}%) bars={position.bars_held}"
        )
