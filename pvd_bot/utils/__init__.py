"""Utils: Telegram, intervals, exchange filters."""

from pvd_bot.utils.telegram import send_telegram, TelegramNotifier
from pvd_bot.utils.timeframes import interval_seconds

__all__ = ["send_telegram", "TelegramNotifier", "interval_seconds"]
