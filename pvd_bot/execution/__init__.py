"""Execution: exchange abstraction and Binance Futures implementation."""

from pvd_bot.execution.base import ExecutionClient, OrderResult

__all__ = ["ExecutionClient", "OrderResult"]
