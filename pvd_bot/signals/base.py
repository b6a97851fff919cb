"""Shared pass/fail result for the entry filters."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class FilterResult:
    """Outcome of one filter check. ``value`` / ``threshold`` are for logging."""
    passed: bool
    reason: str = ""
    value: Optional[float] = None
    threshold: Optional[float] = None

    def __bool__(self) -> bool:
        return self.passed
