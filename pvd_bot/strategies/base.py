"""Abstract strategy: bounded per-instrument history + entry decision."""

from __future__ import annotations
from abc import ABC, abstractmethod

from pvd_bot.core.types import DeltaSample, MarketSnapshot


class BaseStrategy(ABC):
    """
    Strategy owns the histories of one instrument. ``evaluate`` must not
    mutate them, so calling it twice without a new bar gives the same answer.
    """

    @abstractmethod
    def append(self, snapshot: MarketSnapshot, delta: DeltaSample) -> None:
        """Push a closed bar and its delta into the bounded histories."""
        pass

    @abstractmethod
    def evaluate(self):
        """Entry decision for the latest bar in the history."""
        pass

    def on_bar(self, snapshot: MarketSnapshot, delta: DeltaSample):
        self.append(snapshot, delta)
        return self.evaluate()
