"""Yield checks for cooperative generation.

``DungeonGenerator.step()`` calls its yield check after every unit of work
and returns control to the caller as soon as the check answers True.
"""
from __future__ import annotations

import time
from typing import Callable

YieldCheck = Callable[[], bool]


def never_yield() -> bool:
    """Run to completion in a single ``step()`` call."""
    return False


def always_yield() -> bool:
    """Hand control back after every unit of work."""
    return True


class FrameBudget:
    """Wall-clock budget per ``step()`` call.

    Call ``start()`` (or let the generator do it) at the top of each frame;
    the instance then answers True once ``budget_ms`` has elapsed.
    """

    def __init__(self, budget_ms: float = 8.0, clock: Callable[[], float] = time.perf_counter):
        if budget_ms <= 0:
            raise ValueError("budget_ms must be > 0")
        self.budget_ms = budget_ms
        self._clock = clock
        self._started = clock()
        self.yields = 0

    def start(self) -> None:
        self._started = self._clock()

    def elapsed_ms(self) -> float:
        return (self._clock() - self._started) * 1000.0

    def __call__(self) -> bool:
        if self.elapsed_ms() >= self.budget_ms:
            self.yields += 1
            return True
        return False


__all__ = ["YieldCheck", "never_yield", "always_yield", "FrameBudget"]
