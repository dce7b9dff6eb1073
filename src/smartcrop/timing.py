"""Stopwatch handed to the planner for timing a single call."""

from __future__ import annotations

import time
from typing import Callable, Optional


class Stopwatch:
    """Measure elapsed wall time from an injected clock.

    Parameters
    ----------
    clock
        Callable returning seconds as a float; ``time.perf_counter`` by default.
    """

    def __init__(self, clock: Callable[[], float] = time.perf_counter) -> None:
        self._clock = clock
        self._start: Optional[float] = None

    def start(self) -> "Stopwatch":
        self._start = self._clock()
        return self

    def elapsed_ms(self) -> float:
        if self._start is None:
            return 0.0
        return (self._clock() - self._start) * 1000

    def mark(self) -> str:
        return "%.1fms" % self.elapsed_ms()
