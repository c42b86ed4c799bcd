"""
monitoring/throughput.py - Observed transaction throughput.

Sliding-window counter fed by accepted submissions. rate() is the number
of events inside the window divided by the window length.
"""

from collections import deque
from typing import Callable

from core.constants import DEFAULT_THROUGHPUT_WINDOW_SECONDS
from core.time import monotonic


class ThroughputMeter:
    """Counts events over a trailing time window."""

    def __init__(
        self,
        window_seconds: float = DEFAULT_THROUGHPUT_WINDOW_SECONDS,
        clock: Callable[[], float] = monotonic,
    ):
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.window_seconds = window_seconds
        self._clock = clock
        self._events: deque[float] = deque()
        self._total = 0

    def record(self, count: int = 1) -> None:
        now = self._clock()
        for _ in range(count):
            self._events.append(now)
        self._total += count
        self._prune(now)

    def _prune(self, now: float) -> None:
        cutoff = now - self.window_seconds
        while self._events and self._events[0] <= cutoff:
            self._events.popleft()

    def count_in_window(self) -> int:
        self._prune(self._clock())
        return len(self._events)

    def rate(self) -> float:
        """Events per second over the window."""
        return self.count_in_window() / self.window_seconds

    @property
    def total(self) -> int:
        return self._total

    def snapshot(self) -> dict[str, float]:
        return {
            "tps": round(self.rate(), 3),
            "window_seconds": self.window_seconds,
            "in_window": self.count_in_window(),
            "total": self._total,
        }
