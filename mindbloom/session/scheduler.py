"""Timer scheduler — the single serialized event queue for one attempt.

Variants declare periodic named timers (countdown, frame, spawn, playback,
move). The scheduler turns "time has advanced to ``now``" into the ordered
list of timer firings that happened in between. Firings are yielded one at
a time so the caller can stop as soon as the game reaches a terminal state;
after cancel_all() nothing more is yielded, even mid-iteration.

Times are monotonic milliseconds supplied by the caller. The scheduler
never reads a clock itself.

Tier 1 leaf module: stdlib only.
"""

from __future__ import annotations

import heapq
from collections.abc import Iterator
from dataclasses import dataclass


@dataclass(frozen=True)
class _Timer:
    name: str
    interval_ms: float
    order: int


class TimerScheduler:
    """Periodic named timers on one serialized queue.

    Args:
        intervals: Timer name → period in ms. Registration order breaks
            ties between timers due at the same instant.
    """

    def __init__(self, intervals: dict[str, float]) -> None:
        for name, interval in intervals.items():
            if interval <= 0:
                raise ValueError(f"Timer {name!r} needs a positive interval, got {interval}")
        self._timers = [
            _Timer(name, interval, order)
            for order, (name, interval) in enumerate(intervals.items())
        ]
        self._queue: list[tuple[float, int, _Timer]] = []
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self, now_ms: float) -> None:
        """Arms every timer; each first fires one interval after ``now_ms``."""
        self._queue = [
            (now_ms + t.interval_ms, t.order, t) for t in self._timers
        ]
        heapq.heapify(self._queue)
        self._running = True

    def cancel_all(self) -> None:
        """Disarms every timer. Idempotent."""
        self._queue = []
        self._running = False

    def run_until(self, now_ms: float) -> Iterator[tuple[float, str]]:
        """Yields ``(fire_at, name)`` for every firing due at or before now.

        Lazy: a timer is re-armed for its next period as each firing is
        yielded, so a caller that stops iterating (or cancels) leaves no
        phantom firings behind.
        """
        while self._running and self._queue and self._queue[0][0] <= now_ms:
            fire_at, order, timer = heapq.heappop(self._queue)
            heapq.heappush(self._queue, (fire_at + timer.interval_ms, order, timer))
            yield fire_at, timer.name
