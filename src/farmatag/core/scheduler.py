"""
Deferred actions - time-delayed follow-ups such as refocusing after a zoom.

ThreadingScheduler runs callbacks on daemon timer threads (fire-and-forget).
VirtualScheduler holds them until its clock is advanced by hand, for
deterministic replay and tests.
"""

import heapq
import itertools
import logging
import threading
import time
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)


class Scheduler(Protocol):
    """Clock plus delayed execution."""

    def now(self) -> float: ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> None: ...

    def cancel_all(self) -> None: ...


class ThreadingScheduler:
    """Monotonic clock with threading.Timer callbacks."""

    def __init__(self):
        self._timers: set[threading.Timer] = set()
        self._lock = threading.Lock()

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callable[[], None]) -> None:
        timer: threading.Timer

        def run():
            with self._lock:
                self._timers.discard(timer)
            callback()

        timer = threading.Timer(delay, run)
        timer.daemon = True
        with self._lock:
            self._timers.add(timer)
        timer.start()

    def cancel_all(self) -> None:
        """Cancel timers that have not fired yet."""
        with self._lock:
            timers, self._timers = self._timers, set()
        for timer in timers:
            timer.cancel()
        if timers:
            logger.debug(f"Cancelled {len(timers)} pending timer(s)")


class VirtualScheduler:
    """
    Manually advanced clock.

    Example:
        scheduler = VirtualScheduler()
        scheduler.call_later(1.0, refocus)
        scheduler.advance_to(1.0)  # refocus runs here
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue: list[tuple[float, int, Callable[[], None]]] = []
        self._sequence = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> None:
        heapq.heappush(self._queue, (self._now + delay, next(self._sequence), callback))

    def advance_to(self, when: float) -> int:
        """
        Move the clock forward, running every callback due on the way.

        Callbacks scheduled while advancing run too if they fall due
        before `when`.

        Returns:
            Number of callbacks run
        """
        ran = 0
        while self._queue and self._queue[0][0] <= when:
            due, _, callback = heapq.heappop(self._queue)
            self._now = max(self._now, due)
            callback()
            ran += 1
        self._now = max(self._now, when)
        return ran

    def advance(self, seconds: float) -> int:
        return self.advance_to(self._now + seconds)

    @property
    def pending(self) -> int:
        return len(self._queue)

    def cancel_all(self) -> None:
        self._queue.clear()
