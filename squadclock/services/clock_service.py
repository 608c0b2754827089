"""Clock service for the Squad Clock application."""

import logging
import threading
from typing import Callable, Optional

from .scheduler import ScheduledCall, Scheduler, ThreadingScheduler
from ..utils import TICK_INTERVAL_SECONDS

logger = logging.getLogger(__name__)


class MatchClock:
    """
    Fires ``on_tick(generation)`` once per interval while started.

    Every ``start()`` and ``stop()`` begins a new generation. A tick from an
    older generation is dropped here, and the owner of the match must call
    ``is_current(generation)`` under its own lock before applying a tick, so
    a tick that was already in flight when the clock stopped never advances
    a match.

    Ticks are scheduled at a fixed rate from the start time, so time spent in
    ``on_tick`` does not make the clock drift.
    """

    def __init__(
        self,
        on_tick: Callable[[int], None],
        scheduler: Optional[Scheduler] = None,
        interval: float = TICK_INTERVAL_SECONDS,
    ):
        self._on_tick = on_tick
        self._scheduler = scheduler or ThreadingScheduler()
        self._interval = interval
        self._lock = threading.Lock()
        self._pending: Optional[ScheduledCall] = None
        self._generation = 0
        self._running = False
        self._started_at = 0.0
        self._fired = 0

    @property
    def running(self) -> bool:
        return self._running

    def is_current(self, generation: int) -> bool:
        """True if ``generation`` belongs to the clock's current run."""
        with self._lock:
            return self._running and generation == self._generation

    def start(self) -> None:
        """Start ticking; calling it while already running does nothing."""
        with self._lock:
            if self._running:
                return
            self._running = True
            self._generation += 1
            self._started_at = self._scheduler.monotonic()
            self._fired = 0
            self._arm(self._generation)
        logger.debug("Match clock started")

    def stop(self) -> None:
        """Cancel the pending tick and stop re-arming."""
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._generation += 1
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None
        logger.debug("Match clock stopped")

    def _arm(self, generation: int) -> None:
        due = self._started_at + (self._fired + 1) * self._interval
        delay = max(0.0, due - self._scheduler.monotonic())
        self._pending = self._scheduler.call_later(delay, lambda: self._fire(generation))

    def _fire(self, generation: int) -> None:
        with self._lock:
            if not self._running or generation != self._generation:
                return
            self._pending = None
            self._fired += 1
        try:
            self._on_tick(generation)
        finally:
            with self._lock:
                if self._running and generation == self._generation and self._pending is None:
                    self._arm(generation)
