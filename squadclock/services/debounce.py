"""Debounced calls: run once after a quiet period with no new triggers."""

import logging
import threading
from typing import Callable, Optional

from .scheduler import ScheduledCall, Scheduler, ThreadingScheduler

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Collapses bursts of ``trigger()`` calls into a single call of ``fn``.

    Every trigger cancels the pending call and schedules a new one ``delay``
    seconds out, so ``fn`` runs once the triggers stop.
    """

    def __init__(self, fn: Callable[[], None], delay: float, scheduler: Optional[Scheduler] = None):
        self._fn = fn
        self._delay = delay
        self._scheduler = scheduler or ThreadingScheduler()
        self._lock = threading.Lock()
        self._pending: Optional[ScheduledCall] = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def trigger(self) -> None:
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
            self._generation += 1
            generation = self._generation
            self._pending = self._scheduler.call_later(self._delay, lambda: self._fire(generation))

    def cancel(self) -> bool:
        """Drop the pending call. Returns True if one was dropped."""
        with self._lock:
            return self._take_pending()

    def flush(self) -> bool:
        """Run the pending call now. Returns True if there was one."""
        with self._lock:
            had_pending = self._take_pending()
        if had_pending:
            self._fn()
        return had_pending

    def _take_pending(self) -> bool:
        if self._pending is None:
            return False
        self._pending.cancel()
        self._pending = None
        self._generation += 1
        return True

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._pending is None:
                return
            self._pending = None
        self._fn()
