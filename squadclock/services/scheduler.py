"""
Delayed-call scheduling used by the match clock, the debounced saver and the
sync settle delay.

Production code uses ``ThreadingScheduler``; tests inject a scheduler they
advance by hand.
"""
import logging
import threading
import time
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class ScheduledCall(Protocol):
    """Handle to a pending call."""

    def cancel(self) -> None:
        """Prevent the call from running if it has not started yet."""
        ...


class Scheduler(Protocol):
    """Interface for running a callable once after a delay."""

    def call_later(self, delay: float, fn: Callable[[], None]) -> ScheduledCall:
        """Schedule ``fn`` to run once after ``delay`` seconds."""
        ...

    def monotonic(self) -> float:
        """Current time on the clock ``call_later`` delays are measured against."""
        ...


class ThreadingScheduler:
    """Scheduler backed by daemon ``threading.Timer`` threads."""

    def call_later(self, delay: float, fn: Callable[[], None]) -> ScheduledCall:
        timer = threading.Timer(delay, self._run, args=(fn,))
        timer.daemon = True
        timer.start()
        return timer

    def monotonic(self) -> float:
        return time.monotonic()

    @staticmethod
    def _run(fn: Callable[[], None]) -> None:
        try:
            fn()
        except Exception:
            # A failing callback must not kill the timer thread silently
            logger.exception("Scheduled call %r failed", fn)
