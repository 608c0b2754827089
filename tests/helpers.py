"""Shared test doubles."""
from typing import Callable, List, Optional

from squadclock.models import MatchAggregate
from squadclock.models.snapshot import SquadMember
from squadclock.services.match_transitions import create_match


class ManualCall:
    def __init__(self, due: float, fn: Callable[[], None]):
        self.due = due
        self.fn = fn
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose time only moves when a test calls ``advance``."""

    def __init__(self) -> None:
        self.now = 0.0
        self.calls: List[ManualCall] = []

    def call_later(self, delay: float, fn: Callable[[], None]) -> ManualCall:
        call = ManualCall(self.now + delay, fn)
        self.calls.append(call)
        return call

    def monotonic(self) -> float:
        return self.now

    @property
    def pending(self) -> List[ManualCall]:
        return [c for c in self.calls if not c.cancelled]

    def advance(self, seconds: float) -> None:
        """Run every call that falls due within ``seconds``, in due order."""
        target = self.now + seconds
        while True:
            due = [c for c in self.pending if c.due <= target]
            if not due:
                break
            call = min(due, key=lambda c: c.due)
            self.calls.remove(call)
            self.now = call.due
            call.fn()
        self.now = target


def make_squad(count: int = 12) -> List[SquadMember]:
    return [SquadMember(id=i, name=f"Player {i}") for i in range(count)]


def make_match(count: int = 12, opponent: str = "City FC", match_id: Optional[int] = 1) -> MatchAggregate:
    return create_match(make_squad(count), opponent, match_id=match_id)
