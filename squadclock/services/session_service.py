"""
Session service for the Squad Clock application.

``MatchSession`` is the one owner of the application snapshot and of the
match currently being edited. Every mutation runs under the session lock, so
clock ticks and user actions never interleave. After each effective change
the session reconciles the match clock with the current match and schedules
a debounced save through the ``SnapshotWriter``.
"""
import logging
import threading
from dataclasses import replace
from typing import Any, Callable, Dict, Mapping, Optional

from .clock_service import MatchClock
from .debounce import Debouncer
from .match_transitions import apply_action, create_match, tick
from .scheduler import Scheduler
from .snapshot_writer import SnapshotWriter
from ..models import AppSnapshot, MatchAggregate, SquadMember, initial_snapshot
from ..utils import SAVE_DEBOUNCE_SECONDS, TICK_INTERVAL_SECONDS

logger = logging.getLogger(__name__)


class MatchSession:
    """Owns the snapshot, the current match, its clock and the save path."""

    def __init__(
        self,
        writer: SnapshotWriter,
        scheduler: Optional[Scheduler] = None,
        save_delay: float = SAVE_DEBOUNCE_SECONDS,
        tick_interval: float = TICK_INTERVAL_SECONDS,
        flush_on_close: bool = True,
        snapshot: Optional[AppSnapshot] = None,
    ):
        self.writer = writer
        self.flush_on_close = flush_on_close
        self._lock = threading.RLock()
        self._snapshot = snapshot or initial_snapshot()
        self.clock = MatchClock(self._on_tick, scheduler=scheduler, interval=tick_interval)
        self._saver = Debouncer(self._save_now, save_delay, scheduler=scheduler)
        self.last_save_outcome: Optional[str] = None

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------
    @property
    def snapshot(self) -> AppSnapshot:
        return self._snapshot

    @property
    def current_match(self) -> Optional[MatchAggregate]:
        return self._snapshot.current_match

    @property
    def save_pending(self) -> bool:
        return self._saver.pending

    def load(self) -> AppSnapshot:
        """
        Restore the last saved snapshot, falling back to a fresh state.

        A payload that cannot be decoded is a data-loss path: it is logged
        at ERROR and replaced with the initial state.
        """
        payload = self.writer.load()
        if payload is None:
            logger.info("No saved snapshot; starting fresh")
            snapshot = initial_snapshot()
        else:
            try:
                snapshot = AppSnapshot.from_json(payload)
            except (TypeError, KeyError, ValueError, AttributeError) as e:
                logger.error("Saved snapshot is malformed, starting fresh (data lost): %s", e)
                snapshot = initial_snapshot()
        with self._lock:
            self.clock.stop()
            self._snapshot = snapshot
            self._sync_clock()
        return snapshot

    # ------------------------------------------------------------------
    # Mutation plumbing
    # ------------------------------------------------------------------
    def _commit(self, snapshot: AppSnapshot) -> None:
        self._snapshot = snapshot
        self._sync_clock()
        self._saver.trigger()

    def _sync_clock(self) -> None:
        match = self._snapshot.current_match
        if match is not None and match.clock_should_run:
            self.clock.start()
        else:
            self.clock.stop()

    def _on_tick(self, generation: int) -> None:
        with self._lock:
            if not self.clock.is_current(generation):
                logger.debug("Dropping stale tick from clock generation %d", generation)
                return
            match = self._snapshot.current_match
            if match is None or not match.clock_should_run:
                self.clock.stop()
                return
            self._commit(self._snapshot.with_current_match(tick(match)))

    def update_match(
        self, transition: Callable[..., MatchAggregate], *args: Any, **kwargs: Any
    ) -> Optional[MatchAggregate]:
        """
        Run a transition against the current match and commit the result.

        Returns:
            The (possibly unchanged) current match, or None if there is none
        """
        with self._lock:
            match = self._snapshot.current_match
            if match is None:
                logger.debug("No current match; ignoring %s", getattr(transition, "__name__", transition))
                return None
            updated = transition(match, *args, **kwargs)
            if updated is not match:
                self._commit(self._snapshot.with_current_match(updated))
            return updated

    def dispatch(self, action: Mapping[str, Any]) -> Optional[MatchAggregate]:
        """Apply an action dictionary to the current match (see ``apply_action``)."""
        return self.update_match(apply_action, action)

    # ------------------------------------------------------------------
    # Matches
    # ------------------------------------------------------------------
    def create_match(self, opponent: str, **meta: Any) -> Optional[MatchAggregate]:
        """Create a match from the squad and make it current."""
        with self._lock:
            match = create_match(self._snapshot.squad, opponent, **meta)
            if match is None:
                return None
            self.clock.stop()
            self._commit(self._snapshot.with_current_match(match))
            logger.info("Created match %s vs %s", match.id, match.opponent)
            return match

    def select_match(self, match_id: int) -> Optional[MatchAggregate]:
        """Make another match current; the old match's clock stops."""
        with self._lock:
            match = self._snapshot.find_match(match_id)
            if match is None:
                logger.debug("No match %s to select", match_id)
                return None
            self.clock.stop()
            self._commit(self._snapshot.with_current_match(match))
            return match

    def delete_match(self, match_id: Optional[int] = None) -> bool:
        """Delete a match (the current one by default)."""
        with self._lock:
            current = self._snapshot.current_match
            if match_id is None:
                if current is None:
                    return False
                match_id = current.id
            if self._snapshot.find_match(match_id) is None:
                return False
            snapshot = replace(
                self._snapshot,
                matches=tuple(m for m in self._snapshot.matches if m.id != match_id),
            )
            if current is not None and current.id == match_id:
                snapshot = replace(snapshot, current_match=None)
            self._commit(snapshot)
            logger.info("Deleted match %s", match_id)
            return True

    # ------------------------------------------------------------------
    # Squad and team
    # ------------------------------------------------------------------
    def add_squad_player(self, name: str) -> Optional[SquadMember]:
        name = (name or "").strip()
        if not name:
            return None
        with self._lock:
            member = SquadMember(id=self._snapshot.next_player_id, name=name)
            self._commit(replace(
                self._snapshot,
                squad=self._snapshot.squad + (member,),
                next_player_id=member.id + 1,
            ))
            return member

    def remove_squad_player(self, player_id: int) -> bool:
        with self._lock:
            squad = tuple(p for p in self._snapshot.squad if p.id != player_id)
            if len(squad) == len(self._snapshot.squad):
                return False
            self._commit(replace(self._snapshot, squad=squad))
            return True

    def rename_squad_player(self, player_id: int, name: str) -> bool:
        name = (name or "").strip()
        with self._lock:
            if not name or not any(p.id == player_id for p in self._snapshot.squad):
                return False
            squad = tuple(replace(p, name=name) if p.id == player_id else p for p in self._snapshot.squad)
            self._commit(replace(self._snapshot, squad=squad))
            return True

    def reorder_squad(self, from_index: int, to_index: int) -> bool:
        with self._lock:
            squad = list(self._snapshot.squad)
            if not (0 <= from_index < len(squad) and 0 <= to_index < len(squad)):
                return False
            squad.insert(to_index, squad.pop(from_index))
            self._commit(replace(self._snapshot, squad=tuple(squad)))
            return True

    def set_team_title(self, title: str) -> bool:
        title = (title or "").strip()
        if not title:
            return False
        with self._lock:
            self._commit(replace(self._snapshot, team_title=title))
            return True

    # ------------------------------------------------------------------
    # Saving and shutdown
    # ------------------------------------------------------------------
    def _save_now(self) -> None:
        with self._lock:
            payload = self._snapshot.to_json()
        self.last_save_outcome = self.writer.write(payload)

    def flush(self) -> bool:
        """Run a pending debounced save immediately. Returns True if one ran."""
        return self._saver.flush()

    def close(self) -> None:
        """Stop the clock and flush or drop the pending save."""
        with self._lock:
            self.clock.stop()
        if self.flush_on_close:
            self.flush()
        elif self._saver.cancel():
            logger.info("Dropped pending save on close")

    def sync_status(self) -> Dict[str, Any]:
        status = self.writer.queue.status()
        status["save_pending"] = self.save_pending
        status["last_save_outcome"] = self.last_save_outcome
        status["revision"] = self.writer.revision
        return status
