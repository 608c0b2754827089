"""
MatchAggregate model for the Squad Clock application.

This module contains the MatchAggregate dataclass which represents the
complete state of one match: metadata, roster of player timelines, score,
status and match clock. Transitions live in
``squadclock.services.match_transitions``; this module only holds data and
its persisted form.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Optional, Tuple

from .player_timeline import PlayerTimeline
from ..utils import STATUS_SETUP, STATUS_LIVE, STATUS_COMPLETED
from ..utils.constants import DEFAULT_VENUE

VALID_STATUSES = (STATUS_SETUP, STATUS_LIVE, STATUS_COMPLETED)


@dataclass(frozen=True)
class MatchAggregate:
    """
    Represents one match and everything recorded about it.

    Attributes:
        id: Match id (epoch milliseconds at creation)
        opponent: Opponent name (never blank)
        venue: "home" or "away"
        date: ISO date string of the fixture
        description: Free-form description
        tag: Free-form label (e.g. competition)
        status: "setup", "live" or "completed"
        players: Roster, in squad order; ids unique within this match
        team_goals: Goals for
        opponent_goals: Goals against
        match_seconds: Match clock in seconds
        match_running: Whether the match clock is running
    """
    id: int
    opponent: str
    venue: str = DEFAULT_VENUE
    date: Optional[str] = None
    description: str = ""
    tag: str = ""
    status: str = STATUS_SETUP
    players: Tuple[PlayerTimeline, ...] = field(default_factory=tuple)
    team_goals: int = 0
    opponent_goals: int = 0
    match_seconds: int = 0
    match_running: bool = False

    @property
    def is_live(self) -> bool:
        return self.status == STATUS_LIVE

    @property
    def is_completed(self) -> bool:
        return self.status == STATUS_COMPLETED

    @property
    def clock_should_run(self) -> bool:
        """True while the 1 Hz clock must be ticking for this match."""
        return self.is_live and self.match_running

    def find_player(self, player_id: int) -> Optional[PlayerTimeline]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def player_ids(self) -> Iterable[int]:
        return (p.id for p in self.players)

    def with_player(self, updated: PlayerTimeline) -> 'MatchAggregate':
        """Return a copy with the player of the same id replaced."""
        return replace(
            self,
            players=tuple(updated if p.id == updated.id else p for p in self.players),
        )

    def to_json(self) -> Dict[str, Any]:
        """
        Convert MatchAggregate to JSON-serializable dictionary.

        Returns:
            Dictionary representation suitable for JSON serialization
        """
        return {
            "id": self.id,
            "opponent": self.opponent,
            "venue": self.venue,
            "date": self.date,
            "description": self.description,
            "tag": self.tag,
            "status": self.status,
            "players": [p.to_json() for p in self.players],
            "teamGoals": self.team_goals,
            "opponentGoals": self.opponent_goals,
            "matchSeconds": self.match_seconds,
            "matchRunning": self.match_running,
        }

    @staticmethod
    def from_json(data: Dict[str, Any]) -> 'MatchAggregate':
        """
        Create MatchAggregate from JSON dictionary.

        Args:
            data: Dictionary with match data

        Returns:
            New MatchAggregate instance

        Raises:
            KeyError: If the match id is missing
            ValueError: If the status or a numeric field is malformed
        """
        status = data.get("status") or STATUS_SETUP
        if status not in VALID_STATUSES:
            raise ValueError(f"Unknown match status: {status!r}")

        players = tuple(PlayerTimeline.from_json(p) for p in data.get("players") or [])
        if len({p.id for p in players}) != len(players):
            raise ValueError(f"Duplicate player ids in match {data.get('id')}")

        return MatchAggregate(
            id=int(data["id"]),
            opponent=str(data.get("opponent") or ""),
            venue=data.get("venue") or DEFAULT_VENUE,
            date=data.get("date"),
            description=data.get("description") or "",
            tag=data.get("tag") or "",
            status=status,
            players=players,
            team_goals=max(0, int(data.get("teamGoals") or 0)),
            opponent_goals=max(0, int(data.get("opponentGoals") or 0)),
            match_seconds=max(0, int(data.get("matchSeconds") or 0)),
            match_running=bool(data.get("matchRunning", False)),
        )
