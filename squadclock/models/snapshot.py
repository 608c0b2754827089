"""
AppSnapshot model for the Squad Clock application.

The snapshot is the unit of persistence: the squad list, every match, the
team title and the match currently being edited. It is what gets written
to the local store, the remote store and the offline sync queue.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

from .match import MatchAggregate
from ..utils.constants import DEFAULT_SQUAD, DEFAULT_TEAM_TITLE


@dataclass(frozen=True)
class SquadMember:
    """A player on the club's squad list."""
    id: int
    name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SquadMember':
        return cls(id=int(data["id"]), name=str(data.get("name") or ""))


@dataclass(frozen=True)
class AppSnapshot:
    """
    Complete persisted application state.

    Attributes:
        matches: Every match, oldest first
        squad: Squad list in lineup order
        next_player_id: Next id handed to a new squad member
        team_title: Display title of the team
        current_match: The match being edited, if any (also present in matches)
    """
    matches: Tuple[MatchAggregate, ...] = field(default_factory=tuple)
    squad: Tuple[SquadMember, ...] = field(default_factory=tuple)
    next_player_id: int = 0
    team_title: str = DEFAULT_TEAM_TITLE
    current_match: Optional[MatchAggregate] = None

    def find_match(self, match_id: int) -> Optional[MatchAggregate]:
        for match in self.matches:
            if match.id == match_id:
                return match
        return None

    def with_current_match(self, match: Optional[MatchAggregate]) -> 'AppSnapshot':
        """
        Return a copy whose current match is ``match``, written back into
        ``matches`` by id.
        """
        if match is None:
            return replace(self, current_match=None)
        if self.find_match(match.id) is None:
            matches = self.matches + (match,)
        else:
            matches = tuple(match if m.id == match.id else m for m in self.matches)
        return replace(self, matches=matches, current_match=match)

    def to_json(self) -> Dict[str, Any]:
        """
        Convert to the persisted snapshot shape.

        Returns:
            ``{matches, squad, nextPlayerId, teamTitle, currentMatch}``
        """
        return {
            "matches": [m.to_json() for m in self.matches],
            "squad": [p.to_dict() for p in self.squad],
            "nextPlayerId": self.next_player_id,
            "teamTitle": self.team_title,
            "currentMatch": self.current_match.to_json() if self.current_match else None,
        }

    @staticmethod
    def from_json(data: Dict[str, Any]) -> 'AppSnapshot':
        """
        Create AppSnapshot from its persisted dictionary.

        Raises:
            TypeError, KeyError, ValueError: If the payload is malformed
        """
        if not isinstance(data, dict):
            raise TypeError(f"Snapshot must be a JSON object, got {type(data).__name__}")

        matches = tuple(MatchAggregate.from_json(m) for m in data.get("matches") or [])
        squad = tuple(SquadMember.from_dict(p) for p in data.get("squad") or [])
        next_id = int(data.get("nextPlayerId") or 0)
        next_id = max([next_id] + [p.id + 1 for p in squad])

        current = None
        if data.get("currentMatch"):
            current = MatchAggregate.from_json(data["currentMatch"])

        snapshot = AppSnapshot(
            matches=matches,
            squad=squad,
            next_player_id=next_id,
            team_title=data.get("teamTitle") or DEFAULT_TEAM_TITLE,
        )
        return snapshot.with_current_match(current)


def initial_snapshot(names: Optional[List[str]] = None) -> AppSnapshot:
    """Fresh state for a first run: default squad, no matches."""
    names = DEFAULT_SQUAD if names is None else names
    squad = tuple(SquadMember(id=i, name=name) for i, name in enumerate(names))
    return AppSnapshot(squad=squad, next_player_id=len(squad))
