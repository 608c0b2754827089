"""
PlayerTimeline model for the Squad Clock application.

This module contains the PlayerTimeline dataclass which represents one
player's participation in a single match: the append-only event log plus
the live counters (seconds played, goals, assists) derived while the match
is running.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

from .match_event import MatchEvent, Position, position_to_dict


@dataclass(frozen=True)
class PlayerTimeline:
    """
    A player's state within one match.

    Attributes:
        id: Roster-local integer id (unique within the owning match only)
        name: Display name
        seconds: Seconds accumulated on the field (advanced by clock ticks)
        running: Whether the player's timer is currently accumulating
        on_field: Whether the player is currently on the field
        starting: Whether the player is in the starting lineup
        goals: Goals scored in this match
        assists: Assists in this match
        notes: Free-form coach notes
        position: Current position, if assigned
        events: Ordered on/off/position events
    """
    id: int
    name: str
    seconds: int = 0
    running: bool = False
    on_field: bool = False
    starting: bool = False
    goals: int = 0
    assists: int = 0
    notes: str = ""
    position: Optional[Position] = None
    events: Tuple[MatchEvent, ...] = field(default_factory=tuple)

    def with_event(self, event: MatchEvent, **changes: Any) -> 'PlayerTimeline':
        """Return a copy with ``event`` appended and ``changes`` applied."""
        return replace(self, events=self.events + (event,), **changes)

    def to_json(self) -> Dict[str, Any]:
        """
        Convert to JSON-serializable dictionary.

        Returns:
            Dictionary using the persisted key names
        """
        return {
            "id": self.id,
            "name": self.name,
            "seconds": self.seconds,
            "running": self.running,
            "starting": self.starting,
            "onField": self.on_field,
            "goals": self.goals,
            "assists": self.assists,
            "notes": self.notes,
            "position": position_to_dict(self.position),
            "events": [e.to_dict() for e in self.events],
        }

    @staticmethod
    def from_json(data: Dict[str, Any]) -> 'PlayerTimeline':
        """
        Create a PlayerTimeline from its persisted dictionary.

        Missing counters default to zero; a player whose timer is running
        is always treated as on the field.
        """
        on_field = bool(data.get("onField", False))
        running = bool(data.get("running", False))
        if running and not on_field:
            # Older saves never set onField when a timer was toggled on
            on_field = True
        return PlayerTimeline(
            id=int(data["id"]),
            name=str(data.get("name") or ""),
            seconds=max(0, int(data.get("seconds") or 0)),
            running=running,
            on_field=on_field,
            starting=bool(data.get("starting", False)),
            goals=max(0, int(data.get("goals") or 0)),
            assists=max(0, int(data.get("assists") or 0)),
            notes=str(data.get("notes") or ""),
            position=Position.from_dict(data.get("position")),
            events=tuple(MatchEvent.from_dict(e) for e in data.get("events") or []),
        )
