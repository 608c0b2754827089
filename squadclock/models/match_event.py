"""
Value types for a player's match timeline.

This module contains the MatchEvent record appended to a player's event log,
the Position a player occupies, and the derived Stint interval.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class EventKind(Enum):
    """Kinds of timeline events, valued by their wire name."""
    ON = "on"
    OFF = "off"
    POSITION = "position"


@dataclass(frozen=True)
class Position:
    """Where a player lines up: a role (e.g. "DEF") and a side (e.g. "left")."""
    role: Optional[str] = None
    side: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"role": self.role, "side": self.side}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional['Position']:
        """Create from dictionary; ``None`` stays ``None``."""
        if not data:
            return None
        return cls(role=data.get("role"), side=data.get("side"))


def position_to_dict(position: Optional[Position]) -> Optional[Dict[str, Any]]:
    return position.to_dict() if position is not None else None


@dataclass(frozen=True)
class MatchEvent:
    """
    One entry in a player's timeline.

    Attributes:
        kind: Whether the player went on, came off, or changed position
        at_seconds: Match clock time (seconds) when the event happened
        from_position: Previous position (position changes only)
        to_position: New position (position changes only)
    """
    kind: EventKind
    at_seconds: int
    from_position: Optional[Position] = None
    to_position: Optional[Position] = None

    @classmethod
    def on(cls, at_seconds: int) -> 'MatchEvent':
        return cls(EventKind.ON, at_seconds)

    @classmethod
    def off(cls, at_seconds: int) -> 'MatchEvent':
        return cls(EventKind.OFF, at_seconds)

    @classmethod
    def position_change(
        cls,
        at_seconds: int,
        from_position: Optional[Position],
        to_position: Optional[Position],
    ) -> 'MatchEvent':
        return cls(EventKind.POSITION, at_seconds, from_position, to_position)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the wire form ``{"type", "at", "from"?, "to"?}``.

        Returns:
            Dictionary representation suitable for JSON serialization
        """
        data: Dict[str, Any] = {"type": self.kind.value, "at": self.at_seconds}
        if self.kind is EventKind.POSITION:
            data["from"] = position_to_dict(self.from_position)
            data["to"] = position_to_dict(self.to_position)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MatchEvent':
        """
        Create an event from its wire form.

        Raises:
            ValueError: If the event type is unknown
            KeyError: If required keys are missing
        """
        kind = EventKind(data["type"])
        return cls(
            kind=kind,
            at_seconds=max(0, int(data["at"])),
            from_position=Position.from_dict(data.get("from")),
            to_position=Position.from_dict(data.get("to")),
        )


@dataclass(frozen=True)
class Stint:
    """A continuous on-field interval, in match clock seconds."""
    start_seconds: int
    end_seconds: int

    @property
    def duration(self) -> int:
        return self.end_seconds - self.start_seconds

    def to_dict(self) -> Dict[str, int]:
        return {"on": self.start_seconds, "off": self.end_seconds}
