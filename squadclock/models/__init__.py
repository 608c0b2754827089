"""
Models package for the Squad Clock application.

This package contains the core data models used throughout the application.
"""
from .match_event import EventKind, MatchEvent, Position, Stint
from .player_timeline import PlayerTimeline
from .match import MatchAggregate
from .snapshot import AppSnapshot, SquadMember, initial_snapshot
from .sync_item import SyncQueueItem

__all__ = [
    "EventKind", "MatchEvent", "Position", "Stint", "PlayerTimeline",
    "MatchAggregate", "AppSnapshot", "SquadMember", "initial_snapshot",
    "SyncQueueItem",
]
