"""
Match transitions for the Squad Clock application.

Every function here is a pure transition ``(match, ...) -> match``: it never
mutates its input and never raises on well-typed input. An action that does
not apply (unknown player id, wrong match status, out-of-range stat name)
returns the input unchanged, so callers detect "ignored" by comparing the
result with what they passed in.

The same transitions are reachable by name through ``apply_action`` so that
adapters (the JSON API, replayed action logs) can dispatch them uniformly.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, Iterable, Mapping, Optional

from ..models import MatchAggregate, MatchEvent, PlayerTimeline, Position, SquadMember
from ..utils import (
    STARTING_LINEUP_SIZE, STATUS_COMPLETED, STATUS_LIVE, STATUS_SETUP, now_ms,
)
from ..utils.constants import DEFAULT_VENUE, PLAYER_STATS, SCORE_FIELDS

logger = logging.getLogger(__name__)


class UnknownActionError(ValueError):
    """Raised by ``apply_action`` for an action type it does not know."""


def _ignored(match: MatchAggregate, action: str, reason: str) -> MatchAggregate:
    logger.debug("Ignoring %s on match %s: %s", action, match.id, reason)
    return match


# ----------------------------------------------------------------------
# Lifecycle
# ----------------------------------------------------------------------
def create_match(
    squad: Iterable[SquadMember],
    opponent: str,
    venue: str = DEFAULT_VENUE,
    date: Optional[str] = None,
    description: str = "",
    tag: str = "",
    match_id: Optional[int] = None,
) -> Optional[MatchAggregate]:
    """
    Build a new match in setup from the squad list.

    The first ``STARTING_LINEUP_SIZE`` squad members are marked as starters.

    Returns:
        The new match, or ``None`` when ``opponent`` is blank
    """
    opponent = (opponent or "").strip()
    if not opponent:
        logger.info("Rejecting match creation without an opponent")
        return None

    players = tuple(
        PlayerTimeline(id=member.id, name=member.name, starting=index < STARTING_LINEUP_SIZE)
        for index, member in enumerate(squad)
    )
    return MatchAggregate(
        id=match_id if match_id is not None else now_ms(),
        opponent=opponent,
        venue=venue or DEFAULT_VENUE,
        date=date,
        description=description or "",
        tag=tag or "",
        status=STATUS_SETUP,
        players=players,
    )


def start_match(match: MatchAggregate) -> MatchAggregate:
    """Kick off: starters go on at the current clock, everyone else is benched."""
    if match.status != STATUS_SETUP:
        return _ignored(match, "start_match", f"status is {match.status}")

    at = match.match_seconds
    players = tuple(
        replace(p, running=p.starting, on_field=p.starting,
                events=(MatchEvent.on(at),) if p.starting else ())
        for p in match.players
    )
    logger.info("Match %s vs %s started with %d starters",
                match.id, match.opponent, sum(1 for p in players if p.starting))
    return replace(match, status=STATUS_LIVE, match_running=True, players=players)


def tick(match: MatchAggregate) -> MatchAggregate:
    """Advance the match clock and every running player's timer by one second."""
    if not match.clock_should_run:
        return match
    return replace(
        match,
        match_seconds=match.match_seconds + 1,
        players=tuple(
            replace(p, seconds=p.seconds + 1) if p.running else p
            for p in match.players
        ),
    )


def toggle_clock(match: MatchAggregate) -> MatchAggregate:
    """Pause or resume the match clock; no player events are recorded."""
    return replace(match, match_running=not match.match_running)


def end_match(match: MatchAggregate) -> MatchAggregate:
    """Full time: close every open stint and stop the clock for good."""
    if match.status != STATUS_LIVE:
        return _ignored(match, "end_match", f"status is {match.status}")

    at = match.match_seconds
    players = tuple(
        p.with_event(MatchEvent.off(at), running=False) if p.running else p
        for p in match.players
    )
    logger.info("Match %s ended at %ds, %d-%d",
                match.id, at, match.team_goals, match.opponent_goals)
    return replace(match, status=STATUS_COMPLETED, match_running=False, players=players)


def set_match_seconds(match: MatchAggregate, seconds: int) -> MatchAggregate:
    """Correct the recorded match duration (floored at zero)."""
    return replace(match, match_seconds=max(0, int(seconds)))


def update_match_meta(
    match: MatchAggregate,
    opponent: Optional[str] = None,
    venue: Optional[str] = None,
    date: Optional[str] = None,
    description: Optional[str] = None,
    tag: Optional[str] = None,
) -> MatchAggregate:
    """Change only the metadata fields that are supplied."""
    changes: Dict[str, Any] = {}
    if opponent is not None and opponent.strip():
        changes["opponent"] = opponent.strip()
    if venue is not None:
        changes["venue"] = venue
    if date is not None:
        changes["date"] = date
    if description is not None:
        changes["description"] = description
    if tag is not None:
        changes["tag"] = tag
    return replace(match, **changes) if changes else match


# ----------------------------------------------------------------------
# Player time
# ----------------------------------------------------------------------
def toggle_player_timer(match: MatchAggregate, player_id: int) -> MatchAggregate:
    """Start or stop one player's timer, recording an on/off event."""
    player = match.find_player(player_id)
    if player is None:
        return _ignored(match, "toggle_player_timer", f"no player {player_id}")

    at = match.match_seconds
    if player.running:
        updated = player.with_event(MatchEvent.off(at), running=False)
    else:
        updated = player.with_event(MatchEvent.on(at), running=True, on_field=True)
    return match.with_player(updated)


def sub_off(match: MatchAggregate, player_id: int) -> MatchAggregate:
    """Take a player off the field."""
    player = match.find_player(player_id)
    if player is None:
        return _ignored(match, "sub_off", f"no player {player_id}")
    updated = player.with_event(MatchEvent.off(match.match_seconds), running=False, on_field=False)
    return match.with_player(updated)


def sub_on(match: MatchAggregate, player_id: int) -> MatchAggregate:
    """
    Put a player on the field.

    A player who is already running still gets a second ``on`` event so the
    audit trail shows the repeated action.
    """
    player = match.find_player(player_id)
    if player is None:
        return _ignored(match, "sub_on", f"no player {player_id}")
    if player.running:
        logger.warning("Player %s already on the field in match %s; recording duplicate 'on' at %ds",
                       player_id, match.id, match.match_seconds)
    updated = player.with_event(MatchEvent.on(match.match_seconds), running=True, on_field=True)
    return match.with_player(updated)


def update_player_position(
    match: MatchAggregate, player_id: int, position: Optional[Position]
) -> MatchAggregate:
    """
    Assign a position. While live, a real change is logged as a position event.
    """
    player = match.find_player(player_id)
    if player is None:
        return _ignored(match, "update_player_position", f"no player {player_id}")

    old = player.position or Position()
    new = position or Position()
    changed = old.role != new.role or old.side != new.side
    has_role = old.role is not None or new.role is not None

    if match.is_live and changed and has_role:
        updated = player.with_event(
            MatchEvent.position_change(match.match_seconds, player.position, position),
            position=position,
        )
    else:
        updated = replace(player, position=position)
    return match.with_player(updated)


# ----------------------------------------------------------------------
# Stats and score
# ----------------------------------------------------------------------
def update_stat(match: MatchAggregate, player_id: int, stat: str, delta: int) -> MatchAggregate:
    """
    Increment or decrement a player's goals/assists, floored at zero.

    Goals move the team score by the change actually applied, so a clamped
    decrement does not take a goal off the team.
    """
    if stat not in PLAYER_STATS:
        return _ignored(match, "update_stat", f"unknown stat {stat!r}")
    player = match.find_player(player_id)
    if player is None:
        return _ignored(match, "update_stat", f"no player {player_id}")

    old_value = getattr(player, stat)
    new_value = max(0, old_value + int(delta))
    applied = new_value - old_value

    team_goals = match.team_goals
    if stat == "goals":
        team_goals = max(0, team_goals + applied)
    return replace(match.with_player(replace(player, **{stat: new_value})), team_goals=team_goals)


def update_score(match: MatchAggregate, field: str, delta: int) -> MatchAggregate:
    """Adjust the team or opponent score directly, floored at zero."""
    if field not in SCORE_FIELDS:
        return _ignored(match, "update_score", f"unknown score field {field!r}")
    return replace(match, **{field: max(0, getattr(match, field) + int(delta))})


def bulk_edit_player_stats(
    match: MatchAggregate,
    player_id: int,
    seconds: int,
    goals: int,
    assists: int,
    notes: str,
) -> MatchAggregate:
    """Post-match correction of one player's totals; team goals follow the goal difference."""
    player = match.find_player(player_id)
    if player is None:
        return _ignored(match, "bulk_edit_player_stats", f"no player {player_id}")

    new_goals = max(0, int(goals))
    updated = replace(
        player,
        seconds=max(0, int(seconds)),
        goals=new_goals,
        assists=max(0, int(assists)),
        notes=notes if notes is not None else player.notes,
    )
    team_goals = max(0, match.team_goals + new_goals - player.goals)
    return replace(match.with_player(updated), team_goals=team_goals)


# ----------------------------------------------------------------------
# Roster
# ----------------------------------------------------------------------
def add_player(match: MatchAggregate, name: Optional[str] = None) -> MatchAggregate:
    """Add a benched player; ids are ``max(ids, 0) + 1`` within this match."""
    new_id = max([0, *match.player_ids()]) + 1
    name = (name or "").strip() or f"Player {new_id + 1}"
    return replace(match, players=match.players + (PlayerTimeline(id=new_id, name=name),))


def remove_player(match: MatchAggregate, player_id: int) -> MatchAggregate:
    if match.find_player(player_id) is None:
        return _ignored(match, "remove_player", f"no player {player_id}")
    return replace(match, players=tuple(p for p in match.players if p.id != player_id))


def rename_player(match: MatchAggregate, player_id: int, name: str) -> MatchAggregate:
    player = match.find_player(player_id)
    if player is None or not (name or "").strip():
        return _ignored(match, "rename_player", f"no player {player_id} or blank name")
    return match.with_player(replace(player, name=name.strip()))


def update_player_notes(match: MatchAggregate, player_id: int, notes: str) -> MatchAggregate:
    player = match.find_player(player_id)
    if player is None:
        return _ignored(match, "update_player_notes", f"no player {player_id}")
    return match.with_player(replace(player, notes=notes or ""))


def toggle_starting(match: MatchAggregate, player_id: int) -> MatchAggregate:
    """Move a player in or out of the starting lineup before kick-off."""
    player = match.find_player(player_id)
    if player is None:
        return _ignored(match, "toggle_starting", f"no player {player_id}")
    return match.with_player(replace(player, starting=not player.starting))


# ----------------------------------------------------------------------
# Dispatch
# ----------------------------------------------------------------------
def _position_arg(value: Any) -> Optional[Position]:
    if value is None or isinstance(value, Position):
        return value
    if not isinstance(value, dict):
        raise ValueError(f"position must be an object, got {value!r}")
    return Position.from_dict(value)


# action type -> (transition, {payload key: transition kwarg})
ACTIONS: Dict[str, tuple] = {
    "START_MATCH": (start_match, {}),
    "TICK": (tick, {}),
    "TOGGLE_MATCH_CLOCK": (toggle_clock, {}),
    "END_MATCH": (end_match, {}),
    "UPDATE_MATCH_SECONDS": (set_match_seconds, {"seconds": "seconds"}),
    "UPDATE_MATCH_META": (update_match_meta, {
        "opponent": "opponent", "venue": "venue", "date": "date",
        "description": "description", "tag": "tag",
    }),
    "TOGGLE_TIMER": (toggle_player_timer, {"playerId": "player_id"}),
    "SUB_OFF": (sub_off, {"playerId": "player_id"}),
    "SUB_ON": (sub_on, {"playerId": "player_id"}),
    "UPDATE_PLAYER_POSITION": (update_player_position, {
        "playerId": "player_id", "position": "position",
    }),
    "UPDATE_STAT": (update_stat, {"playerId": "player_id", "stat": "stat", "delta": "delta"}),
    "UPDATE_SCORE": (update_score, {"field": "field", "delta": "delta"}),
    "BULK_EDIT_PLAYER_STATS": (bulk_edit_player_stats, {
        "playerId": "player_id", "seconds": "seconds", "goals": "goals",
        "assists": "assists", "notes": "notes",
    }),
    "ADD_MATCH_PLAYER": (add_player, {"name": "name"}),
    "REMOVE_MATCH_PLAYER": (remove_player, {"playerId": "player_id"}),
    "UPDATE_PLAYER_NAME": (rename_player, {"playerId": "player_id", "name": "name"}),
    "UPDATE_PLAYER_NOTES": (update_player_notes, {"playerId": "player_id", "notes": "notes"}),
    "TOGGLE_STARTING": (toggle_starting, {"playerId": "player_id"}),
}

# Score field names as they arrive from clients
_SCORE_FIELD_ALIASES = {"teamGoals": "team_goals", "opponentGoals": "opponent_goals"}


def apply_action(match: MatchAggregate, action: Mapping[str, Any]) -> MatchAggregate:
    """
    Apply an action dictionary such as ``{"type": "SUB_ON", "playerId": 3}``.

    Raises:
        UnknownActionError: If ``action["type"]`` is not a known transition
        KeyError: If a required payload key is missing
    """
    action_type = action.get("type")
    if action_type not in ACTIONS:
        raise UnknownActionError(f"Unknown action type: {action_type!r}")

    transition, params = ACTIONS[action_type]
    kwargs: Dict[str, Any] = {}
    optional = action_type in ("UPDATE_MATCH_META", "ADD_MATCH_PLAYER")
    for key, kwarg in params.items():
        if key not in action:
            if optional:
                continue
            if kwarg == "position":
                kwargs[kwarg] = None
                continue
            raise KeyError(key)
        kwargs[kwarg] = action[key]

    if "position" in kwargs:
        kwargs["position"] = _position_arg(kwargs["position"])
    if "field" in kwargs:
        kwargs["field"] = _SCORE_FIELD_ALIASES.get(kwargs["field"], kwargs["field"])
    if "player_id" in kwargs:
        kwargs["player_id"] = int(kwargs["player_id"])

    return transition(match, **kwargs)

