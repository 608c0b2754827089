"""Stints and derived playing-time statistics for the Squad Clock."""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Sequence

from ..models import EventKind, MatchAggregate, MatchEvent, PlayerTimeline, Stint
from ..utils import fmt_mmss, round_minutes

logger = logging.getLogger(__name__)

RESULT_WIN = "win"
RESULT_DRAW = "draw"
RESULT_LOSS = "loss"


def derive_stints(events: Sequence[MatchEvent], current_seconds: int) -> List[Stint]:
    """
    Pair on/off events into on-field intervals.

    An ``on`` with no later ``off`` is closed at ``current_seconds`` (the
    player is still on the field now). An ``on`` that follows another ``on``
    replaces the earlier open start; the earlier interval is dropped.

    Args:
        events: A player's event log, in stored order (not modified)
        current_seconds: The match clock "now"

    Returns:
        Stints in the order they were opened
    """
    stints: List[Stint] = []
    open_at: Optional[int] = None
    for event in events:
        if event.kind is EventKind.ON:
            if open_at is not None:
                logger.warning(
                    "Repeated 'on' at %ds drops unterminated stint opened at %ds",
                    event.at_seconds, open_at,
                )
            open_at = event.at_seconds
        elif event.kind is EventKind.OFF and open_at is not None:
            stints.append(Stint(open_at, event.at_seconds))
            open_at = None
    if open_at is not None:
        stints.append(Stint(open_at, current_seconds))
    return stints


def player_stints(match: MatchAggregate, player: PlayerTimeline) -> List[Stint]:
    return derive_stints(player.events, match.match_seconds)


def played_seconds(stints: Iterable[Stint]) -> int:
    """Total on-field seconds covered by ``stints``."""
    return sum(s.duration for s in stints)


def minutes_off(match: MatchAggregate, player: PlayerTimeline) -> int:
    """Whole minutes the player spent off the field, never negative."""
    return max(0, round_minutes(match.match_seconds) - round_minutes(player.seconds))


def match_result(match: MatchAggregate) -> str:
    if match.team_goals > match.opponent_goals:
        return RESULT_WIN
    if match.team_goals < match.opponent_goals:
        return RESULT_LOSS
    return RESULT_DRAW


def player_match_summary(match: MatchAggregate) -> List[Dict[str, object]]:
    """
    Per-player rows for one match, most minutes first.

    Returns:
        A list of dictionaries with minutes played/off, stints and stats
    """
    rows = []
    for player in sorted(match.players, key=lambda p: p.seconds, reverse=True):
        stints = player_stints(match, player)
        rows.append({
            "id": player.id,
            "name": player.name,
            "seconds": player.seconds,
            "minutes_played": round_minutes(player.seconds),
            "minutes_off": minutes_off(match, player),
            "stints": [s.to_dict() for s in stints],
            "stints_label": "; ".join(
                f"{fmt_mmss(s.start_seconds)}-{fmt_mmss(s.end_seconds)}" for s in stints
            ),
            "goals": player.goals,
            "assists": player.assists,
            "notes": player.notes,
        })
    return rows


def match_summary(match: MatchAggregate) -> Dict[str, object]:
    """Headline figures and player rows for one match."""
    return {
        "id": match.id,
        "opponent": match.opponent,
        "date": match.date,
        "venue": match.venue,
        "tag": match.tag,
        "description": match.description,
        "status": match.status,
        "result": match_result(match),
        "team_goals": match.team_goals,
        "opponent_goals": match.opponent_goals,
        "match_seconds": match.match_seconds,
        "match_time": fmt_mmss(match.match_seconds),
        "players": player_match_summary(match),
    }


def season_summary(matches: Iterable[MatchAggregate]) -> Dict[str, object]:
    """
    Record and per-player totals over completed matches.

    Players are aggregated by name across matches, since roster ids are only
    unique within one match. A match counts as played for a player who
    accumulated any time in it.
    """
    completed = [m for m in matches if m.is_completed]
    results = [match_result(m) for m in completed]
    goals_for = sum(m.team_goals for m in completed)
    goals_against = sum(m.opponent_goals for m in completed)

    totals: "OrderedDict[str, Dict[str, object]]" = OrderedDict()
    for match in completed:
        for player in match.players:
            entry = totals.setdefault(player.name, {
                "name": player.name, "matches": 0, "total_minutes": 0,
                "goals": 0, "assists": 0,
            })
            entry["total_minutes"] += round_minutes(player.seconds)
            if player.seconds > 0:
                entry["matches"] += 1
            entry["goals"] += player.goals
            entry["assists"] += player.assists

    return {
        "played": len(completed),
        "wins": results.count(RESULT_WIN),
        "draws": results.count(RESULT_DRAW),
        "losses": results.count(RESULT_LOSS),
        "goals_for": goals_for,
        "goals_against": goals_against,
        "goal_difference": goals_for - goals_against,
        "players": sorted(totals.values(), key=lambda e: e["total_minutes"], reverse=True),
    }
