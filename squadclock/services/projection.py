"""
Tabular projection of a match for the remote store's reporting tables.

One row per match (``matches``) and one per match player (``match_players``,
keyed by ``(match_id, player_id)``). The rows are a denormalised copy of the
aggregate; the snapshot stays the source of truth.
"""
from typing import Any, Dict, List, Optional

from ..models import MatchAggregate


def match_row(match: MatchAggregate, team_id: Optional[str] = None) -> Dict[str, Any]:
    row = {
        "id": match.id,
        "opponent": match.opponent,
        "venue": match.venue,
        "date": match.date or "",
        "description": match.description,
        "tag": match.tag,
        "status": match.status,
        "team_goals": match.team_goals,
        "opponent_goals": match.opponent_goals,
        "match_seconds": match.match_seconds,
        "match_running": match.match_running,
    }
    if team_id is not None:
        row["team_id"] = team_id
    return row


def match_player_rows(match: MatchAggregate) -> List[Dict[str, Any]]:
    return [
        {
            "match_id": match.id,
            "player_id": p.id,
            "player_name": p.name,
            "seconds": p.seconds,
            "starting": p.starting,
            "goals": p.goals,
            "assists": p.assists,
            "notes": p.notes,
            "events": [e.to_dict() for e in p.events],
            "position_role": p.position.role if p.position else None,
            "position_side": p.position.side if p.position else None,
        }
        for p in match.players
    ]
