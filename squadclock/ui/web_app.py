"""
Web application module for the Squad Clock.

This module contains the Flask server exposing the match session as JSON API
endpoints. It holds no match logic of its own: every request is translated
into a session call and the resulting state is returned.
"""
import logging
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request

from ..config import Config
from ..models import MatchAggregate
from ..services import MatchSession, ServiceFactory, UnknownActionError
from ..services.stint_service import derive_stints, match_summary, season_summary
from ..utils import APP_TITLE, configure_logging

logger = logging.getLogger(__name__)


class WebAppState:
    """
    State holder for one web application instance.

    Owns the services built by the factory; the session it exposes is the
    single owner of the current match.
    """

    def __init__(self, config: Any = Config, session: Optional[MatchSession] = None):
        self.service_factory = ServiceFactory(config)
        self.session = session or self.service_factory.create_session()

    @property
    def queue(self):
        return self.session.writer.queue


def _match_view(match: Optional[MatchAggregate]) -> Optional[Dict[str, Any]]:
    if match is None:
        return None
    data = match.to_json()
    for player_data, player in zip(data["players"], match.players):
        player_data["stints"] = [s.to_dict() for s in derive_stints(player.events, match.match_seconds)]
    return data


def create_app(config: Any = Config, session: Optional[MatchSession] = None) -> Flask:
    """
    Create and configure the Flask application with API endpoints.

    Args:
        config: Configuration object (see ``squadclock.config.Config``)
        session: Pre-built session; one is created from ``config`` if omitted

    Returns:
        Configured Flask application instance
    """
    configure_logging(getattr(config, "LOG_LEVEL", "INFO"))
    app = Flask(__name__)
    app_state = WebAppState(config, session)
    app.extensions["squadclock"] = app_state

    def _error(message: str, status: int = 400):
        return jsonify({"success": False, "error": message}), status

    # ==================== State ==================== #

    @app.route("/api/state", methods=["GET"])
    def get_state():
        """Full snapshot plus derived stints for the current match."""
        snapshot = app_state.session.snapshot
        data = snapshot.to_json()
        data["currentMatch"] = _match_view(snapshot.current_match)
        return jsonify({
            "success": True,
            "state": data,
            "sync": app_state.session.sync_status(),
        })

    # ==================== Matches ==================== #

    @app.route("/api/matches", methods=["POST"])
    def create_match():
        """Create a match from the squad and make it current."""
        data = request.get_json(silent=True) or {}
        match = app_state.session.create_match(
            data.get("opponent", ""),
            venue=data.get("venue") or "home",
            date=data.get("date"),
            description=data.get("description", ""),
            tag=data.get("tag", ""),
        )
        if match is None:
            return _error("Opponent name is required")
        return jsonify({"success": True, "match": _match_view(match)}), 201

    @app.route("/api/matches/<int:match_id>/select", methods=["POST"])
    def select_match(match_id: int):
        match = app_state.session.select_match(match_id)
        if match is None:
            return _error("Match not found", 404)
        return jsonify({"success": True, "match": _match_view(match)})

    @app.route("/api/matches/current", methods=["DELETE"])
    def delete_current_match():
        if not app_state.session.delete_match():
            return _error("No current match", 404)
        return jsonify({"success": True, "message": "Match deleted"})

    @app.route("/api/matches/<int:match_id>/publish", methods=["POST"])
    def publish_match(match_id: int):
        """Push the match's tabular mirror to the remote store."""
        match = app_state.session.snapshot.find_match(match_id)
        if match is None:
            return _error("Match not found", 404)
        if not app_state.session.writer.publish_match(match):
            return _error("Remote store unavailable", 503)
        return jsonify({"success": True, "message": "Match published"})

    @app.route("/api/match/actions", methods=["POST"])
    def dispatch_action():
        """Apply one action (``{"type": ..., ...}``) to the current match."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or "type" not in data:
            return _error("Action type required")
        if app_state.session.current_match is None:
            return _error("No current match", 404)
        try:
            match = app_state.session.dispatch(data)
        except UnknownActionError as e:
            return _error(str(e))
        except KeyError as e:
            return _error(f"Missing field: {e.args[0]}")
        except (TypeError, ValueError) as e:
            return _error(f"Invalid action: {e}")
        return jsonify({"success": True, "match": _match_view(match)})

    @app.route("/api/match/summary", methods=["GET"])
    def get_match_summary():
        match = app_state.session.current_match
        if match is None:
            return _error("No current match", 404)
        return jsonify({"success": True, "summary": match_summary(match)})

    @app.route("/api/season/summary", methods=["GET"])
    def get_season_summary():
        return jsonify({
            "success": True,
            "summary": season_summary(app_state.session.snapshot.matches),
        })

    # ==================== Squad ==================== #

    @app.route("/api/squad", methods=["POST"])
    def add_squad_player():
        data = request.get_json(silent=True) or {}
        member = app_state.session.add_squad_player(data.get("name", ""))
        if member is None:
            return _error("Player name is required")
        return jsonify({"success": True, "player": member.to_dict()}), 201

    @app.route("/api/squad/<int:player_id>", methods=["PUT"])
    def rename_squad_player(player_id: int):
        data = request.get_json(silent=True) or {}
        if not app_state.session.rename_squad_player(player_id, data.get("name", "")):
            return _error("Player not found or name missing", 404)
        return jsonify({"success": True})

    @app.route("/api/squad/<int:player_id>", methods=["DELETE"])
    def remove_squad_player(player_id: int):
        if not app_state.session.remove_squad_player(player_id):
            return _error("Player not found", 404)
        return jsonify({"success": True})

    @app.route("/api/squad/reorder", methods=["POST"])
    def reorder_squad():
        data = request.get_json(silent=True) or {}
        try:
            moved = app_state.session.reorder_squad(int(data["from"]), int(data["to"]))
        except (KeyError, TypeError, ValueError):
            return _error("Both 'from' and 'to' indexes required")
        if not moved:
            return _error("Index out of range")
        return jsonify({"success": True})

    @app.route("/api/team/title", methods=["PUT"])
    def set_team_title():
        data = request.get_json(silent=True) or {}
        if not app_state.session.set_team_title(data.get("title", "")):
            return _error("Title is required")
        return jsonify({"success": True})

    # ==================== Sync ==================== #

    @app.route("/api/sync/status", methods=["GET"])
    def get_sync_status():
        return jsonify({"success": True, "sync": app_state.session.sync_status()})

    @app.route("/api/sync/online", methods=["POST"])
    def set_online():
        """Connectivity signal from the client platform."""
        data = request.get_json(silent=True) or {}
        if not isinstance(data.get("online"), bool):
            return _error("'online' must be true or false")
        app_state.queue.set_online(data["online"])
        return jsonify({"success": True, "sync": app_state.session.sync_status()})

    @app.route("/api/sync/drain", methods=["POST"])
    def drain_queue():
        result = app_state.session.writer.drain()
        return jsonify({
            "success": result.success,
            "reason": result.reason,
            "results": {
                "total": result.total,
                "succeeded": result.succeeded,
                "failed": result.failed,
                "errors": result.errors,
            },
        })

    @app.route("/api/save", methods=["POST"])
    def save_now():
        """Flush any pending debounced save."""
        flushed = app_state.session.flush()
        return jsonify({"success": True, "flushed": flushed})

    return app


def run_web_app(host: str = "127.0.0.1", port: int = 7122, config: Any = Config) -> None:
    """
    Run the web application.

    Args:
        host: Host address to bind to (default: localhost only)
        port: Port number to listen on
        config: Configuration object
    """
    app = create_app(config)
    logger.info("Starting %s on http://%s:%d", APP_TITLE, host, port)
    try:
        app.run(host=host, port=port, debug=False)
    finally:
        app.extensions["squadclock"].session.close()
