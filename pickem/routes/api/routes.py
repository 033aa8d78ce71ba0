from functools import wraps

from flask import current_app, jsonify, request

from pickem import limiter
from pickem.routes.api import bp
from pickem.services.league_service import league_service
from pickem.services.scheduler_service import scheduler_service
from pickem.services.standings_service import standings_service
from pickem.utils.cache_utils import CacheManager, cached_route, invalidate_cached_route
from pickem.utils.scoring import build_leaderboard, leaderboard_row_to_dict
from pickem.utils.timezone_utils import format_timestamp

STANDINGS_VIEW = "standings"


def add_security_headers(f):
    """Add no-store headers to responses that must never be cached"""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        response = current_app.make_response(f(*args, **kwargs))
        response.headers["Cache-Control"] = (
            "no-store, no-cache, must-revalidate, max-age=0"
        )
        return response

    return decorated_function


def _int_arg(data, key):
    """Read an integer field from a JSON body, None if missing or invalid"""
    try:
        return int(data.get(key))
    except (TypeError, ValueError):
        return None


def _league_payload():
    teams = standings_service.current_teams()
    return {
        "stage": league_service.stage(),
        "draft_complete": league_service.draft_complete(),
        "capacity": league_service.capacity,
        "last_save_ok": league_service.last_save_ok,
        "players": [
            player.to_dict() for player in league_service.players_with_records(teams)
        ],
    }


@bp.route("/standings")
@cached_route(timeout=60, key_prefix=STANDINGS_VIEW)
def standings():
    """Get current team records and where they came from"""
    result = standings_service.resolve()
    data = result.to_dict()
    data["resolved_at_local"] = format_timestamp(result.resolved_at)
    return data


@bp.route("/standings/refresh", methods=["POST"])
@limiter.limit("5 per minute")
@add_security_headers
def refresh_standings():
    """Re-resolve standings, bypassing the fresh cache"""
    result = standings_service.resolve(force=True)
    invalidate_cached_route(STANDINGS_VIEW)
    return jsonify(result.to_dict())


@bp.route("/league")
@add_security_headers
def league():
    """Get players with recomputed records and the league stage"""
    return jsonify(_league_payload())


@bp.route("/league/setup", methods=["POST"])
@add_security_headers
def setup_league():
    data = request.get_json(silent=True) or {}
    num_players = _int_arg(data, "num_players")
    if num_players is None:
        return jsonify({"error": "num_players must be an integer"}), 400

    league_service.setup_league(num_players)
    return jsonify(_league_payload()), 201


@bp.route("/league/players", methods=["POST"])
@add_security_headers
def name_players():
    data = request.get_json(silent=True) or {}
    names = data.get("names")
    if not isinstance(names, list) or not names:
        return jsonify({"error": "names must be a non-empty list"}), 400

    names = [str(name) if name is not None else "" for name in names]
    saved = league_service.name_players(names)
    payload = _league_payload()
    payload["saved"] = saved
    return jsonify(payload)


@bp.route("/league/picks", methods=["POST"])
@add_security_headers
def pick_team():
    """Draft a team into a player's slot"""
    data = request.get_json(silent=True) or {}
    player_id = _int_arg(data, "player_id")
    slot = _int_arg(data, "slot")
    abbreviation = data.get("abbreviation")
    if player_id is None or slot is None or not abbreviation:
        return jsonify({"error": "player_id, abbreviation and slot are required"}), 400

    player = league_service.pick_team(
        player_id, abbreviation, slot, teams=standings_service.current_teams()
    )
    return jsonify(player.to_dict())


@bp.route("/league/picks", methods=["DELETE"])
@add_security_headers
def clear_pick():
    data = request.get_json(silent=True) or {}
    player_id = _int_arg(data, "player_id")
    slot = _int_arg(data, "slot")
    if player_id is None or slot is None:
        return jsonify({"error": "player_id and slot are required"}), 400

    player = league_service.clear_pick(player_id, slot)
    return jsonify(player.to_dict())


@bp.route("/league/available-teams")
@add_security_headers
def available_teams():
    teams = league_service.available_teams(standings_service.current_teams())
    return jsonify([team.to_dict() for team in teams])


@bp.route("/leaderboard")
@add_security_headers
def leaderboard():
    """Get players ranked by their aggregate record"""
    rows = build_leaderboard(
        league_service.get_players(), standings_service.current_teams()
    )
    return jsonify([leaderboard_row_to_dict(row) for row in rows])


@bp.route("/league/reset", methods=["POST"])
@add_security_headers
def reset_league():
    saved = league_service.reset()
    return jsonify({"success": saved})


@bp.route("/status")
@add_security_headers
def status():
    """Scheduler status, standings cache age and cache backend"""
    age = standings_service.cache_age()
    last = standings_service.last_result
    return jsonify(
        {
            "scheduler": scheduler_service.get_status(),
            "cache": CacheManager.get_cache_stats(current_app),
            "standings": {
                "cache_age_seconds": int(age.total_seconds()) if age is not None else None,
                "last_source": last.source if last else None,
                "last_error": last.error.value if last and last.error else None,
                "last_resolved_at": format_timestamp(last.resolved_at) if last else None,
            },
            "pending_save": scheduler_service.has_pending_save(),
        }
    )
