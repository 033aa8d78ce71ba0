"""
Derive team records from raw game results

Used when no standings resource is available: completed regular-season games
inside the season window are tallied into win/loss/tie records per team.
"""

import logging
from collections import namedtuple
from datetime import date, datetime, timezone

logger = logging.getLogger(__name__)

REGULAR_SEASON_TYPE = 2

FINAL_STATUS_NAMES = frozenset({"STATUS_FINAL", "STATUS_FINAL_OVERTIME", "STATUS_FINAL_OT"})
FINAL_STATUS_IDS = frozenset({"3"})
EXCLUDED_SEASON_SLUGS = ("preseason", "postseason", "playoff", "off-season")


def _as_list(value):
    return value if isinstance(value, list) else []


def _as_dict(value):
    return value if isinstance(value, dict) else {}


class SeasonWindow(namedtuple("SeasonWindow", ["start", "end"])):
    """Calendar window of a season: start inclusive, end exclusive"""

    __slots__ = ()

    @classmethod
    def for_season(cls, year, start=None, end=None):
        """Default window runs from August 1st to March 1st of the next year"""
        return cls(start or date(year, 8, 1), end or date(year + 1, 3, 1))

    def contains(self, moment):
        if moment is None:
            return True
        if isinstance(moment, datetime):
            if moment.tzinfo is not None:
                moment = moment.astimezone(timezone.utc)
            moment = moment.date()
        return self.start <= moment < self.end


def parse_event_date(value):
    """Parse ESPN ISO timestamps such as "2025-09-07T17:00Z"; None if unparseable"""
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def extract_events(payload):
    """
    Collect game events from a scoreboard or schedule payload

    Handles the scoreboard "events" list, league calendar weeks carrying
    events, and the schedule endpoint's date-keyed "content.schedule" map.
    """
    if not isinstance(payload, dict):
        return []

    events = list(_as_list(payload.get("events")))

    for league in _as_list(payload.get("leagues")):
        for week in _as_list(_as_dict(league).get("calendar")):
            events.extend(_as_list(_as_dict(week).get("events")))

    schedule = _as_dict(_as_dict(payload.get("content")).get("schedule"))
    for day in schedule.values():
        events.extend(_as_list(_as_dict(day).get("games")))

    return [event for event in events if isinstance(event, dict)]


def _competitor_ids(event):
    competitions = _as_list(event.get("competitions")) or [{}]
    competitors = _as_list(_as_dict(competitions[0]).get("competitors"))
    ids = [_competitor_team_id(c) for c in competitors]
    return tuple(sorted(str(i) for i in ids if i))


def merge_events(event_lists):
    """Union several event lists, de-duplicated by game id"""
    merged = {}
    for events in event_lists:
        for event in events:
            key = event.get("id") or (event.get("date"), _competitor_ids(event))
            key = str(key) if not isinstance(key, tuple) else key
            if key not in merged:
                merged[key] = event
    return list(merged.values())


def is_final(status):
    status = _as_dict(status)
    status_type = _as_dict(status.get("type"))
    return bool(
        status_type.get("completed")
        or status_type.get("name") in FINAL_STATUS_NAMES
        or str(status_type.get("id")) in FINAL_STATUS_IDS
        or status.get("completed") is True
    )


def _season_type_value(value):
    if isinstance(value, dict):
        value = value.get("type", value.get("id"))
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def is_regular_season(event, competition):
    """
    True unless the game is tagged as something other than regular season

    Games with no usable tag are included.
    """
    season = _as_dict(event.get("season"))
    for value in (
        season.get("type"),
        event.get("seasonType"),
        _as_dict(competition.get("season")).get("type"),
        competition.get("seasonType"),
    ):
        season_type = _season_type_value(value)
        if season_type is not None:
            return season_type == REGULAR_SEASON_TYPE

    slug = season.get("slug")
    slug = slug.lower() if isinstance(slug, str) else ""
    if "regular" in slug:
        return True
    return not any(excluded in slug for excluded in EXCLUDED_SEASON_SLUGS)


def _competitor_team_id(competitor):
    competitor = _as_dict(competitor)
    team_id = _as_dict(competitor.get("team")).get("id") or competitor.get("id")
    return str(team_id) if team_id not in (None, "") else None


def competitor_score(competitor):
    """Score as int; accepts "24", 24, 24.0 or {"value": 24.0}. None if absent"""
    competitor = _as_dict(competitor)
    score = competitor.get("score")
    if score is None:
        score = _as_dict(competitor.get("team")).get("score")
    if isinstance(score, dict):
        score = score.get("value", score.get("displayValue"))
    if score in (None, "") or isinstance(score, bool):
        return None
    try:
        return int(float(score))
    except (TypeError, ValueError):
        return None


def game_outcome(event, competition, window):
    """
    Decide whether one competition counts and who won

    Returns:
        tuple: (home_id, away_id, home_score, away_score), or None when the
        game must not count (not final, outside window, not regular season,
        undeterminable score)
    """
    if not is_final(competition.get("status") or event.get("status")):
        return None

    game_date = parse_event_date(event.get("date") or competition.get("date"))
    if not window.contains(game_date):
        return None

    if not is_regular_season(event, competition):
        return None

    competitors = [_as_dict(c) for c in _as_list(competition.get("competitors"))]
    home = next((c for c in competitors if c.get("homeAway") == "home"), None)
    away = next((c for c in competitors if c.get("homeAway") == "away"), None)
    if home is None or away is None:
        return None

    home_id, away_id = _competitor_team_id(home), _competitor_team_id(away)
    home_score, away_score = competitor_score(home), competitor_score(away)
    if not home_id or not away_id or home_score is None or away_score is None:
        return None

    # A final 0-0 is a placeholder from a feed that never filled in scores
    if home_score == 0 and away_score == 0:
        return None

    return home_id, away_id, home_score, away_score


def tally_records(events, window):
    """
    Accumulate win/loss/tie tallies from game events

    Args:
        events: Game events (already de-duplicated)
        window: SeasonWindow the games must fall into

    Returns:
        dict: upstream team id -> [wins, losses, ties]
    """
    tallies = {}
    counted = 0

    for event in events:
        event = _as_dict(event)
        for competition in _as_list(event.get("competitions")):
            outcome = game_outcome(event, _as_dict(competition), window)
            if outcome is None:
                continue

            home_id, away_id, home_score, away_score = outcome
            home = tallies.setdefault(home_id, [0, 0, 0])
            away = tallies.setdefault(away_id, [0, 0, 0])

            if home_score > away_score:
                home[0] += 1
                away[1] += 1
            elif away_score > home_score:
                away[0] += 1
                home[1] += 1
            else:
                home[2] += 1
                away[2] += 1
            counted += 1

    logger.info(f"Tallied {counted} completed games from {len(events)} events")
    return tallies


def apply_tallies(teams, tallies):
    """Return teams with records replaced by their tallies (zero if absent)"""
    return [team.with_record(*tallies.get(team.id, (0, 0, 0))) for team in teams]
