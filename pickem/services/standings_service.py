"""
NFL standings resolution service

Resolves the current win/loss/tie record of every team against ESPN's
uncontracted site API, in this order:

1. fresh cache entry (if it does not look invalid)
2. standings endpoints, through the shape parser chain
3. per-team detail lookups when the standings carry no records
4. records derived from completed game results
5. stale cache, then the built-in reference dataset, then nothing

resolve() never raises for upstream trouble; the returned StandingsResult
says where the data came from and which error, if any, degraded it.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from pickem import cache
from pickem.utils.cache_utils import StandingsCache
from pickem.utils.errors import ErrorKind, UpstreamUnavailable
from pickem.utils.espn_client import EspnClient
from pickem.utils.game_results import (
    SeasonWindow,
    apply_tallies,
    extract_events,
    merge_events,
    tally_records,
)
from pickem.utils.standings_parsers import (
    is_usable,
    parse_standings_payload,
    parse_team_detail,
    parse_team_list,
)
from pickem.utils.teams import reference_teams

logger = logging.getLogger(__name__)

SOURCE_CACHE = "cache"
SOURCE_STANDINGS = "standings"
SOURCE_BACKFILL = "backfill"
SOURCE_DERIVED = "derived"
SOURCE_STALE_CACHE = "stale_cache"
SOURCE_REFERENCE = "reference"
SOURCE_NONE = "none"

# Tried in order; the teams endpoint sometimes embeds records too
STANDINGS_ENDPOINTS = [
    ("standings", None),
    ("standings", {"seasontype": 2}),
    ("teams", None),
]

REGULAR_SEASON_WEEKS = 18


@dataclass
class StandingsResult:
    teams: list = field(default_factory=list)
    source: str = SOURCE_NONE
    error: ErrorKind = None
    resolved_at: datetime = None

    @property
    def ok(self):
        return bool(self.teams)

    @property
    def is_live(self):
        """True when the teams came from upstream or a fresh cache entry"""
        return self.source in (SOURCE_CACHE, SOURCE_STANDINGS, SOURCE_BACKFILL, SOURCE_DERIVED)

    def to_dict(self):
        return {
            "teams": [team.to_dict() for team in self.teams],
            "source": self.source,
            "error": self.error.value if self.error else None,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
        }


class _Attempts:
    """Tracks what happened upstream during one resolution"""

    def __init__(self):
        self.payloads = 0
        self.failures = 0

    def error_kind(self):
        if self.payloads == 0:
            return ErrorKind.UPSTREAM_UNAVAILABLE
        return ErrorKind.UPSTREAM_SHAPE_UNRECOGNIZED


class StandingsService:
    """Resolves and caches team records"""

    def __init__(self, app=None, client=None, clock=None):
        self.app = app
        self.client = None
        self._injected_client = client
        self.cache = None
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.season_year = None
        self.window = None
        self.max_workers = 8
        self.weekly_scoreboards = True
        self.reference_fallback = True
        self.last_result = None

        if app:
            self.init_app(app)

    def init_app(self, app, client=None):
        """Configure the service from a Flask app's config"""
        self.app = app
        config = app.config

        self.client = client or self._injected_client
        if self.client is None:
            self.client = EspnClient(
                api_base_url=config.get("NFL_API_BASE_URL"),
                timeout=config.get("NFL_API_TIMEOUT", 30),
                max_retries=config.get("NFL_API_MAX_RETRIES", 2),
                min_request_interval=config.get("NFL_API_MIN_REQUEST_INTERVAL", 0.05),
            )

        self.cache = StandingsCache(
            cache, freshness=timedelta(hours=config.get("STANDINGS_CACHE_HOURS", 4))
        )
        self.season_year = config.get("SEASON_YEAR", 2025)
        self.window = SeasonWindow.for_season(
            self.season_year,
            start=config.get("SEASON_WINDOW_START"),
            end=config.get("SEASON_WINDOW_END"),
        )
        self.max_workers = max(1, config.get("BACKFILL_MAX_WORKERS", 8))
        self.weekly_scoreboards = config.get("DERIVE_WEEKLY_SCOREBOARDS", True)
        self.reference_fallback = config.get("STANDINGS_REFERENCE_FALLBACK", True)
        self.last_result = None

        app.extensions["standings_service"] = self

    def resolve(self, force=False):
        """
        Resolve current team records

        Args:
            force: Skip the fresh-cache check and go upstream

        Returns:
            StandingsResult: Teams plus where they came from. error is set
            whenever the result is a fallback rather than live data.
        """
        if not force:
            cached = self.cache.get_fresh(now=self.clock())
            if cached:
                teams, resolved_at = cached
                result = StandingsResult(teams, SOURCE_CACHE, None, resolved_at)
                self.last_result = result
                return result

        attempts = _Attempts()

        outcome = self._step("standings", self._fetch_standings, attempts)
        teams, candidate = outcome or (None, None)
        if teams:
            return self._store(teams, SOURCE_STANDINGS)

        if candidate:
            teams = self._step("backfill", self._backfill_records, candidate)
            if is_usable(teams):
                return self._store(teams, SOURCE_BACKFILL)
            logger.warning("Per-team lookups produced no records")

        teams = self._step("derivation", self._derive_from_games, attempts)
        if teams:
            return self._store(teams, SOURCE_DERIVED)

        return self._fallback(attempts.error_kind())

    def _step(self, name, func, *args):
        """Run one resolution step; an unexpected error moves on to the next step"""
        try:
            return func(*args)
        except Exception as e:
            logger.error(f"Unexpected error in standings {name} step: {e}", exc_info=True)
            return None

    def _store(self, teams, source):
        resolved_at = self.clock()
        self.cache.set(teams, resolved_at)
        with_records = sum(1 for team in teams if team.has_record)
        logger.info(
            f"Resolved {len(teams)} teams via {source}, {with_records} with records"
        )
        result = StandingsResult(teams, source, None, resolved_at)
        self.last_result = result
        return result

    def _get(self, attempts, fetch, *args):
        """Call a client method, counting payloads and failures"""
        try:
            payload = fetch(*args)
        except UpstreamUnavailable as e:
            attempts.failures += 1
            logger.warning(f"Upstream unavailable: {e}")
            return None
        attempts.payloads += 1
        return payload

    def _fetch_standings(self, attempts):
        """
        Try each standings endpoint through the parser chain

        Returns:
            tuple: (usable teams or None, first record-less team list or None)
        """
        candidate = None
        for resource, params in STANDINGS_ENDPOINTS:
            if resource == "teams":
                payload = self._get(attempts, self.client.get_teams)
            else:
                payload = self._get(attempts, self.client.get_standings, params)
            if payload is None:
                continue

            outcome = parse_standings_payload(payload, fetch=self.client.follow_ref)
            if outcome.usable:
                return outcome.teams, None
            if outcome.teams and candidate is None:
                candidate = outcome.teams
            elif not outcome.teams:
                logger.info(f"No team data in {resource} response")

        return None, candidate

    def _fan_out(self, func, items):
        """
        Run func over items on a bounded thread pool

        Returns:
            dict: item index -> result, for calls that did not raise
        """
        results = {}
        if not items:
            return results

        workers = min(self.max_workers, len(items))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {executor.submit(func, item): i for i, item in enumerate(items)}
            for future in as_completed(futures):
                index = futures[future]
                try:
                    results[index] = future.result()
                except UpstreamUnavailable as e:
                    logger.warning(f"Lookup failed: {e}")
                except Exception as e:
                    logger.error(f"Unexpected lookup error: {e}", exc_info=True)
        return results

    def _fetch_team_record(self, team):
        return parse_team_detail(self.client.get_team(team.id))

    def _backfill_records(self, teams):
        """Fill in records from each team's detail resource"""
        logger.info(f"Fetching records for {len(teams)} teams individually")
        records = self._fan_out(self._fetch_team_record, teams)

        updated = []
        for index, team in enumerate(teams):
            record = records.get(index)
            updated.append(team.with_record(*record) if record else team)

        logger.info(f"Fetched records for {sum(1 for r in records.values() if r)} teams")
        return updated

    def _game_sources(self):
        """(client method, params) pairs whose games get unioned"""
        year = self.season_year
        sources = [
            (self.client.get_scoreboard, None),
            (self.client.get_scoreboard, {"dates": year}),
            (self.client.get_schedule, {"dates": year}),
            (self.client.get_schedule, {"seasontype": 2, "dates": year}),
        ]
        if self.weekly_scoreboards:
            sources.extend(
                (self.client.get_scoreboard, {"seasontype": 2, "week": week, "dates": year})
                for week in range(1, REGULAR_SEASON_WEEKS + 1)
            )
        return sources

    def _derive_from_games(self, attempts):
        """
        Compute records from completed games

        Returns:
            list: Teams with derived records, or None if no team list could
            be fetched or no qualifying game was found
        """
        payload = self._get(attempts, self.client.get_teams)
        teams = parse_team_list(payload) if payload else []
        if not teams:
            logger.warning("Cannot derive records without a team list")
            return None

        sources = self._game_sources()
        payloads = self._fan_out(lambda source: source[0](source[1]), sources)
        attempts.payloads += len(payloads)
        attempts.failures += len(sources) - len(payloads)

        events = merge_events(
            extract_events(payloads[index]) for index in sorted(payloads)
        )
        logger.info(f"Total unique games found: {len(events)}")
        if not events:
            return None

        derived = apply_tallies(teams, tally_records(events, self.window))
        if not is_usable(derived):
            logger.warning("No completed games matched any team")
            return None
        return derived

    def _fallback(self, error):
        """Degrade to stale cache, then reference data, then nothing"""
        stale = self.cache.get_stale()
        if stale:
            teams, resolved_at = stale
            logger.warning("Using expired standings cache due to upstream failure")
            result = StandingsResult(teams, SOURCE_STALE_CACHE, error, resolved_at)
        elif self.reference_fallback:
            logger.warning("No usable standings; serving built-in reference data")
            result = StandingsResult(reference_teams(), SOURCE_REFERENCE, error, None)
        else:
            logger.error("No valid NFL data available and no cache")
            result = StandingsResult([], SOURCE_NONE, error, None)

        self.last_result = result
        return result

    def clear_cache(self):
        self.cache.clear()
        self.last_result = None

    def cache_age(self):
        return self.cache.age(now=self.clock())

    def current_teams(self):
        """Teams of the last resolution, resolving once if needed"""
        if self.last_result is None:
            self.resolve()
        return self.last_result.teams


# Global standings service instance
standings_service = StandingsService()
