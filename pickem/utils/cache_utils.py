"""
Cache utilities for the NFL team pool
Wraps the Flask-Caching backend with the timestamped standings slot and
short-lived route payload caching
"""

import functools
import logging
from datetime import datetime, timedelta, timezone

from flask import current_app

from pickem import cache
from pickem.models.team import TeamRecord
from pickem.utils.teams import looks_invalid

logger = logging.getLogger(__name__)

STANDINGS_CACHE_KEY = "standings:teams"


def _utcnow():
    return datetime.now(timezone.utc)


def make_cache_key(key_prefix, *args, **kwargs):
    """Generate a cache key from a prefix and view arguments"""
    args_str = "_".join(str(arg) for arg in args)
    kwargs_str = "_".join(f"{k}_{v}" for k, v in sorted(kwargs.items()))
    return f"view:{key_prefix}_{args_str}_{kwargs_str}"


def cached_route(timeout=60, key_prefix="view"):
    """
    Decorator for caching JSON route payloads

    Only dict and list payloads are cached; error tuples and responses pass
    through untouched.

    Args:
        timeout: Cache timeout in seconds
        key_prefix: Prefix for cache key
    """

    def decorator(f):
        @functools.wraps(f)
        def wrapped(*args, **kwargs):
            cache_key = make_cache_key(key_prefix, *args, **kwargs)

            result = cache.get(cache_key)
            if result is not None:
                current_app.logger.debug(f"Cache hit for key: {cache_key}")
                return result

            result = f(*args, **kwargs)
            if isinstance(result, (dict, list)):
                cache.set(cache_key, result, timeout=timeout)
                current_app.logger.debug(f"Cache set for key: {cache_key}")

            return result

        return wrapped

    return decorator


def invalidate_cached_route(key_prefix, *args, **kwargs):
    """Drop the cached payload of a route"""
    try:
        cache.delete(make_cache_key(key_prefix, *args, **kwargs))
    except Exception as e:
        current_app.logger.error(f"Failed to clear cache: {e}")


class StandingsCache:
    """
    Persistent slot holding the last resolved team list and its timestamp

    Entries are written without a backend timeout: the freshness window is
    enforced here so that an expired list can still be served as a fallback.
    """

    def __init__(self, backend, freshness=timedelta(hours=4), key=STANDINGS_CACHE_KEY):
        self.backend = backend
        self.freshness = freshness
        self.key = key

    def get_entry(self):
        """
        Read the raw slot

        Returns:
            tuple: (teams, resolved_at), or None if empty or unreadable
        """
        try:
            entry = self.backend.get(self.key)
        except Exception as e:
            logger.warning(f"Error reading standings cache: {e}")
            return None

        if not entry:
            return None

        try:
            teams = [TeamRecord.from_dict(team) for team in entry["teams"]]
            resolved_at = datetime.fromisoformat(entry["resolved_at"])
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Discarding malformed standings cache entry: {e}")
            self.clear()
            return None

        if resolved_at.tzinfo is None:
            resolved_at = resolved_at.replace(tzinfo=timezone.utc)
        return teams, resolved_at

    def get_fresh(self, now=None):
        """
        Cached teams if younger than the freshness window and valid

        A fresh entry that looks invalid (all records zero, or the built-in
        reference data) is evicted.

        Returns:
            tuple: (teams, resolved_at), or None
        """
        entry = self.get_entry()
        if entry is None:
            return None

        teams, resolved_at = entry
        now = now or _utcnow()
        if now - resolved_at >= self.freshness:
            logger.info("Standings cache expired, fetching new data")
            return None

        if not teams or looks_invalid(teams):
            logger.info("Standings cache holds invalid data, clearing cache")
            self.clear()
            return None

        logger.debug("Using cached standings")
        return teams, resolved_at

    def get_stale(self):
        """
        Cached teams regardless of age, if they pass the validity check

        Returns:
            tuple: (teams, resolved_at), or None
        """
        entry = self.get_entry()
        if entry is None:
            return None

        teams, resolved_at = entry
        if not teams or looks_invalid(teams):
            return None
        return teams, resolved_at

    def set(self, teams, resolved_at=None):
        resolved_at = resolved_at or _utcnow()
        try:
            self.backend.set(
                self.key,
                {
                    "resolved_at": resolved_at.isoformat(),
                    "teams": [team.to_dict() for team in teams],
                },
                timeout=0,
            )
            logger.debug(f"Cached {len(teams)} teams at {resolved_at.isoformat()}")
        except Exception as e:
            logger.warning(f"Error saving standings cache: {e}")

    def clear(self):
        try:
            self.backend.delete(self.key)
            logger.info("Cleared standings cache")
        except Exception as e:
            logger.warning(f"Error clearing standings cache: {e}")

    def age(self, now=None):
        """Age of the cached entry as a timedelta, None if empty"""
        entry = self.get_entry()
        if entry is None:
            return None
        return (now or _utcnow()) - entry[1]


class CacheManager:
    """Cache management utilities"""

    @staticmethod
    def get_cache_stats(app):
        """Get cache statistics"""
        return {
            "type": app.config.get("CACHE_TYPE", "Unknown"),
            "timeout": app.config.get("CACHE_DEFAULT_TIMEOUT", 300),
        }
