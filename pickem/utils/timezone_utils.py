"""
Timezone helpers for displaying standings timestamps

Resolution times are kept in UTC; these helpers render them in the
configured TIMEZONE for the API and the CLI.
"""

from datetime import timezone

import pytz
from flask import current_app, has_app_context

DEFAULT_TIMESTAMP_FORMAT = "%a %m/%d at %I:%M %p %Z"


def get_app_timezone():
    """Configured display timezone, UTC outside an app or when misconfigured"""
    if not has_app_context():
        return pytz.UTC
    try:
        return pytz.timezone(current_app.config.get("TIMEZONE", "UTC"))
    except pytz.UnknownTimeZoneError:
        current_app.logger.warning(
            f"Unknown TIMEZONE {current_app.config.get('TIMEZONE')!r}, using UTC"
        )
        return pytz.UTC


def to_local(dt):
    if dt is None:
        return None

    # Naive datetimes are UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(get_app_timezone())


def format_timestamp(dt, format_str=DEFAULT_TIMESTAMP_FORMAT):
    """Format a UTC timestamp in the display timezone, None stays None"""
    local = to_local(dt)
    return local.strftime(format_str) if local else None


def describe_age(age):
    """Short human label for a cache age timedelta, e.g. '3 h 12 min old'"""
    if age is None:
        return "empty"

    minutes = max(0, int(age.total_seconds() // 60))
    if minutes < 1:
        return "just now"
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours} h {minutes} min old"
    return f"{minutes} min old"
