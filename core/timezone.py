"""
Timezone helpers for rendering meeting times in a recipient's local zone.

Stored timezones are IANA names; anything missing or unknown falls back to UTC.
"""

from datetime import datetime, timezone as dt_timezone

import pytz


def utc_now() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(dt_timezone.utc)


def is_valid_timezone(tz_name: str | None) -> bool:
    if not tz_name:
        return False
    try:
        pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        return False
    return True


def get_safe_timezone(tz_name: str | None):
    """Return a pytz timezone for tz_name, or UTC if it is absent or unknown."""
    if is_valid_timezone(tz_name):
        return pytz.timezone(tz_name)
    return pytz.UTC


def parse_datetime(value) -> datetime | None:
    """
    Parse an ISO-8601 string (or pass through a datetime) as an aware UTC datetime.

    Accepts the trailing "Z" that JavaScript's toISOString() produces.
    Naive values are treated as UTC. Returns None for empty or unparseable input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC)


def _to_local(utc_dt: datetime, tz_name: str | None) -> datetime:
    # Treat naive datetimes as UTC
    if utc_dt.tzinfo is None:
        utc_dt = pytz.UTC.localize(utc_dt)
    return utc_dt.astimezone(get_safe_timezone(tz_name))


def _offset_label(local_dt: datetime) -> str:
    offset = local_dt.strftime("%z")  # "+0700" or "-0530"
    if not offset:
        return "UTC"
    hours = int(offset[:3])
    minutes = int(offset[0] + offset[3:5])
    if minutes == 0:
        return f"UTC{hours:+d}" if hours != 0 else "UTC"
    return f"UTC{hours:+d}:{abs(minutes):02d}"


def _clock(local_dt: datetime) -> str:
    return local_dt.strftime("%I:%M %p").lstrip("0")  # "3:00 PM" not "03:00 PM"


def format_datetime_in_timezone(utc_dt: datetime, tz_name: str | None) -> str:
    """
    Format a UTC datetime in the user's local timezone with explicit offset.

    Returns:
        Formatted string like "Wednesday at 3:00 PM (UTC-5)"
    """
    local_dt = _to_local(utc_dt, tz_name)
    return f"{local_dt.strftime('%A')} at {_clock(local_dt)} ({_offset_label(local_dt)})"


def format_date_in_timezone(utc_dt: datetime, tz_name: str | None) -> str:
    """
    Format a UTC datetime as just a date in the user's local timezone.

    Returns:
        Formatted string like "Wednesday, January 10"
    """
    local_dt = _to_local(utc_dt, tz_name)
    return local_dt.strftime("%A, %B %d").replace(" 0", " ")


def format_time_in_timezone(utc_dt: datetime, tz_name: str | None) -> str:
    """Clock time with offset, e.g. "10:00 PM (UTC+7)"."""
    local_dt = _to_local(utc_dt, tz_name)
    return f"{_clock(local_dt)} ({_offset_label(local_dt)})"


def format_meeting_datetime(utc_dt: datetime, tz_name: str | None) -> str:
    """
    Full meeting time for notification bodies.

    Returns:
        Formatted string like "Wednesday, January 10 at 10:00 PM (UTC+7)"
    """
    return (
        f"{format_date_in_timezone(utc_dt, tz_name)} at "
        f"{format_time_in_timezone(utc_dt, tz_name)}"
    )
