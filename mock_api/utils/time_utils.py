"""
Timestamp helpers.
Documents carry UTC ISO-8601 strings with microsecond precision and a `Z` suffix.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional


def format_timestamp(dt: datetime) -> str:
    """Format an aware datetime as `YYYY-MM-DDTHH:MM:SS.ffffffZ`."""
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def now_timestamp() -> str:
    """Current UTC time as a document timestamp."""
    return format_timestamp(datetime.now(timezone.utc))


def from_timestamp(value: str) -> Optional[datetime]:
    """
    Parse a document timestamp.

    Accepts the `Z` suffix and naive values (treated as UTC). Returns None
    for anything that is not a parseable string.
    """
    if not isinstance(value, str) or not value:
        return None
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def next_timestamp(previous: Optional[str] = None) -> str:
    """
    Timestamp for a mutation that must sort strictly after `previous`.

    When the clock has not advanced past the previous value (same
    microsecond, or a previous value in the future), the result is bumped
    one microsecond past it.
    """
    now = datetime.now(timezone.utc)
    prev = from_timestamp(previous) if previous else None
    if prev is not None and now <= prev:
        now = prev + timedelta(microseconds=1)
    return format_timestamp(now)
