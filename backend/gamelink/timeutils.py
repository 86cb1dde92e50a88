"""UTC helpers shared by services.

Everything is stored in UTC. SQLite hands timestamps back naive, so values
read from the database go through ``as_utc`` before being compared.
"""
from datetime import datetime, timezone
from typing import Optional

import pytz


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to a naive database value, or convert an aware one."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_utc(value: Optional[datetime], tz_name: str = "UTC") -> Optional[datetime]:
    """Normalize client input to UTC.

    Naive values come from ``datetime-local`` inputs and are wall-clock time
    in the event's timezone. Raises ``pytz.UnknownTimeZoneError`` for a bad
    zone name.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        tz = pytz.timezone(tz_name)
        value = tz.localize(value)
    return value.astimezone(timezone.utc)
