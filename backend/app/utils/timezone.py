"""
Timezone utilities for venue-local wall-clock values.

Event dates and times of day are stored without a zone. They are read as
wall-clock values in the configured venue timezone (EVENTS_TIMEZONE) and
converted to absolute UTC instants only when compared against "now".
"""

from datetime import date, datetime, timedelta, tzinfo
from functools import lru_cache
from typing import Union

import pytz

from app.config import get_settings

UTC_TZ = pytz.UTC

ZoneLike = Union[str, tzinfo]


def utc_now() -> datetime:
    """Get current time in UTC (timezone-aware)."""
    return datetime.now(UTC_TZ)


@lru_cache(maxsize=32)
def get_zone(name: str) -> tzinfo:
    """Resolve an IANA zone name. Unknown names raise pytz.UnknownTimeZoneError."""
    return pytz.timezone(name)


def get_events_tz() -> tzinfo:
    """Venue-local timezone used for every event date/time."""
    return get_zone(get_settings().events_timezone)


def _resolve(zone: ZoneLike) -> tzinfo:
    return get_zone(zone) if isinstance(zone, str) else zone


def as_utc(instant: datetime) -> datetime:
    """Normalize an instant to aware UTC. Naive values are taken as UTC."""
    if instant.tzinfo is None:
        return UTC_TZ.localize(instant)
    return instant.astimezone(UTC_TZ)


def offset_at(zone: ZoneLike, instant: datetime) -> timedelta:
    """
    UTC offset of `zone` at an absolute instant.

    local wall-clock = utc + offset
    """
    return as_utc(instant).astimezone(_resolve(zone)).utcoffset()


def zoned_wall_clock_to_instant(
    zone: ZoneLike,
    year: int,
    month: int,
    day: int,
    hour: int,
    minute: int,
    second: int = 0,
) -> datetime:
    """
    Convert a wall-clock reading in `zone` to an aware UTC instant.

    The fields are first read as if they were UTC. The zone offset at that
    naive instant gives a first estimate, and the offset at the estimate is
    used for the final answer. Times inside a spring-forward gap land one
    DST delta later; times inside a fall-back overlap resolve to one of the
    two candidates. Neither case raises.
    """
    tz = _resolve(zone)
    base = datetime(year, month, day, hour, minute, second, tzinfo=UTC_TZ)
    first_estimate = base - offset_at(tz, base)
    return base - offset_at(tz, first_estimate)


def local_today(zone: ZoneLike, now: datetime) -> date:
    """Calendar date in `zone` at the instant `now`."""
    return as_utc(now).astimezone(_resolve(zone)).date()

