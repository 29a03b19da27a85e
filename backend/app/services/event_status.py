"""
Event status engine.

The stored status is authoritative only for DRAFT. LIVE and CLOSED follow
from the event's calendar date and its start/end times of day, read as
wall-clock values in the venue timezone:

    now < start           -> DRAFT
    start <= now < end    -> LIVE
    now >= end            -> CLOSED

An end at or before the start means the night runs past midnight, so the
end moves to the next day. Events without both times keep their stored
status.

The rule exists twice and the two must agree row for row:

- `compute_effective_status` evaluates one event in Python (detail reads,
  serialization, write-back decisions).
- `computed_status_expression` builds the same rule as a SQL CASE so
  listings filtered on LIVE/CLOSED, and the bulk sweep, run in the database.

The SQL side never asks the database about timezones. For the few calendar
days close to `now`, the Python resolver is tabulated per minute of day into
runs of constant UTC correction, and the CASE only does integer arithmetic
on minutes since midnight. Days further out have a fixed answer.
"""

import datetime as dt
import uuid
from functools import lru_cache
from typing import Optional, Sequence

from sqlalchemy import Integer, case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.expression import ColumnElement, FunctionElement

from app.models import Event, EventStatus
from app.utils.timezone import (
    UTC_TZ,
    ZoneLike,
    as_utc,
    get_events_tz,
    local_today,
    utc_now,
    zoned_wall_clock_to_instant,
)

MINUTES_PER_DAY = 24 * 60
SECONDS_PER_DAY = 24 * 60 * 60

# Outside [today - 3, today + 2] an event is CLOSED / DRAFT whatever its times.
# The widest window is one day of runtime plus one rollover day, plus a day of
# slack on each side for DST gaps and zone offsets.
TABULATED_DAYS_BACK = 3
TABULATED_DAYS_FORWARD = 2


# =============================================================================
# Application-side calculator
# =============================================================================

def event_window(
    event_date: dt.date,
    start_time: dt.time,
    end_time: dt.time,
    zone: ZoneLike,
) -> tuple[dt.datetime, dt.datetime]:
    """
    Absolute [start, end) of an event as aware UTC instants.

    Only hour and minute are used; stored seconds are ignored.
    """
    start = zoned_wall_clock_to_instant(
        zone,
        event_date.year,
        event_date.month,
        event_date.day,
        start_time.hour,
        start_time.minute,
    )
    end = zoned_wall_clock_to_instant(
        zone,
        event_date.year,
        event_date.month,
        event_date.day,
        end_time.hour,
        end_time.minute,
    )
    # Events can end after midnight (e.g. Saturday 23:00 -> Sunday 05:00)
    if end <= start:
        end += dt.timedelta(days=1)
    return start, end


def compute_effective_status(
    event_date: Optional[dt.date],
    start_time: Optional[dt.time],
    end_time: Optional[dt.time],
    stored_status: Optional[str],
    now: Optional[dt.datetime] = None,
    zone: Optional[ZoneLike] = None,
) -> EventStatus:
    """
    Status of an event at `now` (defaults to the current instant).

    Pure: the same inputs at the same instant always give the same answer.
    """
    fallback = EventStatus(stored_status) if stored_status else EventStatus.DRAFT
    if event_date is None or start_time is None or end_time is None:
        return fallback

    zone = zone if zone is not None else get_events_tz()
    now = as_utc(now) if now is not None else utc_now()
    start, end = event_window(event_date, start_time, end_time, zone)

    if now < start:
        return EventStatus.DRAFT
    if now < end:
        return EventStatus.LIVE
    return EventStatus.CLOSED


def effective_status(
    event: Event,
    now: Optional[dt.datetime] = None,
    zone: Optional[ZoneLike] = None,
) -> EventStatus:
    """`compute_effective_status` for an Event row."""
    return compute_effective_status(
        event.date,
        event.start_time,
        event.end_time,
        event.status,
        now=now,
        zone=zone,
    )


# =============================================================================
# Database-side translator
# =============================================================================

class minute_of_day(FunctionElement):
    """Minutes since midnight of a TIME value, seconds dropped."""

    type = Integer()
    name = "minute_of_day"
    inherit_cache = True


@compiles(minute_of_day)
def _compile_minute_of_day(element, compiler, **kw):
    (value,) = list(element.clauses)
    sql = compiler.process(value, **kw)
    return (
        f"(CAST(EXTRACT(HOUR FROM {sql}) AS INTEGER) * 60"
        f" + CAST(EXTRACT(MINUTE FROM {sql}) AS INTEGER))"
    )


@compiles(minute_of_day, "sqlite")
def _compile_minute_of_day_sqlite(element, compiler, **kw):
    # SQLite keeps TIME as 'HH:MM:SS[.ffffff]' text
    (value,) = list(element.clauses)
    sql = compiler.process(value, **kw)
    return (
        f"(CAST(substr({sql}, 1, 2) AS INTEGER) * 60"
        f" + CAST(substr({sql}, 4, 2) AS INTEGER))"
    )


def _midnight_as_utc(day: dt.date) -> dt.datetime:
    return dt.datetime(day.year, day.month, day.day, tzinfo=UTC_TZ)


@lru_cache(maxsize=512)
def offset_runs(zone: ZoneLike, day: dt.date) -> tuple[tuple[int, int], ...]:
    """
    UTC correction for every minute of `day`, as runs.

    For minute m of the day, the resolver's instant equals
    `midnight_as_utc(day) + m * 60s - correction(m)`. Returns
    `(first_minute, correction_seconds)` pairs in minute order; the first
    pair always starts at minute 0. A day without a DST change is one run.
    """
    midnight = _midnight_as_utc(day)
    runs: list[tuple[int, int]] = []
    for minute in range(MINUTES_PER_DAY):
        instant = zoned_wall_clock_to_instant(
            zone, day.year, day.month, day.day, minute // 60, minute % 60
        )
        correction = minute * 60 - int((instant - midnight).total_seconds())
        if not runs or runs[-1][1] != correction:
            runs.append((minute, correction))
    return tuple(runs)


def _seconds_after_midnight(minutes: ColumnElement, runs: Sequence[tuple[int, int]]):
    """SQL for `instant - midnight_as_utc(day)` in seconds."""
    if len(runs) == 1:
        return minutes * 60 - runs[0][1]
    correction = case(
        *[(minutes < runs[i + 1][0], runs[i][1]) for i in range(len(runs) - 1)],
        else_=runs[-1][1],
    )
    return minutes * 60 - correction


def _status_on_day(day: dt.date, now: dt.datetime, zone: ZoneLike):
    """CASE giving the status of rows dated `day` at `now`."""
    runs = offset_runs(zone, day)
    # Floor is exact here: start and end are whole seconds
    now_seconds = (now - _midnight_as_utc(day)) // dt.timedelta(seconds=1)

    start = _seconds_after_midnight(minute_of_day(Event.start_time), runs)
    raw_end = _seconds_after_midnight(minute_of_day(Event.end_time), runs)
    end = case((raw_end <= start, raw_end + SECONDS_PER_DAY), else_=raw_end)

    return case(
        (start > now_seconds, EventStatus.DRAFT.value),
        (end > now_seconds, EventStatus.LIVE.value),
        else_=EventStatus.CLOSED.value,
    )


def computed_status_expression(
    now: dt.datetime,
    zone: Optional[ZoneLike] = None,
) -> ColumnElement:
    """
    SQL expression giving each event row's status at `now`.

    `now` is bound once as a constant, so every row in a statement is judged
    against the same instant.
    """
    zone = zone if zone is not None else get_events_tz()
    now = as_utc(now)
    today = local_today(zone, now)
    first_day = today - dt.timedelta(days=TABULATED_DAYS_BACK)
    last_day = today + dt.timedelta(days=TABULATED_DAYS_FORWARD)
    days = [
        first_day + dt.timedelta(days=offset)
        for offset in range((last_day - first_day).days + 1)
    ]

    return case(
        (
            or_(
                Event.date.is_(None),
                Event.start_time.is_(None),
                Event.end_time.is_(None),
            ),
            func.coalesce(Event.status, EventStatus.DRAFT.value),
        ),
        (Event.date < first_day, EventStatus.CLOSED.value),
        (Event.date > last_day, EventStatus.DRAFT.value),
        *[(Event.date == day, _status_on_day(day, now, zone)) for day in days],
        # Not reached: every date falls in one of the branches above
        else_=EventStatus.CLOSED.value,
    )


def _computed_status_filter(
    status: EventStatus,
    now: dt.datetime,
    venue_id: Optional[uuid.UUID],
    event_date: Optional[dt.date],
    zone: Optional[ZoneLike],
) -> list[ColumnElement]:
    clauses = [computed_status_expression(now, zone) == status.value]
    if venue_id is not None:
        clauses.append(Event.venue_id == venue_id)
    if event_date is not None:
        clauses.append(Event.date == event_date)
    return clauses


async def count_by_computed_status(
    db: AsyncSession,
    status: EventStatus,
    now: dt.datetime,
    venue_id: Optional[uuid.UUID] = None,
    event_date: Optional[dt.date] = None,
    zone: Optional[ZoneLike] = None,
) -> int:
    """Number of events whose computed status at `now` is `status`."""
    result = await db.execute(
        select(func.count())
        .select_from(Event)
        .where(*_computed_status_filter(status, now, venue_id, event_date, zone))
    )
    return result.scalar_one()


async def list_ids_by_computed_status(
    db: AsyncSession,
    status: EventStatus,
    now: dt.datetime,
    venue_id: Optional[uuid.UUID] = None,
    event_date: Optional[dt.date] = None,
    skip: int = 0,
    take: Optional[int] = None,
    zone: Optional[ZoneLike] = None,
) -> list[uuid.UUID]:
    """
    Ids of events whose computed status at `now` is `status`.

    Ordered by date, then start time with missing times last.
    """
    query = (
        select(Event.id)
        .where(*_computed_status_filter(status, now, venue_id, event_date, zone))
        .order_by(Event.date.asc(), Event.start_time.asc().nulls_last(), Event.id)
    )
    if take is not None:
        query = query.offset(skip).limit(take)

    result = await db.execute(query)
    return list(result.scalars().all())
