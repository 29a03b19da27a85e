"""
The SQL status expression must agree with the Python calculator row for row.
"""

import random
from datetime import date, datetime, time, timedelta, timezone

import pytest
from sqlalchemy import select

from app.models import Event, EventStatus
from app.services.event_status import (
    compute_effective_status,
    computed_status_expression,
    count_by_computed_status,
    list_ids_by_computed_status,
)

UTC = timezone.utc
ROME = "Europe/Rome"

NOW_SAMPLES = [
    datetime(2024, 6, 15, 22, 30, tzinfo=UTC),
    datetime(2024, 6, 16, 2, 59, tzinfo=UTC),
    # Rome springs forward at 01:00Z on 31 March 2024
    datetime(2024, 3, 31, 0, 45, tzinfo=UTC),
    datetime(2024, 3, 31, 1, 30, tzinfo=UTC),
    # and falls back at 01:00Z on 27 October 2024
    datetime(2024, 10, 27, 0, 30, tzinfo=UTC),
    datetime(2024, 10, 27, 1, 15, tzinfo=UTC),
]

INTERESTING_TIMES = [time(0, 0), time(1, 0), time(2, 0), time(2, 30), time(3, 0), time(23, 0)]


def _random_time(rng: random.Random):
    roll = rng.random()
    if roll < 0.1:
        return None
    if roll < 0.35:
        return rng.choice(INTERESTING_TIMES)
    return time(rng.randrange(24), rng.randrange(60), rng.randrange(60))


async def _seed_random_events(make_event, around: date, count: int, seed: int) -> list[Event]:
    rng = random.Random(seed)
    events = []
    for _ in range(count):
        events.append(
            await make_event(
                around + timedelta(days=rng.randint(-6, 6)),
                start_time=_random_time(rng),
                end_time=_random_time(rng),
                status=rng.choice(list(EventStatus)),
            )
        )
    return events


def _expected(events, status, now):
    return {
        event.id
        for event in events
        if compute_effective_status(
            event.date, event.start_time, event.end_time, event.status, now=now, zone=ROME
        )
        == status
    }


@pytest.mark.parametrize("now", NOW_SAMPLES, ids=lambda n: n.isoformat())
async def test_translator_matches_calculator(db, make_event, now):
    events = await _seed_random_events(make_event, now.date(), count=120, seed=now.toordinal())

    for status in EventStatus:
        expected = _expected(events, status, now)
        ids = await list_ids_by_computed_status(db, status, now, zone=ROME)
        assert set(ids) == expected, status
        assert await count_by_computed_status(db, status, now, zone=ROME) == len(expected)


async def test_expression_per_row(db, make_event):
    now = NOW_SAMPLES[0]
    events = await _seed_random_events(make_event, now.date(), count=60, seed=7)

    result = await db.execute(select(Event.id, computed_status_expression(now, ROME)))
    by_id = dict(result.all())

    for event in events:
        assert by_id[event.id] == compute_effective_status(
            event.date, event.start_time, event.end_time, event.status, now=now, zone=ROME
        ).value


async def test_far_dates_have_fixed_answers(db, make_event):
    now = NOW_SAMPLES[0]
    old = await make_event(date(2023, 1, 1), time(22, 0), time(4, 0), status=EventStatus.DRAFT)
    future = await make_event(date(2025, 1, 1), time(22, 0), time(4, 0), status=EventStatus.LIVE)

    assert await list_ids_by_computed_status(db, EventStatus.CLOSED, now, zone=ROME) == [old.id]
    assert await list_ids_by_computed_status(db, EventStatus.DRAFT, now, zone=ROME) == [future.id]


async def test_filters_and_ordering(db, make_event, other_venue):
    now = NOW_SAMPLES[0]
    late = await make_event(date(2024, 6, 14), time(23, 0), time(5, 0))
    early = await make_event(date(2024, 6, 14), time(20, 0), time(22, 0))
    untimed = await make_event(date(2024, 6, 14), status=EventStatus.CLOSED)
    previous_day = await make_event(date(2024, 6, 13), time(23, 0), time(5, 0))
    await make_event(date(2024, 6, 14), time(20, 0), time(22, 0), venue_id=other_venue.id)

    ids = await list_ids_by_computed_status(
        db, EventStatus.CLOSED, now, venue_id=late.venue_id, zone=ROME
    )
    assert ids == [previous_day.id, early.id, late.id, untimed.id]

    same_day = await list_ids_by_computed_status(
        db, EventStatus.CLOSED, now, venue_id=late.venue_id, event_date=date(2024, 6, 14), zone=ROME
    )
    assert same_day == [early.id, late.id, untimed.id]

    page = await list_ids_by_computed_status(
        db, EventStatus.CLOSED, now, venue_id=late.venue_id, skip=1, take=2, zone=ROME
    )
    assert page == [early.id, late.id]
