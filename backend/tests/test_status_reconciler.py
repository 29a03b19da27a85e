"""Tests for status write-back and the bounded sweep."""

import asyncio
import logging
from datetime import date, datetime, time, timezone

import pytest

from app.models import Event, EventStatus
from app.services.status_reconciler import (
    StatusReconciler,
    StatusRow,
    clamp_sweep_days,
    run_periodic_sweep,
    status_correction,
)

UTC = timezone.utc
ROME = "Europe/Rome"
NOW = datetime(2024, 6, 15, 22, 30, tzinfo=UTC)  # 00:30 on 16 June in Rome


async def stored_status(session_maker, event_id) -> str:
    async with session_maker() as session:
        return (await session.get(Event, event_id)).status


@pytest.mark.parametrize(
    "value, expected",
    [(None, 2), (0, 0), (5, 5), (7, 7), (30, 7), (-3, 0)],
)
def test_clamp_sweep_days(value, expected):
    assert clamp_sweep_days(value) == expected


class TestStatusCorrection:
    def test_drifted_row(self):
        event = Event(id=1, date=date(2024, 6, 15), start_time=time(23, 0), end_time=time(5, 0), status="DRAFT")
        assert status_correction(event, NOW, ROME) == EventStatus.LIVE

    def test_current_row(self):
        event = Event(id=1, date=date(2024, 6, 15), start_time=time(23, 0), end_time=time(5, 0), status="LIVE")
        assert status_correction(event, NOW, ROME) is None

    def test_untimed_row(self):
        event = Event(id=1, date=date(2024, 6, 15), start_time=None, end_time=None, status="CLOSED")
        assert status_correction(event, NOW, ROME) is None

    def test_unsaved_row(self):
        event = Event(date=date(2024, 6, 15), start_time=time(23, 0), end_time=time(5, 0), status="DRAFT")
        assert status_correction(event, NOW, ROME) is None


async def test_reconcile_one_writes_back(session_maker, make_event):
    event = await make_event(date(2024, 6, 15), time(23, 0), time(5, 0))
    reconciler = StatusReconciler(session_maker)

    await reconciler.reconcile_one(event, NOW)

    assert await stored_status(session_maker, event.id) == "LIVE"


async def test_schedule_runs_in_background(session_maker, make_event):
    live = await make_event(date(2024, 6, 15), time(23, 0), time(5, 0))
    closed = await make_event(date(2024, 6, 14), time(23, 0), time(5, 0))
    current = await make_event(date(2024, 6, 20), time(23, 0), time(5, 0))
    reconciler = StatusReconciler(session_maker)

    reconciler.schedule([live, closed, current], NOW)
    assert reconciler.pending == 1
    await reconciler.drain()

    assert reconciler.pending == 0
    assert await stored_status(session_maker, live.id) == "LIVE"
    assert await stored_status(session_maker, closed.id) == "CLOSED"
    assert await stored_status(session_maker, current.id) == "DRAFT"


async def test_schedule_skips_current_rows(session_maker, make_event):
    event = await make_event(date(2024, 6, 20), time(23, 0), time(5, 0))
    reconciler = StatusReconciler(session_maker)

    reconciler.schedule([event], NOW)

    assert reconciler.pending == 0


async def test_schedule_hands_detached_rows_to_reconcile_many(db, session_maker, make_event, monkeypatch):
    event = await make_event(date(2024, 6, 15), time(23, 0), time(5, 0))
    event_id = event.id
    reconciler = StatusReconciler(session_maker)
    seen = []
    reconcile_many = reconciler.reconcile_many

    async def recording(rows, now=None):
        seen.extend(rows)
        await reconcile_many(rows, now)

    monkeypatch.setattr(reconciler, "reconcile_many", recording)
    reconciler.schedule([event], NOW)
    db.expire(event)
    await reconciler.drain()

    assert [type(row) for row in seen] == [StatusRow]
    assert seen[0].id == event_id
    assert await stored_status(session_maker, event_id) == "LIVE"


async def test_write_failure_is_logged_not_raised(make_event, caplog):
    event = await make_event(date(2024, 6, 15), time(23, 0), time(5, 0))

    def broken_factory():
        raise RuntimeError("database unavailable")

    reconciler = StatusReconciler(broken_factory)
    with caplog.at_level(logging.WARNING, logger="app.services.status_reconciler"):
        await reconciler.reconcile_one(event, NOW)
        reconciler.schedule([event], NOW)
        await reconciler.drain()

    failures = [r for r in caplog.records if "write-back failed" in r.getMessage()]
    assert len(failures) == 2


class TestSweep:
    async def test_updates_drifted_rows_once(self, db, session_maker, make_event):
        live = await make_event(date(2024, 6, 15), time(23, 0), time(5, 0))
        closed = await make_event(date(2024, 6, 14), time(23, 0), time(5, 0), status=EventStatus.LIVE)
        upcoming = await make_event(date(2024, 6, 17), time(23, 0), time(5, 0))
        reconciler = StatusReconciler(session_maker)

        assert await reconciler.sweep(db, now=NOW, zone=ROME) == 2
        assert await reconciler.sweep(db, now=NOW, zone=ROME) == 0

        assert await stored_status(session_maker, live.id) == "LIVE"
        assert await stored_status(session_maker, closed.id) == "CLOSED"
        assert await stored_status(session_maker, upcoming.id) == "DRAFT"

    async def test_leaves_rows_outside_the_window(self, db, session_maker, make_event):
        # Stored LIVE ten days ahead: wrong, but beyond the default window
        far = await make_event(date(2024, 6, 26), time(23, 0), time(5, 0), status=EventStatus.LIVE)
        reconciler = StatusReconciler(session_maker)

        assert await reconciler.sweep(db, now=NOW, zone=ROME) == 0
        assert await stored_status(session_maker, far.id) == "LIVE"

    async def test_window_is_clamped_to_a_week(self, db, session_maker, make_event):
        far = await make_event(date(2024, 6, 26), time(23, 0), time(5, 0), status=EventStatus.LIVE)
        week = await make_event(date(2024, 6, 23), time(23, 0), time(5, 0), status=EventStatus.LIVE)
        reconciler = StatusReconciler(session_maker)

        assert await reconciler.sweep(db, days_forward=30, now=NOW, zone=ROME) == 1
        assert await stored_status(session_maker, week.id) == "DRAFT"
        assert await stored_status(session_maker, far.id) == "LIVE"

    async def test_skips_untimed_rows(self, db, session_maker, make_event):
        untimed = await make_event(date(2024, 6, 15), status=EventStatus.LIVE)
        reconciler = StatusReconciler(session_maker)

        assert await reconciler.sweep(db, now=NOW, zone=ROME) == 0
        assert await stored_status(session_maker, untimed.id) == "LIVE"

    async def test_today_is_the_venue_date(self, db, session_maker, make_event):
        # UTC date is 15 June, Rome is already on 16 June: 18 June is in range
        ahead = await make_event(date(2024, 6, 18), time(23, 0), time(5, 0), status=EventStatus.CLOSED)
        reconciler = StatusReconciler(session_maker)

        assert await reconciler.sweep(db, days_back=0, days_forward=2, now=NOW, zone=ROME) == 1
        assert await stored_status(session_maker, ahead.id) == "DRAFT"


async def test_reconcile_many(session_maker, make_event):
    live = await make_event(date(2024, 6, 15), time(23, 0), time(5, 0))
    closed = await make_event(date(2024, 6, 14), time(23, 0), time(5, 0))
    reconciler = StatusReconciler(session_maker)

    await reconciler.reconcile_many([live, closed], NOW)

    assert await stored_status(session_maker, live.id) == "LIVE"
    assert await stored_status(session_maker, closed.id) == "CLOSED"


async def test_periodic_sweep_keeps_going_after_a_failure():
    calls = []

    class FlakyReconciler:
        async def sweep_in_new_session(self, days_back, days_forward):
            calls.append((days_back, days_forward))
            if len(calls) == 1:
                raise RuntimeError("database unavailable")
            return 0

    task = asyncio.create_task(run_periodic_sweep(FlakyReconciler(), 0, 1, 3))
    while len(calls) < 3:
        await asyncio.sleep(0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert calls[0] == (1, 3)
