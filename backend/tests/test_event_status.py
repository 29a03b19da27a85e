"""Tests for the application-side status calculator."""

from datetime import date, datetime, time, timedelta, timezone

import pytest

from app.models import EventStatus
from app.services.event_status import compute_effective_status, event_window, offset_runs

UTC = timezone.utc
ROME = "Europe/Rome"


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=UTC)


def status_at(now, event_date=date(2024, 6, 15), start=time(23, 0), end=time(5, 0), stored="DRAFT"):
    return compute_effective_status(event_date, start, end, stored, now=now, zone=ROME)


class TestOvernightEvent:
    """Saturday 23:00 -> Sunday 05:00 in Rome (21:00Z -> 03:00Z)."""

    def test_before_start(self):
        assert status_at(utc(2024, 6, 15, 20, 59)) == EventStatus.DRAFT

    def test_start_is_inclusive(self):
        assert status_at(utc(2024, 6, 15, 21, 0)) == EventStatus.LIVE

    def test_after_midnight(self):
        assert status_at(utc(2024, 6, 16, 2, 59)) == EventStatus.LIVE

    def test_end_is_exclusive(self):
        assert status_at(utc(2024, 6, 16, 3, 0)) == EventStatus.CLOSED

    def test_window(self):
        start, end = event_window(date(2024, 6, 15), time(23, 0), time(5, 0), ROME)
        assert start == utc(2024, 6, 15, 21, 0)
        assert end == utc(2024, 6, 16, 3, 0)


def test_same_day_event():
    kwargs = dict(start=time(18, 0), end=time(23, 0))
    assert status_at(utc(2024, 6, 15, 15, 59), **kwargs) == EventStatus.DRAFT
    assert status_at(utc(2024, 6, 15, 20, 59), **kwargs) == EventStatus.LIVE
    assert status_at(utc(2024, 6, 15, 21, 0), **kwargs) == EventStatus.CLOSED


def test_equal_start_and_end_runs_a_full_day():
    kwargs = dict(start=time(22, 0), end=time(22, 0))
    assert status_at(utc(2024, 6, 16, 19, 59), **kwargs) == EventStatus.LIVE
    assert status_at(utc(2024, 6, 16, 20, 0), **kwargs) == EventStatus.CLOSED


def test_seconds_are_ignored():
    assert status_at(utc(2024, 6, 15, 21, 0), start=time(23, 0, 45)) == EventStatus.LIVE


def test_naive_now_is_utc():
    assert status_at(datetime(2024, 6, 15, 21, 0)) == EventStatus.LIVE


def test_stored_status_is_ignored_when_times_are_set():
    assert status_at(utc(2024, 6, 15, 12, 0), stored="CLOSED") == EventStatus.DRAFT


@pytest.mark.parametrize(
    "start, end, stored, expected",
    [
        (None, time(5, 0), "LIVE", EventStatus.LIVE),
        (time(23, 0), None, "CLOSED", EventStatus.CLOSED),
        (None, None, None, EventStatus.DRAFT),
        (None, None, "", EventStatus.DRAFT),
    ],
)
def test_missing_times_keep_stored_status(start, end, stored, expected):
    assert status_at(utc(2030, 1, 1), start=start, end=end, stored=stored) == expected


def test_missing_date_keeps_stored_status():
    assert status_at(utc(2030, 1, 1), event_date=None, stored="LIVE") == EventStatus.LIVE


def test_status_never_goes_backwards():
    order = [EventStatus.DRAFT, EventStatus.LIVE, EventStatus.CLOSED]
    now = utc(2024, 6, 15, 18, 0)
    previous = 0
    while now < utc(2024, 6, 16, 6, 0):
        current = order.index(status_at(now))
        assert current >= previous
        previous = current
        now += timedelta(minutes=7)
    assert previous == 2


def test_spring_forward_night():
    # 02:30 does not exist on 31 March 2024 and starts at 03:30 CEST (01:30Z)
    kwargs = dict(event_date=date(2024, 3, 31), start=time(2, 30), end=time(4, 0))
    assert status_at(utc(2024, 3, 31, 1, 29), **kwargs) == EventStatus.DRAFT
    assert status_at(utc(2024, 3, 31, 1, 45), **kwargs) == EventStatus.LIVE
    assert status_at(utc(2024, 3, 31, 2, 0), **kwargs) == EventStatus.CLOSED


def test_default_zone_comes_from_settings():
    # EVENTS_TIMEZONE is Europe/Rome in the test environment
    assert compute_effective_status(
        date(2024, 6, 15), time(23, 0), time(5, 0), "DRAFT", now=utc(2024, 6, 15, 21, 30)
    ) == EventStatus.LIVE


class TestOffsetRuns:
    def test_plain_day_is_one_run(self):
        assert offset_runs(ROME, date(2024, 6, 15)) == ((0, 7200),)

    def test_dst_day_changes_correction(self):
        runs = offset_runs(ROME, date(2024, 3, 31))
        assert runs[0] == (0, 3600)
        # Gap minutes 02:00-02:59 still resolve with the winter offset
        assert runs == ((0, 3600), (3 * 60, 7200))


def test_overnight_wrap_in_a_zone_without_dst():
    # Tokyo is UTC+9 all year
    def at(*args):
        return compute_effective_status(
            date(2024, 6, 15), time(23, 0), time(2, 0), "DRAFT", now=utc(*args), zone="Asia/Tokyo"
        )

    assert at(2024, 6, 15, 14, 30) == EventStatus.LIVE  # 23:30 local
    assert at(2024, 6, 15, 16, 30) == EventStatus.LIVE  # 01:30 next day
    assert at(2024, 6, 15, 18, 0) == EventStatus.CLOSED  # 03:00 next day
