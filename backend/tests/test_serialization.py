"""Tests for wire-format parsing and formatting."""

import uuid
from datetime import date, datetime, time
from decimal import Decimal

import pytest
from pydantic import ValidationError

from app.models import EventStatus, Gender
from app.schemas.event import (
    EntryPriceInput,
    EventPage,
    EventResponse,
    EventUpdate,
    decimal_to_number,
    format_date_only,
    format_time_of_day,
    parse_date_only,
    parse_time_of_day,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("23:00", time(23, 0)),
        ("05:07:09", time(5, 7, 9)),
        ("2024-06-15T21:00:00Z", time(21, 0)),
        ("2024-06-15T23:00:00+02:00", time(21, 0)),
        ("1970-01-01T23:30:00", time(23, 30)),
    ],
)
def test_parse_time_of_day(value, expected):
    assert parse_time_of_day(value) == expected


@pytest.mark.parametrize("value", ["24:00", "7:00", "23:60", "late", ""])
def test_parse_time_of_day_rejects(value):
    with pytest.raises(ValueError, match="HH:MM"):
        parse_time_of_day(value)


def test_parse_date_only():
    assert parse_date_only("2024-06-15") == date(2024, 6, 15)
    assert parse_date_only("2024-06-15T23:30:00Z") == date(2024, 6, 15)


@pytest.mark.parametrize(
    "value",
    ["15/06/2024", "20240615", "2024-W24-6", "2024-167", "2024-06-15T25:00", "2024-06-15T2300", ""],
)
def test_parse_date_only_rejects(value):
    with pytest.raises(ValueError, match="YYYY-MM-DD"):
        parse_date_only(value)


@pytest.mark.parametrize("value", ["2024-06-15T23", "20240615T230000", "2024-W24-6T21:00"])
def test_parse_time_of_day_rejects_loose_datetimes(value):
    with pytest.raises(ValueError, match="HH:MM"):
        parse_time_of_day(value)


def test_formatting():
    assert format_date_only(date(2024, 6, 5)) == "2024-06-05"
    assert format_time_of_day(time(5, 7, 59)) == "05:07"
    assert format_time_of_day(None) is None
    assert decimal_to_number(Decimal("12.50")) == 12.5
    assert decimal_to_number(None) == 0


def test_entry_price_input():
    price = EntryPriceInput(label="Donna", gender="altro", start_time="", price="0")
    assert price.gender == Gender.ALTRO
    assert price.start_time is None
    assert price.price == Decimal("0")

    with pytest.raises(ValidationError, match="Invalid gender"):
        EntryPriceInput(gender="X", price=1)
    with pytest.raises(ValidationError):
        EntryPriceInput(price="NaN")


def test_update_tracks_explicit_nulls():
    update = EventUpdate.model_validate({"end_time": None, "status": "draft"})
    assert update.model_dump(exclude_unset=True) == {"end_time": None, "status": EventStatus.DRAFT}


def test_event_response_wire_format():
    now = datetime(2024, 6, 15, 12, 0)
    response = EventResponse(
        id=uuid.uuid4(),
        venue_id=uuid.uuid4(),
        name="Saturday",
        date=date(2024, 6, 15),
        start_time=time(23, 0, 30),
        end_time=None,
        status=EventStatus.LIVE,
        created_at=now,
        updated_at=now,
    )

    data = response.model_dump(mode="json")
    assert data["date"] == "2024-06-15"
    assert data["start_time"] == "23:00"
    assert data["end_time"] is None
    assert data["status"] == "LIVE"


def test_event_page_aliases():
    page = EventPage(data=[], total=0, page=1, page_size=10, has_more=False)
    assert page.model_dump(by_alias=True) == {
        "data": [],
        "total": 0,
        "page": 1,
        "pageSize": 10,
        "hasMore": False,
    }
