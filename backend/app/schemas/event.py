"""
Pydantic schemas for event endpoints.

Wire formats:
- calendar dates as "YYYY-MM-DD", using the date's own components
- times of day as "HH:MM", formatted verbatim (they carry no zone)
- prices and discounts as plain numbers
- `status` is always the computed status, never the stored column
"""

import datetime as dt
import re
import uuid
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from app.models import DiscountType, EventStatus, Gender, PromoStatus

DATA_URL_IMAGE = re.compile(r"^data:image/(png|jpe?g|webp);base64,", re.IGNORECASE)
TIME_OF_DAY = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)(?::([0-5]\d))?$")
DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
ISO_DATETIME = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(?::\d{2}(?:\.\d{1,6})?)?(?:Z|[+-]\d{2}:\d{2})?$"
)


# =============================================================================
# Parsing and formatting helpers
# =============================================================================

def _parse_iso_datetime(value: str) -> dt.datetime:
    if not ISO_DATETIME.match(value):
        raise ValueError(value)
    return dt.datetime.fromisoformat(value.replace("Z", "+00:00"))


def parse_date_only(value: str) -> dt.date:
    """
    Parse "YYYY-MM-DD" (or an ISO datetime, keeping its calendar date).

    Compact ("20240615") and week ("2024-W24-6") forms are refused.
    Raises ValueError with the expected format.
    """
    try:
        if "T" in value:
            return _parse_iso_datetime(value).date()
        if not DATE_ONLY.match(value):
            raise ValueError(value)
        return dt.date.fromisoformat(value)
    except ValueError as exc:
        raise ValueError("Invalid date format, expected YYYY-MM-DD") from exc


def parse_time_of_day(value: str) -> dt.time:
    """
    Parse "HH:MM", "HH:MM:SS" or a full ISO datetime.

    ISO datetimes with an offset contribute their UTC time of day.
    Raises ValueError with the expected format.
    """
    if "T" in value:
        try:
            parsed = _parse_iso_datetime(value)
        except ValueError as exc:
            raise ValueError("Invalid time format, expected HH:MM or HH:MM:SS") from exc
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(dt.timezone.utc)
        return parsed.time().replace(microsecond=0, tzinfo=None)

    match = TIME_OF_DAY.match(value)
    if not match:
        raise ValueError("Invalid time format, expected HH:MM or HH:MM:SS")
    hour, minute, second = match.groups()
    return dt.time(int(hour), int(minute), int(second or 0))


def parse_choice(value: str, enum_cls, label: str, upper: bool = False):
    """Case-insensitive enum lookup with an error listing the allowed values."""
    normalized = value.upper() if upper else value.lower()
    allowed = [member.value for member in enum_cls]
    if normalized not in allowed:
        raise ValueError(f"Invalid {label}. Allowed: {', '.join(allowed)}")
    return enum_cls(normalized)


def format_date_only(value: Optional[dt.date]) -> Optional[str]:
    return value.strftime("%Y-%m-%d") if value is not None else None


def format_time_of_day(value: Optional[dt.time]) -> Optional[str]:
    return f"{value.hour:02d}:{value.minute:02d}" if value is not None else None


def decimal_to_number(value: Optional[Decimal]) -> float:
    return float(value) if value is not None else 0


# =============================================================================
# Request Schemas
# =============================================================================

class EntryPriceInput(BaseModel):
    """Entry price rule as sent by the venue dashboard."""
    label: Optional[str] = None
    gender: Optional[Gender] = None
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None
    price: Decimal = Field(..., ge=0, allow_inf_nan=False)

    @field_validator("gender", mode="before")
    @classmethod
    def _gender(cls, value):
        if value in (None, ""):
            return None
        return parse_choice(str(value), Gender, "gender", upper=True)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _time(cls, value):
        if value in (None, ""):
            return None
        if isinstance(value, dt.time):
            return value
        return parse_time_of_day(str(value))


class PromoInput(BaseModel):
    """Promo created together with an event."""
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: Optional[Decimal] = Field(None, ge=0, allow_inf_nan=False)
    status: PromoStatus = PromoStatus.ACTIVE

    @field_validator("discount_type", mode="before")
    @classmethod
    def _discount_type(cls, value):
        if value in (None, ""):
            raise ValueError("promo.discount_type is required")
        return parse_choice(str(value), DiscountType, "discount_type")

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value):
        if value in (None, ""):
            return PromoStatus.ACTIVE
        return parse_choice(str(value), PromoStatus, "promo status")


class _EventFields(BaseModel):
    """Validators shared by create and update bodies."""

    @field_validator("date", mode="before", check_fields=False)
    @classmethod
    def _date(cls, value):
        if value in (None, "") or isinstance(value, dt.date):
            return value or None
        return parse_date_only(str(value))

    @field_validator("start_time", "end_time", mode="before", check_fields=False)
    @classmethod
    def _time(cls, value):
        if value in (None, ""):
            return None
        if isinstance(value, dt.time):
            return value
        return parse_time_of_day(str(value))

    @field_validator("status", mode="before", check_fields=False)
    @classmethod
    def _status(cls, value):
        if value in (None, ""):
            return None
        return parse_choice(str(value), EventStatus, "status", upper=True)

    @field_validator("image", check_fields=False)
    @classmethod
    def _image(cls, value):
        if value and DATA_URL_IMAGE.match(value):
            raise ValueError(
                "image must be a storage path (upload the poster first, then send its path)"
            )
        return value


class EventCreate(_EventFields):
    """
    Schema for creating an event.

    `status` is accepted for compatibility but the event is always stored
    as DRAFT; LIVE and CLOSED come from the clock.
    """
    venue_id: Optional[uuid.UUID] = None
    name: str = Field(..., min_length=1, max_length=255)
    date: dt.date
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None
    status: Optional[EventStatus] = None
    description: Optional[str] = None
    image: Optional[str] = Field(None, max_length=1024)
    entry_prices: list[EntryPriceInput] = Field(default_factory=list)
    promos: list[PromoInput] = Field(default_factory=list)


class EventUpdate(_EventFields):
    """
    Schema for updating an event (all fields optional).

    `entry_prices` and `promos`, when present, replace the existing sets.
    """
    venue_id: Optional[uuid.UUID] = None
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    date: Optional[dt.date] = None
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None
    status: Optional[EventStatus] = None
    description: Optional[str] = None
    image: Optional[str] = Field(None, max_length=1024)
    entry_prices: Optional[list[EntryPriceInput]] = None
    promos: Optional[list[PromoInput]] = None


# =============================================================================
# Response Schemas
# =============================================================================

class EntryPriceResponse(BaseModel):
    """Entry price rule."""
    id: uuid.UUID
    event_id: uuid.UUID
    label: Optional[str] = None
    gender: Optional[str] = None
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None
    price: Decimal
    created_at: dt.datetime

    class Config:
        from_attributes = True

    @field_serializer("start_time", "end_time")
    def _time(self, value: Optional[dt.time]) -> Optional[str]:
        return format_time_of_day(value)

    @field_serializer("price")
    def _price(self, value: Decimal) -> float:
        return decimal_to_number(value)


class PromoResponse(BaseModel):
    """Promo."""
    id: uuid.UUID
    venue_id: uuid.UUID
    event_id: Optional[uuid.UUID] = None
    title: str
    description: Optional[str] = None
    discount_type: str
    discount_value: Optional[Decimal] = None
    status: str
    created_at: dt.datetime

    class Config:
        from_attributes = True

    @field_serializer("discount_value")
    def _discount_value(self, value: Optional[Decimal]) -> float:
        return decimal_to_number(value)


class EventResponse(BaseModel):
    """Event as shown in listings (up to 3 active promos, no price list)."""
    id: uuid.UUID
    venue_id: uuid.UUID
    name: str
    description: Optional[str] = None
    image: Optional[str] = None
    date: dt.date
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None
    status: EventStatus
    created_at: dt.datetime
    updated_at: dt.datetime
    promos: list[PromoResponse] = []

    class Config:
        from_attributes = True

    @field_serializer("date")
    def _date(self, value: dt.date) -> Optional[str]:
        return format_date_only(value)

    @field_serializer("start_time", "end_time")
    def _time(self, value: Optional[dt.time]) -> Optional[str]:
        return format_time_of_day(value)


class EventDetailResponse(EventResponse):
    """Event detail with every promo and the entry price rules."""
    entry_prices: list[EntryPriceResponse] = []


class EventPage(BaseModel):
    """Paginated event listing."""
    model_config = ConfigDict(populate_by_name=True)

    data: list[EventResponse]
    total: int
    page: int
    page_size: int = Field(..., alias="pageSize")
    has_more: bool = Field(..., alias="hasMore")


class SyncStatusResponse(BaseModel):
    """Result of a status sweep."""
    success: bool
    updated: int


class EventStats(BaseModel):
    """Door and sales totals for one event."""
    event_id: uuid.UUID
    total_entries: int
    total_bar: float
    total_cloakroom: float
    total_tables: float
    last_updated: dt.datetime


class VenueStats(BaseModel):
    """Totals over every event of a venue."""
    venue_id: uuid.UUID
    total_entries: int
    total_bar: float
    total_cloakroom: float
    total_tables: float
    events: list[EventStats]


class DeleteResponse(BaseModel):
    success: bool
