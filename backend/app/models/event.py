"""Event model - nights at a venue, with entry price rules."""

import uuid
import datetime as dt
from decimal import Decimal
from enum import Enum

from sqlalchemy import Date, DateTime, ForeignKey, Numeric, String, Text, Time, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class EventStatus(str, Enum):
    """
    Event lifecycle.

    Only DRAFT is written by clients. LIVE and CLOSED are derived from the
    event's date and time window and written back by the status reconciler.
    """
    DRAFT = "DRAFT"
    LIVE = "LIVE"
    CLOSED = "CLOSED"


class Gender(str, Enum):
    """Gender scope of an entry price rule."""
    M = "M"
    F = "F"
    ALTRO = "ALTRO"


class Event(Base):
    """
    Event entity.

    `date` is a calendar date and `start_time` / `end_time` are wall-clock
    times of day, both read in the venue timezone. An end time at or before
    the start time means the night runs past midnight.
    """

    __tablename__ = "events"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    venue_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("venues.id"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)

    # Storage path of the poster, never inline image data
    image: Mapped[str | None] = mapped_column(String(1024))

    # Event timing (venue-local wall clock)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    start_time: Mapped[dt.time | None] = mapped_column(Time)
    end_time: Mapped[dt.time | None] = mapped_column(Time)

    status: Mapped[str] = mapped_column(
        String(20),
        default=EventStatus.DRAFT.value,
        nullable=False,
        index=True,
    )

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime,
        default=dt.datetime.utcnow,
        nullable=False,
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime,
        default=dt.datetime.utcnow,
        onupdate=dt.datetime.utcnow,
        nullable=False,
    )

    # Relationships
    entry_prices: Mapped[list["EventEntryPrice"]] = relationship(
        "EventEntryPrice",
        back_populates="event",
        order_by="EventEntryPrice.created_at",
        lazy="selectin",
    )
    promos: Mapped[list["Promo"]] = relationship(
        "Promo",
        back_populates="event",
        order_by="Promo.created_at.desc()",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Event {self.name} @ {self.date}>"


class EventEntryPrice(Base):
    """
    Door price rule for an event.

    A rule may be scoped to a gender and/or a time-of-day window
    (e.g. "women free before 00:30").
    """

    __tablename__ = "event_entry_prices"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("events.id"),
        nullable=False,
        index=True,
    )
    label: Mapped[str | None] = mapped_column(String(255))
    gender: Mapped[str | None] = mapped_column(String(10))
    start_time: Mapped[dt.time | None] = mapped_column(Time)
    end_time: Mapped[dt.time | None] = mapped_column(Time)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime,
        default=dt.datetime.utcnow,
        nullable=False,
    )

    # Relationships
    event: Mapped["Event"] = relationship("Event", back_populates="entry_prices")

    def __repr__(self) -> str:
        return f"<EventEntryPrice {self.label or '-'} {self.price}>"
