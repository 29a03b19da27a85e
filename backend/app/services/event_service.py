"""
Event service - listing, detail, writes and statistics for events.

Every read reports the computed status (see event_status) and hands the rows
to the status reconciler, which writes drifted statuses back in the
background. Listings filtered on LIVE or CLOSED are resolved by the database
through the computed-status expression; DRAFT and unfiltered listings use
the stored column.
"""

import datetime as dt
import logging
import uuid
from decimal import Decimal
from typing import Optional, Sequence

from fastapi import HTTPException, status
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models import (
    BarSale,
    CloakroomSale,
    Entry,
    Event,
    EventEntryPrice,
    EventStatus,
    EventTable,
    Promo,
    PromoStatus,
    TableSale,
    Venue,
)
from app.schemas.event import (
    EntryPriceInput,
    EventCreate,
    EventDetailResponse,
    EventPage,
    EventResponse,
    EventStats,
    EventUpdate,
    PromoInput,
    SyncStatusResponse,
    VenueStats,
    decimal_to_number,
    parse_choice,
    parse_date_only,
)
from app.services.event_status import (
    count_by_computed_status,
    effective_status,
    list_ids_by_computed_status,
)
from app.services.status_reconciler import status_reconciler
from app.utils.timezone import utc_now

logger = logging.getLogger(__name__)

# Active promos embedded per event in listings
LISTING_PROMO_LIMIT = 3


# =============================================================================
# Filters
# =============================================================================

def normalize_status(value: Optional[str]) -> Optional[EventStatus]:
    """Parse a status filter (case-insensitive). 400 on unknown values."""
    if not value:
        return None
    try:
        return parse_choice(value, EventStatus, "status", upper=True)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def parse_date_filter(value: Optional[str]) -> Optional[dt.date]:
    """Parse a YYYY-MM-DD filter. 400 on malformed input."""
    if not value:
        return None
    try:
        return parse_date_only(value)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def _stored_filters(
    venue_id: Optional[uuid.UUID],
    requested: Optional[EventStatus],
    event_date: Optional[dt.date],
) -> list:
    clauses = []
    if venue_id is not None:
        clauses.append(Event.venue_id == venue_id)
    if requested == EventStatus.DRAFT:
        clauses.append(Event.status == EventStatus.DRAFT.value)
    if event_date is not None:
        clauses.append(Event.date == event_date)
    return clauses


def _listing_order():
    return (Event.date.asc(), Event.start_time.asc().nulls_last(), Event.id)


# =============================================================================
# Serialization
# =============================================================================

def serialize_event(event: Event, now: dt.datetime) -> EventResponse:
    """Listing shape: computed status and the latest active promos."""
    data = EventResponse.model_validate(event)
    data.status = effective_status(event, now=now)
    data.promos = [
        promo for promo in data.promos if promo.status == PromoStatus.ACTIVE.value
    ][:LISTING_PROMO_LIMIT]
    return data


def serialize_event_detail(event: Event, now: dt.datetime) -> EventDetailResponse:
    """Detail shape: computed status, every promo and the price list."""
    data = EventDetailResponse.model_validate(event)
    data.status = effective_status(event, now=now)
    return data


async def _load_in_order(db: AsyncSession, ids: Sequence[uuid.UUID]) -> list[Event]:
    """Fetch events by id, keeping the order of `ids`."""
    if not ids:
        return []
    result = await db.execute(select(Event).where(Event.id.in_(ids)))
    by_id = {event.id: event for event in result.scalars().all()}
    return [by_id[event_id] for event_id in ids if event_id in by_id]


def _log_listing(filters: dict, events: Sequence[Event], now: dt.datetime) -> None:
    if not get_settings().debug_events:
        return
    sample = [
        {
            "id": str(event.id),
            "date": str(event.date),
            "start_time": str(event.start_time),
            "end_time": str(event.end_time),
            "stored": event.status,
            "status": effective_status(event, now=now).value,
        }
        for event in events[:5]
    ]
    logger.debug(
        "listEvents filters=%s rows=%d now=%s sample=%s",
        filters,
        len(events),
        now.isoformat(),
        sample,
    )


# =============================================================================
# Reads
# =============================================================================

async def list_events(
    db: AsyncSession,
    venue_id: Optional[uuid.UUID] = None,
    status_filter: Optional[str] = None,
    event_date: Optional[str] = None,
    now: Optional[dt.datetime] = None,
) -> list[EventResponse]:
    """
    List events ordered by date and start time.

    LIVE/CLOSED filters are evaluated in the database against one snapshot
    of `now`; DRAFT filters on the stored column.
    """
    requested = normalize_status(status_filter)
    day = parse_date_filter(event_date)
    now = now or utc_now()

    if requested in (EventStatus.LIVE, EventStatus.CLOSED):
        ids = await list_ids_by_computed_status(
            db, requested, now, venue_id=venue_id, event_date=day
        )
        events = await _load_in_order(db, ids)
    else:
        result = await db.execute(
            select(Event)
            .where(*_stored_filters(venue_id, requested, day))
            .order_by(*_listing_order())
        )
        events = list(result.scalars().all())

    _log_listing({"venue_id": venue_id, "status": requested, "date": day}, events, now)
    status_reconciler.schedule(events, now)
    return [serialize_event(event, now) for event in events]


async def list_events_paginated(
    db: AsyncSession,
    page: int,
    page_size: int,
    venue_id: Optional[uuid.UUID] = None,
    status_filter: Optional[str] = None,
    event_date: Optional[str] = None,
    now: Optional[dt.datetime] = None,
) -> EventPage:
    """One page of `list_events` with the total count."""
    requested = normalize_status(status_filter)
    day = parse_date_filter(event_date)
    now = now or utc_now()

    take = max(page_size, 1)
    skip = (max(page, 1) - 1) * take

    if requested in (EventStatus.LIVE, EventStatus.CLOSED):
        total = await count_by_computed_status(
            db, requested, now, venue_id=venue_id, event_date=day
        )
        ids = await list_ids_by_computed_status(
            db,
            requested,
            now,
            venue_id=venue_id,
            event_date=day,
            skip=skip,
            take=take,
        )
        events = await _load_in_order(db, ids)
    else:
        filters = _stored_filters(venue_id, requested, day)
        total = (
            await db.execute(select(func.count()).select_from(Event).where(*filters))
        ).scalar_one()
        result = await db.execute(
            select(Event)
            .where(*filters)
            .order_by(*_listing_order())
            .offset(skip)
            .limit(take)
        )
        events = list(result.scalars().all())

    status_reconciler.schedule(events, now)
    data = [serialize_event(event, now) for event in events]
    return EventPage(
        data=data,
        total=total,
        page=page,
        page_size=take,
        has_more=skip + len(data) < total,
    )


async def _get_event_row(db: AsyncSession, event_id: uuid.UUID) -> Event:
    result = await db.execute(
        select(Event)
        .where(Event.id == event_id)
        .execution_options(populate_existing=True)
    )
    event = result.scalar_one_or_none()
    if event is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


async def get_event(
    db: AsyncSession,
    event_id: uuid.UUID,
    now: Optional[dt.datetime] = None,
) -> EventDetailResponse:
    """Event detail. 404 if it does not exist."""
    now = now or utc_now()
    event = await _get_event_row(db, event_id)
    status_reconciler.schedule([event], now)
    return serialize_event_detail(event, now)


async def assert_event_belongs_to_venue(
    db: AsyncSession,
    event_id: uuid.UUID,
    venue_id: uuid.UUID,
) -> None:
    """404 if the event is missing, 403 if it belongs to another venue."""
    result = await db.execute(select(Event.venue_id).where(Event.id == event_id))
    owner = result.scalar_one_or_none()
    if owner is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    if owner != venue_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


async def _require_venue(db: AsyncSession, venue_id: uuid.UUID) -> Venue:
    venue = await db.get(Venue, venue_id)
    if venue is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Venue not found")
    return venue


# =============================================================================
# Writes
# =============================================================================

def _entry_price_rows(event_id: uuid.UUID, prices: Sequence[EntryPriceInput]) -> list[EventEntryPrice]:
    return [
        EventEntryPrice(
            event_id=event_id,
            label=p.label,
            gender=p.gender.value if p.gender else None,
            start_time=p.start_time,
            end_time=p.end_time,
            price=p.price,
        )
        for p in prices
    ]


def _promo_rows(
    event_id: uuid.UUID,
    venue_id: uuid.UUID,
    promos: Sequence[PromoInput],
) -> list[Promo]:
    return [
        Promo(
            venue_id=venue_id,
            event_id=event_id,
            title=p.title,
            description=p.description,
            discount_type=p.discount_type.value,
            discount_value=p.discount_value,
            status=p.status.value,
        )
        for p in promos
    ]


async def create_event(db: AsyncSession, data: EventCreate) -> EventDetailResponse:
    """
    Create an event with its price list and promos.

    The event is stored as DRAFT whatever status was requested.
    """
    if data.venue_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="venue_id is required",
        )
    await _require_venue(db, data.venue_id)

    event = Event(
        id=uuid.uuid4(),
        venue_id=data.venue_id,
        name=data.name,
        description=data.description,
        image=data.image,
        date=data.date,
        start_time=data.start_time,
        end_time=data.end_time,
        status=EventStatus.DRAFT.value,
    )
    db.add(event)
    db.add_all(_entry_price_rows(event.id, data.entry_prices))
    db.add_all(_promo_rows(event.id, data.venue_id, data.promos))
    await db.commit()

    logger.info("Event %s created for venue %s on %s", event.id, event.venue_id, event.date)
    return await get_event(db, event.id)


async def update_event(
    db: AsyncSession,
    event_id: uuid.UUID,
    data: EventUpdate,
) -> EventDetailResponse:
    """
    Partially update an event.

    Only DRAFT is accepted as a status; LIVE/CLOSED requests are ignored.
    Provided entry prices and promos replace the existing ones.
    """
    event = await _get_event_row(db, event_id)

    changes = data.model_dump(
        exclude_unset=True,
        exclude={"entry_prices", "promos", "status"},
    )
    if changes.get("venue_id") is not None:
        await _require_venue(db, changes["venue_id"])
    for field, value in changes.items():
        if field in ("venue_id", "name", "date") and value is None:
            continue  # required columns
        setattr(event, field, value)
    if data.status == EventStatus.DRAFT:
        event.status = EventStatus.DRAFT.value

    if data.entry_prices is not None:
        await db.execute(delete(EventEntryPrice).where(EventEntryPrice.event_id == event_id))
        db.add_all(_entry_price_rows(event_id, data.entry_prices))

    if data.promos is not None:
        await db.execute(delete(Promo).where(Promo.event_id == event_id))
        db.add_all(_promo_rows(event_id, event.venue_id, data.promos))

    await db.commit()

    logger.info("Event %s updated (%s)", event_id, ", ".join(sorted(data.model_fields_set)))
    return await get_event(db, event_id)


async def delete_event(db: AsyncSession, event_id: uuid.UUID) -> dict:
    """Delete an event and everything recorded against it."""
    await _get_event_row(db, event_id)

    table_ids = select(EventTable.id).where(EventTable.event_id == event_id)
    # Dependants first to satisfy foreign keys
    for statement in (
        delete(EventEntryPrice).where(EventEntryPrice.event_id == event_id),
        delete(Promo).where(Promo.event_id == event_id),
        delete(BarSale).where(BarSale.event_id == event_id),
        delete(CloakroomSale).where(CloakroomSale.event_id == event_id),
        delete(TableSale).where(TableSale.event_table_id.in_(table_ids)),
        delete(Entry).where(Entry.event_id == event_id),
        delete(EventTable).where(EventTable.event_id == event_id),
        delete(Event).where(Event.id == event_id),
    ):
        await db.execute(statement.execution_options(synchronize_session=False))
    await db.commit()

    logger.info("Event %s deleted", event_id)
    return {"success": True}


# =============================================================================
# Statistics
# =============================================================================

async def _sum(db: AsyncSession, statement) -> Decimal:
    return (await db.execute(statement)).scalar_one() or Decimal("0")


async def get_event_stats(db: AsyncSession, event_id: uuid.UUID) -> EventStats:
    """Entries and sales totals for one event."""
    await _get_event_row(db, event_id)

    entries = (
        await db.execute(
            select(func.count()).select_from(Entry).where(Entry.event_id == event_id)
        )
    ).scalar_one()
    bar = await _sum(db, select(func.sum(BarSale.amount)).where(BarSale.event_id == event_id))
    cloakroom = await _sum(
        db,
        select(func.sum(CloakroomSale.amount)).where(CloakroomSale.event_id == event_id),
    )
    tables = await _sum(
        db,
        select(func.sum(TableSale.amount))
        .join(EventTable, TableSale.event_table_id == EventTable.id)
        .where(EventTable.event_id == event_id),
    )

    return EventStats(
        event_id=event_id,
        total_entries=entries,
        total_bar=decimal_to_number(bar),
        total_cloakroom=decimal_to_number(cloakroom),
        total_tables=decimal_to_number(tables),
        last_updated=utc_now(),
    )


async def venue_stats(db: AsyncSession, venue_id: uuid.UUID) -> VenueStats:
    """Totals over every event of a venue."""
    await _require_venue(db, venue_id)

    result = await db.execute(
        select(Event.id).where(Event.venue_id == venue_id).order_by(Event.date)
    )
    stats = [await get_event_stats(db, event_id) for event_id in result.scalars().all()]

    return VenueStats(
        venue_id=venue_id,
        total_entries=sum(s.total_entries for s in stats),
        total_bar=sum(s.total_bar for s in stats),
        total_cloakroom=sum(s.total_cloakroom for s in stats),
        total_tables=sum(s.total_tables for s in stats),
        events=stats,
    )


# =============================================================================
# Status sweep
# =============================================================================

async def sync_event_statuses_now(
    db: AsyncSession,
    days_back: Optional[int] = None,
    days_forward: Optional[int] = None,
    now: Optional[dt.datetime] = None,
) -> SyncStatusResponse:
    """Run the bounded status sweep (both bounds clamped to 7 days)."""
    updated = await status_reconciler.sweep(
        db,
        days_back=days_back,
        days_forward=days_forward,
        now=now,
    )
    return SyncStatusResponse(success=True, updated=updated)
