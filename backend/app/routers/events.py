"""
Event API endpoints.

Public reads for the mobile apps, venue/admin writes for the dashboard, and
the status sweep trigger for schedulers.
"""

import uuid
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import (
    STAFF_ROLES,
    caller_venue_id,
    require_roles,
    verify_sync_access,
)
from app.config import get_settings
from app.database import get_db
from app.models import Promo
from app.schemas.auth import RequestUser, Role
from app.schemas.event import (
    DeleteResponse,
    EventCreate,
    EventDetailResponse,
    EventPage,
    EventResponse,
    EventStats,
    EventUpdate,
    PromoResponse,
    SyncStatusResponse,
)
from app.services import event_service

router = APIRouter()

LIST_CACHE_CONTROL = "public, max-age=0, s-maxage=30, stale-while-revalidate=300"
DETAIL_CACHE_CONTROL = "public, max-age=0, s-maxage=60, stale-while-revalidate=600"

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10


def _int_or_default(value: Optional[str], default: int) -> int:
    try:
        return int(value) or default
    except (TypeError, ValueError):
        return default


async def _check_event_access(db: AsyncSession, event_id: uuid.UUID, user: RequestUser) -> None:
    if user.is_admin:
        return
    await event_service.assert_event_belongs_to_venue(db, event_id, caller_venue_id(user))


# =============================================================================
# Public Endpoints
# =============================================================================

@router.get("", response_model=Union[EventPage, list[EventResponse]])
async def list_events(
    response: Response,
    venue_id: Optional[uuid.UUID] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    date: Optional[str] = None,
    page: Optional[str] = None,
    page_size: Optional[str] = Query(None, alias="pageSize"),
    db: AsyncSession = Depends(get_db),
):
    """
    List events.

    `status` may be DRAFT, LIVE or CLOSED; LIVE and CLOSED are computed from
    each event's date and time window. Passing `page` or `pageSize` returns
    `{data, total, page, pageSize, hasMore}` instead of a plain list.
    """
    response.headers["Cache-Control"] = LIST_CACHE_CONTROL

    if page is not None or page_size is not None:
        return await event_service.list_events_paginated(
            db,
            page=_int_or_default(page, DEFAULT_PAGE),
            page_size=_int_or_default(page_size, DEFAULT_PAGE_SIZE),
            venue_id=venue_id,
            status_filter=status_filter,
            event_date=date,
        )

    return await event_service.list_events(
        db,
        venue_id=venue_id,
        status_filter=status_filter,
        event_date=date,
    )


@router.get("/sync-status", response_model=SyncStatusResponse)
async def sync_status(
    db: AsyncSession = Depends(get_db),
    _caller: Optional[RequestUser] = Depends(verify_sync_access),
):
    """
    Bring stored statuses in line with the clock for events near today.

    Called by an external scheduler (cron secret) or by staff.
    """
    settings = get_settings()
    return await event_service.sync_event_statuses_now(
        db,
        days_back=settings.status_sync_days_back,
        days_forward=settings.status_sync_days_forward,
    )


@router.get("/{event_id}", response_model=EventDetailResponse)
async def get_event(
    event_id: uuid.UUID,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Get one event with its promos and entry prices."""
    response.headers["Cache-Control"] = DETAIL_CACHE_CONTROL
    return await event_service.get_event(db, event_id)


@router.get("/{event_id}/promos", response_model=list[PromoResponse])
async def list_event_promos(
    event_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Promos linked to an event, newest first."""
    result = await db.execute(
        select(Promo).where(Promo.event_id == event_id).order_by(Promo.created_at.desc())
    )
    return result.scalars().all()


# =============================================================================
# Staff Endpoints
# =============================================================================

@router.get("/{event_id}/stats", response_model=EventStats)
async def get_event_stats(
    event_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: RequestUser = Depends(require_roles(*STAFF_ROLES)),
):
    """Door and sales totals for an event."""
    await _check_event_access(db, event_id, user)
    return await event_service.get_event_stats(db, event_id)


@router.post("", response_model=EventDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    data: EventCreate,
    db: AsyncSession = Depends(get_db),
    user: RequestUser = Depends(require_roles(Role.VENUE, Role.ADMIN)),
):
    """
    Create an event.

    Venue accounts always create for their own venue. The event starts as
    DRAFT and turns LIVE / CLOSED on its own as its time window passes.
    """
    if not user.is_admin:
        data.venue_id = caller_venue_id(user)
    return await event_service.create_event(db, data)


@router.patch("/{event_id}", response_model=EventDetailResponse)
async def update_event(
    event_id: uuid.UUID,
    data: EventUpdate,
    db: AsyncSession = Depends(get_db),
    user: RequestUser = Depends(require_roles(Role.VENUE, Role.ADMIN)),
):
    """
    Update an event. Only provided fields are changed.

    `entry_prices` and `promos` replace the existing lists when sent.
    """
    await _check_event_access(db, event_id, user)
    if not user.is_admin and data.venue_id is not None and data.venue_id != user.venue_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return await event_service.update_event(db, event_id, data)


@router.delete("/{event_id}", response_model=DeleteResponse)
async def delete_event(
    event_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: RequestUser = Depends(require_roles(Role.VENUE, Role.ADMIN)),
):
    """Delete an event with its prices, promos and staff records."""
    await _check_event_access(db, event_id, user)
    return await event_service.delete_event(db, event_id)
