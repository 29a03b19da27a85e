"""
Venue API endpoints.

Public reads for the mobile apps; venue records are managed by admins.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import STAFF_ROLES, caller_venue_id, require_roles
from app.database import get_db
from app.models import Event, Promo, Venue
from app.schemas.auth import RequestUser, Role
from app.schemas.event import EventResponse, PromoResponse, VenueStats
from app.schemas.venue import VenueCreate, VenueResponse, VenueUpdate
from app.services import event_service

router = APIRouter()


async def _get_venue_or_404(db: AsyncSession, venue_id: uuid.UUID) -> Venue:
    venue = await db.get(Venue, venue_id)
    if not venue:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Venue not found",
        )
    return venue


# =============================================================================
# Public Endpoints
# =============================================================================

@router.get("", response_model=list[VenueResponse])
async def list_venues(
    db: AsyncSession = Depends(get_db),
):
    """List all venues, newest first."""
    result = await db.execute(select(Venue).order_by(Venue.created_at.desc()))
    return result.scalars().all()


@router.get("/{venue_id}", response_model=VenueResponse)
async def get_venue(
    venue_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get a specific venue."""
    return await _get_venue_or_404(db, venue_id)


@router.get("/{venue_id}/events", response_model=list[EventResponse])
async def list_venue_events(
    venue_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Events of a venue, with computed statuses."""
    await _get_venue_or_404(db, venue_id)
    return await event_service.list_events(db, venue_id=venue_id)


@router.get("/{venue_id}/promos", response_model=list[PromoResponse])
async def list_venue_promos(
    venue_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Promos of a venue, newest first."""
    result = await db.execute(
        select(Promo).where(Promo.venue_id == venue_id).order_by(Promo.created_at.desc())
    )
    return result.scalars().all()


@router.get("/{venue_id}/stats", response_model=VenueStats)
async def get_venue_stats(
    venue_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: RequestUser = Depends(require_roles(*STAFF_ROLES)),
):
    """Door and sales totals over every event of a venue."""
    if not user.is_admin and caller_venue_id(user) != venue_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return await event_service.venue_stats(db, venue_id)


# =============================================================================
# Admin Endpoints
# =============================================================================

@router.post("", response_model=VenueResponse, status_code=status.HTTP_201_CREATED)
async def create_venue(
    data: VenueCreate,
    db: AsyncSession = Depends(get_db),
    _admin: RequestUser = Depends(require_roles(Role.ADMIN)),
):
    """Create a venue."""
    venue = Venue(
        id=uuid.uuid4(),
        name=data.name,
        city=data.city,
        radius_geofence=data.radius_geofence,
    )
    db.add(venue)
    await db.commit()
    await db.refresh(venue)
    return venue


@router.patch("/{venue_id}", response_model=VenueResponse)
async def update_venue(
    venue_id: uuid.UUID,
    data: VenueUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: RequestUser = Depends(require_roles(Role.ADMIN)),
):
    """Update a venue. Only provided fields are changed."""
    venue = await _get_venue_or_404(db, venue_id)

    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if field == "name" and value is None:
            continue
        setattr(venue, field, value)

    await db.commit()
    await db.refresh(venue)
    return venue


@router.delete("/{venue_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_venue(
    venue_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _admin: RequestUser = Depends(require_roles(Role.ADMIN)),
):
    """
    Delete a venue.

    Refused with 409 while the venue still has events. Its remaining
    promos are deleted with it.
    """
    venue = await _get_venue_or_404(db, venue_id)

    result = await db.execute(select(Event.id).where(Event.venue_id == venue_id).limit(1))
    if result.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Venue still has events",
        )

    await db.execute(delete(Promo).where(Promo.venue_id == venue_id))
    await db.delete(venue)
    await db.commit()
