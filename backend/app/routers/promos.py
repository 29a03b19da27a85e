"""
Promo management endpoints for venue dashboards.

Venue accounts only see and change promos of their own venue; admins see
everything. Public promo listings live on the event and venue routers.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import caller_venue_id, require_roles
from app.database import get_db
from app.models import Promo, Venue
from app.schemas.auth import RequestUser, Role
from app.schemas.event import PromoResponse
from app.schemas.promo import PromoCreate, PromoUpdate
from app.services.event_service import assert_event_belongs_to_venue

router = APIRouter()

promo_manager = require_roles(Role.VENUE, Role.ADMIN)


async def _get_promo_or_404(db: AsyncSession, promo_id: uuid.UUID) -> Promo:
    promo = await db.get(Promo, promo_id)
    if not promo:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Promo not found",
        )
    return promo


def _check_owner(promo: Promo, user: RequestUser) -> None:
    if user.is_admin:
        return
    if promo.venue_id != caller_venue_id(user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


def _newest_first(query):
    return query.order_by(Promo.created_at.desc())


@router.get("", response_model=list[PromoResponse])
async def list_promos(
    db: AsyncSession = Depends(get_db),
    user: RequestUser = Depends(promo_manager),
):
    """All promos (admin) or the caller's venue promos."""
    query = select(Promo)
    if not user.is_admin:
        query = query.where(Promo.venue_id == caller_venue_id(user))
    result = await db.execute(_newest_first(query))
    return result.scalars().all()


@router.get("/by-event/{event_id}", response_model=list[PromoResponse])
async def list_promos_by_event(
    event_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: RequestUser = Depends(promo_manager),
):
    """Promos of an event, limited to the caller's venue."""
    query = select(Promo).where(Promo.event_id == event_id)
    if not user.is_admin:
        query = query.where(Promo.venue_id == caller_venue_id(user))
    result = await db.execute(_newest_first(query))
    return result.scalars().all()


@router.get("/by-venue/{venue_id}", response_model=list[PromoResponse])
async def list_promos_by_venue(
    venue_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: RequestUser = Depends(promo_manager),
):
    """Promos of a venue."""
    if not user.is_admin and venue_id != caller_venue_id(user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    result = await db.execute(_newest_first(select(Promo).where(Promo.venue_id == venue_id)))
    return result.scalars().all()


@router.get("/{promo_id}", response_model=PromoResponse)
async def get_promo(
    promo_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: RequestUser = Depends(promo_manager),
):
    """Get a promo."""
    promo = await _get_promo_or_404(db, promo_id)
    _check_owner(promo, user)
    return promo


@router.post("", response_model=PromoResponse, status_code=status.HTTP_201_CREATED)
async def create_promo(
    data: PromoCreate,
    db: AsyncSession = Depends(get_db),
    user: RequestUser = Depends(promo_manager),
):
    """
    Create a promo.

    Venue accounts create for their own venue, and a linked event must
    belong to that venue.
    """
    venue_id: Optional[uuid.UUID] = data.venue_id
    if not user.is_admin:
        venue_id = caller_venue_id(user)
    if venue_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="venue_id is required",
        )
    if await db.get(Venue, venue_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Venue not found")
    if data.event_id is not None:
        await assert_event_belongs_to_venue(db, data.event_id, venue_id)

    promo = Promo(
        id=uuid.uuid4(),
        venue_id=venue_id,
        event_id=data.event_id,
        title=data.title,
        description=data.description,
        discount_type=data.discount_type.value,
        discount_value=data.discount_value,
        status=data.status.value,
    )
    db.add(promo)
    await db.commit()
    await db.refresh(promo)
    return promo


@router.patch("/{promo_id}", response_model=PromoResponse)
async def update_promo(
    promo_id: uuid.UUID,
    data: PromoUpdate,
    db: AsyncSession = Depends(get_db),
    user: RequestUser = Depends(promo_manager),
):
    """
    Update a promo. Only provided fields are changed.

    Venue accounts cannot move a promo to another venue.
    """
    promo = await _get_promo_or_404(db, promo_id)
    _check_owner(promo, user)

    update_data = data.model_dump(exclude_unset=True)
    if not user.is_admin or update_data.get("venue_id") is None:
        update_data.pop("venue_id", None)

    venue_id = update_data.get("venue_id", promo.venue_id)
    event_id = update_data.get("event_id", promo.event_id)
    if venue_id != promo.venue_id and await db.get(Venue, venue_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Venue not found")
    # A linked event must stay on the promo's venue, whichever side moved
    if event_id is not None and (venue_id != promo.venue_id or event_id != promo.event_id):
        await assert_event_belongs_to_venue(db, event_id, venue_id)

    for field, value in update_data.items():
        if field in ("title", "discount_type", "status", "venue_id") and value is None:
            continue  # required columns
        if field in ("discount_type", "status"):
            value = value.value
        setattr(promo, field, value)

    await db.commit()
    await db.refresh(promo)
    return promo


@router.delete("/{promo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_promo(
    promo_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: RequestUser = Depends(promo_manager),
):
    """Delete a promo."""
    promo = await _get_promo_or_404(db, promo_id)
    _check_owner(promo, user)
    await db.delete(promo)
    await db.commit()
