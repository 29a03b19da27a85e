"""
Staff ledger endpoints - door entries and sales recorded during an event.

Staff, venue and admin tokens only. Non-admin callers may only record and
read rows for events of their own venue; rows are stamped with the caller
as `staff_id`.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import STAFF_ROLES, caller_venue_id, require_roles
from app.database import get_db
from app.models import BarSale, CloakroomSale, Entry, Event, EventTable, TableSale
from app.schemas.auth import RequestUser
from app.schemas.staff import (
    EntryCreate,
    EntryResponse,
    EventTableCreate,
    EventTableResponse,
    SaleCreate,
    SaleResponse,
    TableSaleCreate,
    TableSaleResponse,
)
from app.services.event_service import assert_event_belongs_to_venue

router = APIRouter()

staff_member = require_roles(*STAFF_ROLES)


async def _check_event_access(db: AsyncSession, event_id: uuid.UUID, user: RequestUser) -> None:
    if not user.is_admin:
        await assert_event_belongs_to_venue(db, event_id, caller_venue_id(user))
        return
    result = await db.execute(select(Event.id).where(Event.id == event_id))
    if result.scalar_one_or_none() is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")


async def _get_table_or_404(db: AsyncSession, table_id: uuid.UUID) -> EventTable:
    table = await db.get(EventTable, table_id)
    if not table:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Table not found",
        )
    return table


async def _save(db: AsyncSession, row):
    db.add(row)
    await db.commit()
    await db.refresh(row)
    return row


async def _list(db: AsyncSession, model, event_id: uuid.UUID):
    result = await db.execute(
        select(model).where(model.event_id == event_id).order_by(model.created_at)
    )
    return result.scalars().all()


# =============================================================================
# Door
# =============================================================================

@router.post("/entries", response_model=EntryResponse, status_code=status.HTTP_201_CREATED)
async def record_entry(
    data: EntryCreate,
    db: AsyncSession = Depends(get_db),
    user: RequestUser = Depends(staff_member),
):
    """Record one admitted guest."""
    await _check_event_access(db, data.event_id, user)
    return await _save(
        db,
        Entry(
            event_id=data.event_id,
            staff_id=user.id,
            gender=data.gender.value if data.gender else None,
            price=data.price,
        ),
    )


@router.get("/entries", response_model=list[EntryResponse])
async def list_entries(
    event_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: RequestUser = Depends(staff_member),
):
    """Entries of an event, oldest first."""
    await _check_event_access(db, event_id, user)
    return await _list(db, Entry, event_id)


# =============================================================================
# Bar and cloakroom
# =============================================================================

@router.post("/bar-sales", response_model=SaleResponse, status_code=status.HTTP_201_CREATED)
async def record_bar_sale(
    data: SaleCreate,
    db: AsyncSession = Depends(get_db),
    user: RequestUser = Depends(staff_member),
):
    """Record a bar sale."""
    await _check_event_access(db, data.event_id, user)
    return await _save(db, BarSale(event_id=data.event_id, staff_id=user.id, amount=data.amount))


@router.get("/bar-sales", response_model=list[SaleResponse])
async def list_bar_sales(
    event_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: RequestUser = Depends(staff_member),
):
    """Bar sales of an event, oldest first."""
    await _check_event_access(db, event_id, user)
    return await _list(db, BarSale, event_id)


@router.post("/cloakroom-sales", response_model=SaleResponse, status_code=status.HTTP_201_CREATED)
async def record_cloakroom_sale(
    data: SaleCreate,
    db: AsyncSession = Depends(get_db),
    user: RequestUser = Depends(staff_member),
):
    """Record a cloakroom sale."""
    await _check_event_access(db, data.event_id, user)
    return await _save(
        db, CloakroomSale(event_id=data.event_id, staff_id=user.id, amount=data.amount)
    )


@router.get("/cloakroom-sales", response_model=list[SaleResponse])
async def list_cloakroom_sales(
    event_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: RequestUser = Depends(staff_member),
):
    """Cloakroom sales of an event, oldest first."""
    await _check_event_access(db, event_id, user)
    return await _list(db, CloakroomSale, event_id)


# =============================================================================
# Tables
# =============================================================================

@router.post("/tables", response_model=EventTableResponse, status_code=status.HTTP_201_CREATED)
async def open_table(
    data: EventTableCreate,
    db: AsyncSession = Depends(get_db),
    user: RequestUser = Depends(staff_member),
):
    """Open a table for an event."""
    await _check_event_access(db, data.event_id, user)
    return await _save(db, EventTable(event_id=data.event_id, name=data.name))


@router.get("/tables", response_model=list[EventTableResponse])
async def list_tables(
    event_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: RequestUser = Depends(staff_member),
):
    """Tables opened for an event."""
    await _check_event_access(db, event_id, user)
    return await _list(db, EventTable, event_id)


@router.post("/table-sales", response_model=TableSaleResponse, status_code=status.HTTP_201_CREATED)
async def record_table_sale(
    data: TableSaleCreate,
    db: AsyncSession = Depends(get_db),
    user: RequestUser = Depends(staff_member),
):
    """Record a payment at a table."""
    table = await _get_table_or_404(db, data.event_table_id)
    await _check_event_access(db, table.event_id, user)
    return await _save(
        db, TableSale(event_table_id=table.id, staff_id=user.id, amount=data.amount)
    )


@router.get("/table-sales", response_model=list[TableSaleResponse])
async def list_table_sales(
    event_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: RequestUser = Depends(staff_member),
):
    """Payments at every table of an event, oldest first."""
    await _check_event_access(db, event_id, user)
    result = await db.execute(
        select(TableSale)
        .join(EventTable, TableSale.event_table_id == EventTable.id)
        .where(EventTable.event_id == event_id)
        .order_by(TableSale.created_at)
    )
    return result.scalars().all()
