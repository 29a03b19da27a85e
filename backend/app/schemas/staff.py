"""
Pydantic schemas for the staff ledger endpoints.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_serializer, field_validator

from app.models import Gender
from app.schemas.event import decimal_to_number, parse_choice


# =============================================================================
# Request Schemas
# =============================================================================

class EntryCreate(BaseModel):
    """One guest admitted at the door."""
    event_id: uuid.UUID
    gender: Optional[Gender] = None
    price: Optional[Decimal] = Field(None, ge=0, allow_inf_nan=False)

    @field_validator("gender", mode="before")
    @classmethod
    def _gender(cls, value):
        if value in (None, ""):
            return None
        return parse_choice(str(value), Gender, "gender", upper=True)


class SaleCreate(BaseModel):
    """Bar or cloakroom sale."""
    event_id: uuid.UUID
    amount: Decimal = Field(..., ge=0, allow_inf_nan=False)


class EventTableCreate(BaseModel):
    """Table opened for an event."""
    event_id: uuid.UUID
    name: str = Field(..., min_length=1, max_length=100)


class TableSaleCreate(BaseModel):
    """Payment taken at an event table."""
    event_table_id: uuid.UUID
    amount: Decimal = Field(..., ge=0, allow_inf_nan=False)


# =============================================================================
# Response Schemas
# =============================================================================

class EntryResponse(BaseModel):
    id: uuid.UUID
    event_id: uuid.UUID
    staff_id: Optional[uuid.UUID] = None
    gender: Optional[str] = None
    price: Optional[Decimal] = None
    created_at: datetime

    class Config:
        from_attributes = True

    @field_serializer("price")
    def _price(self, value: Optional[Decimal]) -> Optional[float]:
        return decimal_to_number(value) if value is not None else None


class SaleResponse(BaseModel):
    id: uuid.UUID
    event_id: uuid.UUID
    staff_id: Optional[uuid.UUID] = None
    amount: Decimal
    created_at: datetime

    class Config:
        from_attributes = True

    @field_serializer("amount")
    def _amount(self, value: Decimal) -> float:
        return decimal_to_number(value)


class EventTableResponse(BaseModel):
    id: uuid.UUID
    event_id: uuid.UUID
    name: str
    created_at: datetime

    class Config:
        from_attributes = True


class TableSaleResponse(BaseModel):
    id: uuid.UUID
    event_table_id: uuid.UUID
    staff_id: Optional[uuid.UUID] = None
    amount: Decimal
    created_at: datetime

    class Config:
        from_attributes = True

    @field_serializer("amount")
    def _amount(self, value: Decimal) -> float:
        return decimal_to_number(value)
