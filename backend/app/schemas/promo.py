"""
Pydantic schemas for the promo management endpoints.
"""

import uuid
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.models import DiscountType, PromoStatus
from app.schemas.event import parse_choice


class PromoCreate(BaseModel):
    """Schema for creating a promo. Venue accounts get their own venue_id."""
    venue_id: Optional[uuid.UUID] = None
    event_id: Optional[uuid.UUID] = None
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: Optional[Decimal] = Field(None, ge=0, allow_inf_nan=False)
    status: PromoStatus = PromoStatus.ACTIVE

    @field_validator("discount_type", mode="before")
    @classmethod
    def _discount_type(cls, value):
        return parse_choice(str(value), DiscountType, "discount_type")

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value):
        if value in (None, ""):
            return PromoStatus.ACTIVE
        return parse_choice(str(value), PromoStatus, "promo status")


class PromoUpdate(BaseModel):
    """Schema for updating a promo (all fields optional)."""
    venue_id: Optional[uuid.UUID] = None
    event_id: Optional[uuid.UUID] = None
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, ge=0, allow_inf_nan=False)
    status: Optional[PromoStatus] = None

    @field_validator("discount_type", mode="before")
    @classmethod
    def _discount_type(cls, value):
        if value in (None, ""):
            return None
        return parse_choice(str(value), DiscountType, "discount_type")

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value):
        if value in (None, ""):
            return None
        return parse_choice(str(value), PromoStatus, "promo status")
