"""
Pydantic schemas for venue endpoints.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class VenueCreate(BaseModel):
    """Schema for creating a venue."""
    name: str = Field(..., min_length=1, max_length=255)
    city: Optional[str] = Field(None, max_length=255)
    radius_geofence: Optional[int] = Field(None, ge=0)


class VenueUpdate(BaseModel):
    """Schema for updating a venue (all fields optional)."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    city: Optional[str] = Field(None, max_length=255)
    radius_geofence: Optional[int] = Field(None, ge=0)


class VenueResponse(BaseModel):
    """Venue information."""
    id: uuid.UUID
    name: str
    city: Optional[str] = None
    radius_geofence: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True
