"""
Pydantic schemas for the authenticated caller.
"""

from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class Role(str, Enum):
    """Roles carried in access tokens."""
    CLIENT = "client"
    STAFF = "staff"
    VENUE = "venue"
    ADMIN = "admin"


class RequestUser(BaseModel):
    """Caller resolved from a bearer token."""
    id: UUID
    role: Role
    venue_id: Optional[UUID] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
