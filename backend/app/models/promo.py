"""Promo model - venue campaigns, optionally tied to one event."""

import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class DiscountType(str, Enum):
    """How a promo discounts the price."""
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    FREE = "free"


class PromoStatus(str, Enum):
    """Promo availability."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"


class Promo(Base):
    """Promotional campaign run by a venue."""

    __tablename__ = "promos"

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
    event_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("events.id"),
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    discount_type: Mapped[str] = mapped_column(String(20), nullable=False)
    discount_value: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    status: Mapped[str] = mapped_column(
        String(20),
        default=PromoStatus.ACTIVE.value,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    # Relationships
    event: Mapped["Event | None"] = relationship("Event", back_populates="promos")

    def __repr__(self) -> str:
        return f"<Promo {self.title} ({self.discount_type})>"
