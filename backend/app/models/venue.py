"""Venue model - clubs and other nightlife venues."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Venue(Base):
    """
    Venue entity.

    Events, promos and staff ledgers all hang off a venue. Event dates and
    times are read in the process-wide EVENTS_TIMEZONE, not per venue.
    """

    __tablename__ = "venues"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str | None] = mapped_column(String(255))

    # Radius (metres) used by the mobile app to detect guests on site
    radius_geofence: Mapped[int | None] = mapped_column(Integer)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Venue {self.name}>"
