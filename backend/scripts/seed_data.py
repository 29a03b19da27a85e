"""
Seed the database with a demo venue and a week of events.

Run with: python -m scripts.seed_data
"""

import asyncio
import uuid
from datetime import time, timedelta
from decimal import Decimal

from sqlalchemy import select

from app.database import async_session_maker, engine, init_db
from app.models import (
    DiscountType,
    Event,
    EventEntryPrice,
    EventStatus,
    Gender,
    Promo,
    Venue,
)
from app.utils.timezone import get_events_tz, local_today, utc_now

DEMO_VENUE = {
    "name": "Magazzini Generali",
    "city": "Milano",
    "radius_geofence": 150,
}

# (days from today, name, start, end) - end before start runs past midnight
DEMO_EVENTS = [
    (-1, "Friday Warehouse", time(23, 0), time(5, 0)),
    (0, "Saturday Night Session", time(23, 30), time(6, 0)),
    (1, "Sunday Sunset", time(18, 0), time(23, 0)),
    (6, "Friday Warehouse", time(23, 0), time(5, 0)),
]

DEMO_PRICES = [
    {"label": "Donna prima delle 00:30", "gender": Gender.F, "end_time": time(0, 30), "price": Decimal("0")},
    {"label": "Ingresso", "gender": None, "end_time": None, "price": Decimal("20")},
]


async def seed_venue(session) -> Venue:
    """Create the demo venue if it doesn't exist."""
    result = await session.execute(select(Venue).where(Venue.name == DEMO_VENUE["name"]))
    venue = result.scalar_one_or_none()

    if venue:
        print(f"  ✓ Venue '{venue.name}' exists")
        return venue

    venue = Venue(id=uuid.uuid4(), **DEMO_VENUE)
    session.add(venue)
    await session.flush()
    print(f"  + Created venue: {venue.name}")
    return venue


async def seed_events(session, venue: Venue) -> None:
    """Create demo events around today, with prices and one promo each."""
    today = local_today(get_events_tz(), utc_now())

    for offset, name, start, end in DEMO_EVENTS:
        day = today + timedelta(days=offset)
        result = await session.execute(
            select(Event).where(Event.venue_id == venue.id, Event.date == day, Event.name == name)
        )
        if result.scalar_one_or_none():
            print(f"  ✓ {name} on {day} exists")
            continue

        event = Event(
            id=uuid.uuid4(),
            venue_id=venue.id,
            name=name,
            date=day,
            start_time=start,
            end_time=end,
            status=EventStatus.DRAFT.value,
        )
        session.add(event)
        session.add_all(
            EventEntryPrice(
                event_id=event.id,
                label=price["label"],
                gender=price["gender"].value if price["gender"] else None,
                end_time=price["end_time"],
                price=price["price"],
            )
            for price in DEMO_PRICES
        )
        session.add(
            Promo(
                venue_id=venue.id,
                event_id=event.id,
                title="Tavolo 4 persone",
                discount_type=DiscountType.PERCENTAGE.value,
                discount_value=Decimal("15"),
            )
        )
        print(f"  + Created: {name} on {day} {start:%H:%M}-{end:%H:%M}")


async def main():
    """Main entry point."""
    print("=" * 50)
    print("Seeding Nightdesk Database")
    print("=" * 50)

    print("\nInitializing database...")
    await init_db()

    print("\nSeeding demo venue...")
    async with async_session_maker() as session:
        venue = await seed_venue(session)
        await seed_events(session, venue)
        await session.commit()

    await engine.dispose()
    print("\nDone.")


if __name__ == "__main__":
    asyncio.run(main())
