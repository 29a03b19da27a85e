"""
Test configuration and fixtures.

Every test gets its own SQLite file, so write-backs running in their own
sessions see the rows the test created.
"""

import os

# Settings are cached on first import, so the environment goes first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["EVENTS_TIMEZONE"] = "Europe/Rome"
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["DEBUG"] = "false"
os.environ["STATUS_SYNC_INTERVAL_SECONDS"] = "0"

import datetime as dt
import uuid

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.auth.jwt import create_access_token
from app.database import Base, get_db
from app.main import app
from app.models import Event, EventStatus, Venue
from app.schemas.auth import Role
from app.services import event_service, status_reconciler as reconciler_module
from app.services.status_reconciler import status_reconciler

# 00:30 on Sunday 16 June 2024 in Rome
FROZEN_NOW = dt.datetime(2024, 6, 15, 22, 30, tzinfo=dt.timezone.utc)


@pytest.fixture
async def engine(tmp_path):
    """Fresh database file with every table created."""
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
async def client(session_maker):
    """API client bound to the test database."""

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    original_factory = status_reconciler.session_factory
    app.dependency_overrides[get_db] = override_get_db
    status_reconciler.session_factory = session_maker

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client

    await status_reconciler.drain()
    status_reconciler.session_factory = original_factory
    app.dependency_overrides.clear()


@pytest.fixture
def frozen_now(monkeypatch):
    """Pin the clock used by the event service and the sweep."""
    monkeypatch.setattr(event_service, "utc_now", lambda: FROZEN_NOW)
    monkeypatch.setattr(reconciler_module, "utc_now", lambda: FROZEN_NOW)
    return FROZEN_NOW


@pytest.fixture
async def venue(db):
    venue = Venue(id=uuid.uuid4(), name="Magazzini Generali", city="Milano")
    db.add(venue)
    await db.commit()
    return venue


@pytest.fixture
async def other_venue(db):
    venue = Venue(id=uuid.uuid4(), name="Alcatraz", city="Milano")
    db.add(venue)
    await db.commit()
    return venue


@pytest.fixture
def make_event(db, venue):
    """Factory inserting an event row (stored as DRAFT unless told otherwise)."""

    async def _make_event(
        date,
        start_time=None,
        end_time=None,
        status=EventStatus.DRAFT,
        name="Night",
        venue_id=None,
    ):
        event = Event(
            id=uuid.uuid4(),
            venue_id=venue_id or venue.id,
            name=name,
            date=date,
            start_time=start_time,
            end_time=end_time,
            status=status.value if status else EventStatus.DRAFT.value,
        )
        db.add(event)
        await db.commit()
        return event

    return _make_event


def bearer(role: Role, venue_id=None) -> dict:
    token = create_access_token(uuid.uuid4(), role, venue_id=venue_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers():
    return bearer(Role.ADMIN)


@pytest.fixture
def venue_headers(venue):
    return bearer(Role.VENUE, venue.id)


@pytest.fixture
def staff_headers(venue):
    return bearer(Role.STAFF, venue.id)


@pytest.fixture
def client_headers():
    return bearer(Role.CLIENT)


@pytest.fixture
def other_venue_headers(other_venue):
    return bearer(Role.VENUE, other_venue.id)
