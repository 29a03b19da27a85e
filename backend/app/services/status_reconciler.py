"""
Status reconciler - keeps the stored event status in step with the clock.

Reads always report the computed status, so persisting it is advisory: it
exists for consumers that look at the raw column (plain equality filters,
exports, other services). Per-read write-backs are fire-and-forget and a
failed write is only logged; the next read or the next sweep tries again.

The sweep corrects every event dated near today in one UPDATE and is meant
to run on a schedule, so rows stay right even without read traffic.
"""

import asyncio
import datetime as dt
import logging
import uuid
from typing import Iterable, NamedTuple, Optional, Union

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.database import async_session_maker
from app.models import Event, EventStatus
from app.services.event_status import computed_status_expression, effective_status
from app.utils.timezone import ZoneLike, as_utc, get_events_tz, local_today, utc_now

logger = logging.getLogger(__name__)

MAX_SWEEP_DAYS = 7
DEFAULT_SWEEP_DAYS = 2


def clamp_sweep_days(value: Optional[int], default: int = DEFAULT_SWEEP_DAYS) -> int:
    """Clamp a sweep window bound to 0..7 days."""
    if value is None:
        value = default
    return max(0, min(int(value), MAX_SWEEP_DAYS))


class StatusRow(NamedTuple):
    """Detached copy of the columns an event's status depends on."""

    id: uuid.UUID
    date: Optional[dt.date]
    start_time: Optional[dt.time]
    end_time: Optional[dt.time]
    status: Optional[str]

    @classmethod
    def of(cls, event: Event) -> "StatusRow":
        return cls(event.id, event.date, event.start_time, event.end_time, event.status)


def status_correction(
    event: Union[Event, StatusRow],
    now: Optional[dt.datetime] = None,
    zone: Optional[ZoneLike] = None,
) -> Optional[EventStatus]:
    """The status to write back for `event`, or None if the row is current."""
    if event.id is None:
        return None
    if event.date is None or event.start_time is None or event.end_time is None:
        return None

    effective = effective_status(event, now=now, zone=zone)
    current = EventStatus(event.status) if event.status else EventStatus.DRAFT
    if effective == current:
        return None
    return effective


class StatusReconciler:
    """
    Writes computed statuses back to the events table.

    Uses its own sessions, so write-backs outlive the request that
    triggered them.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory
        self._pending: set[asyncio.Task] = set()

    async def _write(self, event_id: uuid.UUID, status: EventStatus) -> None:
        try:
            async with self.session_factory() as session:
                await session.execute(
                    update(Event)
                    .where(Event.id == event_id)
                    .values(status=status.value)
                    .execution_options(synchronize_session=False)
                )
                await session.commit()
        except Exception as e:
            logger.warning("Status write-back failed for event %s: %s", event_id, e)
        else:
            logger.debug("Event %s status written back as %s", event_id, status.value)

    async def reconcile_one(
        self,
        event: Union[Event, StatusRow],
        now: Optional[dt.datetime] = None,
    ) -> None:
        """Persist the computed status of `event` if it drifted. Never raises."""
        correction = status_correction(event, now)
        if correction is not None:
            await self._write(event.id, correction)

    async def reconcile_many(
        self,
        events: Iterable[Union[Event, StatusRow]],
        now: Optional[dt.datetime] = None,
    ) -> None:
        """Concurrent `reconcile_one` over `events`. Never raises."""
        await asyncio.gather(*(self.reconcile_one(event, now) for event in events))

    def schedule(self, events: Iterable[Event], now: Optional[dt.datetime] = None) -> None:
        """
        Start write-backs for `events` in the background and return at once.

        Stale rows are copied here as read and handed to `reconcile_many`,
        so the task never touches the caller's session or ORM objects.
        """
        stale = [StatusRow.of(event) for event in events if status_correction(event, now) is not None]
        if not stale:
            return

        task = asyncio.create_task(self.reconcile_many(stale, now))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for in-flight write-backs (shutdown and tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def sweep(
        self,
        db: AsyncSession,
        days_back: Optional[int] = None,
        days_forward: Optional[int] = None,
        now: Optional[dt.datetime] = None,
        zone: Optional[ZoneLike] = None,
    ) -> int:
        """
        Correct every timed event dated in [today - days_back, today + days_forward].

        Both bounds are clamped to 7 days; today is the venue-local date.
        Only rows whose stored status differs are updated, so a repeat run
        at the same instant updates nothing. Returns the number of rows
        updated. Database errors propagate.
        """
        days_back = clamp_sweep_days(days_back)
        days_forward = clamp_sweep_days(days_forward)
        zone = zone if zone is not None else get_events_tz()
        now = as_utc(now) if now is not None else utc_now()
        today = local_today(zone, now)

        computed = computed_status_expression(now, zone)
        result = await db.execute(
            update(Event)
            .where(
                Event.start_time.is_not(None),
                Event.end_time.is_not(None),
                Event.date >= today - dt.timedelta(days=days_back),
                Event.date <= today + dt.timedelta(days=days_forward),
                Event.status != computed,
            )
            .values(status=computed)
            .execution_options(synchronize_session=False)
        )
        await db.commit()

        updated = result.rowcount or 0
        logger.info(
            "Status sweep %s (-%dd/+%dd): %d event(s) updated",
            today.isoformat(),
            days_back,
            days_forward,
            updated,
        )
        return updated

    async def sweep_in_new_session(
        self,
        days_back: Optional[int] = None,
        days_forward: Optional[int] = None,
    ) -> int:
        """Run `sweep` in a session of its own (scheduler and CLI entry points)."""
        async with self.session_factory() as session:
            return await self.sweep(session, days_back, days_forward)


async def run_periodic_sweep(
    reconciler: StatusReconciler,
    interval_seconds: int,
    days_back: int,
    days_forward: int,
) -> None:
    """
    Sweep every `interval_seconds` until cancelled.

    A failed sweep is logged and retried on the next tick.
    """
    logger.info("Periodic status sweep every %ds", interval_seconds)
    while True:
        try:
            await reconciler.sweep_in_new_session(days_back, days_forward)
        except Exception as e:
            logger.error("Periodic status sweep failed: %s", e)
        await asyncio.sleep(interval_seconds)


# Process-wide reconciler bound to the application's session factory
status_reconciler = StatusReconciler(async_session_maker)
