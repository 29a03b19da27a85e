"""
Nightdesk API - Main FastAPI application.

Event listings for nightlife venues, with statuses that follow the clock.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.database import init_db
from app.services.status_reconciler import run_periodic_sweep, status_reconciler
from app.utils.logging import setup_logging

settings = get_settings()
setup_logging(settings.log_level)

logger = logging.getLogger(__name__)

# Global reference to the in-process status sweep
_sweep_task: Optional[asyncio.Task] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Runs on startup and shutdown.
    """
    global _sweep_task

    # Startup
    logger.info("Starting %s in %s mode...", settings.app_name, settings.app_env)
    await init_db()
    logger.info("Database initialized (events timezone %s)", settings.events_timezone)

    if settings.status_sync_interval_seconds > 0:
        _sweep_task = asyncio.create_task(
            run_periodic_sweep(
                status_reconciler,
                settings.status_sync_interval_seconds,
                settings.status_sync_days_back,
                settings.status_sync_days_forward,
            )
        )
    else:
        logger.info("Periodic status sweep: disabled by config")

    yield

    # Shutdown
    logger.info("Shutting down...")

    if _sweep_task and not _sweep_task.done():
        _sweep_task.cancel()
        try:
            await _sweep_task
        except asyncio.CancelledError:
            pass
    _sweep_task = None

    if status_reconciler.pending:
        logger.info("Waiting for %d status write-back(s)", status_reconciler.pending)
    await status_reconciler.drain()


app = FastAPI(
    title=settings.app_name,
    description="Event listings and venue dashboards for nightlife venues",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware - allow the mobile and dashboard apps to connect
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",  # Venue dashboard
        "http://localhost:8081",  # Expo web
        "http://localhost:19006",  # Expo web alt
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    """Root endpoint - basic health check."""
    return {
        "app": settings.app_name,
        "version": "0.1.0",
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy"}


# Routers
from app.routers import events, promos, staff, venues  # noqa: E402

app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(venues.router, prefix="/api/venues", tags=["Venues"])
app.include_router(promos.router, prefix="/api/promos", tags=["Promos"])
app.include_router(staff.router, prefix="/api/staff", tags=["Staff"])
