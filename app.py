"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires the record store and analytics service, registers the router,
and runs startup initialization.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from hall_analytics.controllers.analytics_controller import router as analytics_router
from hall_analytics.repository.record_store import RecordStore, SQLiteRecordStore
from hall_analytics.services.analytics_service import AnalyticsService
from hall_analytics.utils.config import Settings, get_settings
from hall_analytics.utils.logger import configure_logging, get_logger


logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[RecordStore] = None,
) -> FastAPI:
    """
    Build and wire the FastAPI application.

    A caller-supplied store replaces the SQLite store and skips schema
    initialization and demo seeding.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    record_store = store or SQLiteRecordStore(settings)
    analytics_service = AnalyticsService(store=record_store, settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app, settings)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.include_router(analytics_router)

    app.state.record_store = record_store
    app.state.analytics_service = analytics_service

    return app


def _startup(app: FastAPI, settings: Settings) -> None:
    """
    Idempotent startup sequence. Safe to re-run on server restarts.

    Schema must exist before seeding; seeding is skipped when halls exist.
    """
    record_store = app.state.record_store
    if not isinstance(record_store, SQLiteRecordStore):
        logger.info("Startup: external record store supplied, skipping schema setup")
        return

    logger.info("Startup: initializing database schema at %s", record_store.database_path)
    record_store.initialize_database()

    if settings.seed_demo_data:
        logger.info("Startup: seeding demo halls, profiles and bookings")
        record_store.seed_demo_data()

    logger.info("Startup complete, analytics endpoints ready")


# Module-level app object for uvicorn
app = create_app()
