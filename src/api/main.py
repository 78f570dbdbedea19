"""Main FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from groups.dependencies.sync import (
    build_authman_sync_service,
    build_sync_effects_publisher,
    get_directory_gateway,
    get_identity_resolver,
)
from groups.infrastructure.notifications_adapter import NotificationsAdapter
from groups.infrastructure.outbox import GroupsEventSerializer
from groups.infrastructure.scheduler import SyncScheduler
from groups.presentation import router as groups_router
from infrastructure.database.dependencies import (
    close_database_connections,
    get_sessionmaker,
    get_write_session,
)
from infrastructure.logging import configure_logging
from infrastructure.outbox import OutboxWorker
from infrastructure.settings import (
    get_notifications_settings,
    get_settings,
    get_sync_settings,
)
from infrastructure.version import __version__


def build_outbox_worker() -> OutboxWorker:
    """Build the worker delivering sync effects to Notifications."""
    notifications = get_notifications_settings()
    sync_settings = get_sync_settings()
    dispatcher = NotificationsAdapter(
        base_url=notifications.base_url,
        api_key=notifications.api_key.get_secret_value(),
        app_id=notifications.app_id,
        timeout_seconds=notifications.request_timeout_seconds,
    )
    return OutboxWorker(
        session_factory=get_sessionmaker(),
        serializer=GroupsEventSerializer(),
        dispatcher=dispatcher,
        poll_interval_seconds=sync_settings.outbox_poll_interval_seconds,
        batch_size=sync_settings.outbox_batch_size,
        max_retries=sync_settings.outbox_max_retries,
    )


def build_sync_scheduler() -> SyncScheduler:
    """Build the cron scheduler for tenant-wide passes."""
    return SyncScheduler(
        session_factory=get_sessionmaker(),
        service_factory=lambda session: build_authman_sync_service(
            session, get_directory_gateway(), get_identity_resolver()
        ),
        publisher_factory=build_sync_effects_publisher,
    )


@asynccontextmanager
async def groups_lifespan(app: FastAPI):
    """Application lifespan context.

    Manages:
    - Logging configuration
    - Outbox worker start and stop
    - Sync scheduler, when enabled
    - Connection pool lifecycle (created lazily, closed on shutdown)
    """
    settings = get_settings()
    configure_logging(settings.log_level, service=settings.app_name)

    worker = build_outbox_worker()
    await worker.start()

    scheduler: SyncScheduler | None = None
    if get_sync_settings().scheduler_enabled:
        scheduler = build_sync_scheduler()
        await scheduler.start()

    try:
        yield
    finally:
        if scheduler is not None:
            await scheduler.shutdown()
        await worker.stop()
        await close_database_connections()


app = FastAPI(
    title=get_settings().app_name,
    description="Group membership synchronization with the campus directory",
    version=__version__,
    lifespan=groups_lifespan,
)

# Include Groups bounded context routes
app.include_router(groups_router)


@app.get("/health")
def health():
    """Basic health check endpoint."""
    return {"status": "ok"}


@app.get("/health/db")
async def health_db(
    session: Annotated[AsyncSession, Depends(get_write_session)],
) -> dict:
    """Check database connection health."""
    try:
        await session.execute(text("SELECT 1"))
        return {"status": "ok", "connected": True}
    except Exception as e:
        return {"status": "error", "connected": False, "error": str(e)}
