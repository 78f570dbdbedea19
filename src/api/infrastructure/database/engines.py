"""Async SQLAlchemy engine for the groups database.

One engine serves request handlers, the sync scheduler and the outbox
worker. Connections are tagged with the service name so long-running sync
transactions can be told apart in ``pg_stat_activity``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

if TYPE_CHECKING:
    from infrastructure.settings import DatabaseSettings

__all__ = [
    "APPLICATION_NAME",
    "build_async_url",
    "create_write_engine",
]

APPLICATION_NAME = "groups-api"

# Recycle connections before common idle timeouts of pgbouncer/cloud proxies
POOL_RECYCLE_SECONDS = 1800


def build_async_url(settings: DatabaseSettings) -> str:
    """Render the asyncpg URL for ``settings``.

    Credentials are percent-encoded by SQLAlchemy's URL builder.
    """
    url = URL.create(
        drivername="postgresql+asyncpg",
        username=settings.username,
        password=settings.password.get_secret_value(),
        host=settings.host,
        port=settings.port,
        database=settings.database,
    )
    return url.render_as_string(hide_password=False)


def create_write_engine(settings: DatabaseSettings) -> AsyncEngine:
    """Create the pooled engine.

    The pool never overflows: ``pool_max_connections`` is a hard cap shared
    by the API and the background jobs.
    """
    return create_async_engine(
        build_async_url(settings),
        pool_size=settings.pool_max_connections,
        max_overflow=0,
        pool_pre_ping=True,
        pool_recycle=POOL_RECYCLE_SECONDS,
        connect_args={"server_settings": {"application_name": APPLICATION_NAME}},
    )
