"""Database infrastructure - async SQLAlchemy engine and session primitives."""

from infrastructure.database.dependencies import (
    close_database_connections,
    get_sessionmaker,
    get_write_session,
)

__all__ = [
    "close_database_connections",
    "get_sessionmaker",
    "get_write_session",
]
