"""SQLAlchemy ORM models for sync bookkeeping and configuration."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base, TimestampMixin


class SyncTimesModel(Base):
    """ORM model for the sync_times ledger.

    One row per (tenant_id, key), replaced at the start and at the end of
    every tenant-wide pass.
    """

    __tablename__ = "sync_times"

    tenant_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    start_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    end_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<SyncTimesModel(tenant_id={self.tenant_id}, key={self.key}, "
            f"start_time={self.start_time}, end_time={self.end_time})>"
        )


class SyncConfigModel(Base, TimestampMixin):
    """ORM model for per-tenant sync configuration (durations in minutes)."""

    __tablename__ = "sync_configs"

    tenant_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    cron: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    timeout: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    group_timeout: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    time_threshold: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<SyncConfigModel(tenant_id={self.tenant_id}, cron={self.cron})>"


class ManagedGroupConfigModel(Base, TimestampMixin):
    """ORM model for managed group configurations."""

    __tablename__ = "managed_group_configs"

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    authman_stems: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)
    admin_uins: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<ManagedGroupConfigModel(id={self.id}, tenant_id={self.tenant_id})>"
        )
