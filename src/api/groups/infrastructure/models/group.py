"""SQLAlchemy ORM model for the groups table."""

from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base, TimestampMixin


class GroupModel(Base, TimestampMixin):
    """ORM model for groups table.

    Directory-mirrored groups are looked up by (tenant_id, authman_group).
    The sync window columns double as the per-group run guard and are only
    written through the repository's sync window update.
    """

    __tablename__ = "groups"
    __table_args__ = (
        Index("ix_groups_tenant_id_authman_group", "tenant_id", "authman_group"),
    )

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    privacy: Mapped[str] = mapped_column(String(16), nullable=False)
    hidden_for_search: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    can_join_automatically: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    authman_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    authman_group: Mapped[str | None] = mapped_column(String(512), nullable=True)
    sync_start_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    sync_end_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    membership_questions: Mapped[list[str]] = mapped_column(
        JSONB, nullable=False, default=list
    )
    stats: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<GroupModel(id={self.id}, tenant_id={self.tenant_id}, "
            f"authman_group={self.authman_group})>"
        )
