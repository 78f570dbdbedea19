"""SQLAlchemy ORM model for the group_memberships table."""

from typing import Any

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base, TimestampMixin


class GroupMembershipModel(Base, TimestampMixin):
    """ORM model for group_memberships table.

    Directory-sourced rows are unique per (tenant_id, group_id, external_id);
    locally created rows store NULL in external_id and are not constrained.
    The unique constraint is the conflict target of the bulk upsert.
    """

    __tablename__ = "group_memberships"
    __table_args__ = (
        UniqueConstraint(
            "tenant_id",
            "group_id",
            "external_id",
            name="uq_group_memberships_tenant_group_external_id",
        ),
        Index("ix_group_memberships_group_status", "tenant_id", "group_id", "status"),
    )

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    group_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
    )
    external_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    sync_tag: Mapped[str | None] = mapped_column(String(36), nullable=True)
    member_answers: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB, nullable=False, default=list
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<GroupMembershipModel(id={self.id}, group_id={self.group_id}, "
            f"external_id={self.external_id}, status={self.status})>"
        )
