"""create_groups_sync_tables

Create the groups, memberships, sync bookkeeping and outbox tables used
by the directory sync engine.

Revision ID: 3f1c9a7e2b40
Revises:
Create Date: 2026-10-12 09:14:27.511203

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "3f1c9a7e2b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "groups",
        sa.Column("id", sa.String(length=26), nullable=False),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=255), nullable=False),
        sa.Column("privacy", sa.String(length=16), nullable=False),
        sa.Column("hidden_for_search", sa.Boolean(), nullable=False),
        sa.Column("can_join_automatically", sa.Boolean(), nullable=False),
        sa.Column("authman_enabled", sa.Boolean(), nullable=False),
        sa.Column("authman_group", sa.String(length=512), nullable=True),
        sa.Column("sync_start_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("sync_end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "membership_questions",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column(
            "stats",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_groups_tenant_id", "groups", ["tenant_id"])
    op.create_index(
        "ix_groups_tenant_id_authman_group", "groups", ["tenant_id", "authman_group"]
    )

    op.create_table(
        "group_memberships",
        sa.Column("id", sa.String(length=26), nullable=False),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("group_id", sa.String(length=26), nullable=False),
        sa.Column("external_id", sa.String(length=255), nullable=True),
        sa.Column("user_id", sa.String(length=64), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("sync_tag", sa.String(length=36), nullable=True),
        sa.Column(
            "member_answers",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.UniqueConstraint(
            "tenant_id",
            "group_id",
            "external_id",
            name="uq_group_memberships_tenant_group_external_id",
        ),
    )
    op.create_index(
        "ix_group_memberships_group_status",
        "group_memberships",
        ["tenant_id", "group_id", "status"],
    )

    op.create_table(
        "sync_times",
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("key", sa.String(length=64), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("tenant_id", "key"),
    )

    op.create_table(
        "sync_configs",
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("cron", sa.String(length=255), nullable=False),
        sa.Column("timeout", sa.Integer(), nullable=False),
        sa.Column("group_timeout", sa.Integer(), nullable=False),
        sa.Column("time_threshold", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("tenant_id"),
    )

    op.create_table(
        "managed_group_configs",
        sa.Column("id", sa.String(length=26), nullable=False),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column(
            "authman_stems",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column(
            "admin_uins",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_managed_group_configs_tenant_id", "managed_group_configs", ["tenant_id"]
    )

    op.create_table(
        "outbox",
        sa.Column(
            "id",
            sa.UUID(),
            nullable=False,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("aggregate_type", sa.String(length=255), nullable=False),
        sa.Column("aggregate_id", sa.String(length=26), nullable=False),
        sa.Column("event_type", sa.String(length=255), nullable=False),
        sa.Column("payload", postgresql.JSONB(), nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column("retry_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("failed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    # Only pending entries are polled by the worker
    op.create_index(
        "idx_outbox_pending",
        "outbox",
        ["created_at"],
        unique=False,
        postgresql_where=sa.text("processed_at IS NULL AND failed_at IS NULL"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("idx_outbox_pending", table_name="outbox")
    op.drop_table("outbox")
    op.drop_index(
        "ix_managed_group_configs_tenant_id", table_name="managed_group_configs"
    )
    op.drop_table("managed_group_configs")
    op.drop_table("sync_configs")
    op.drop_table("sync_times")
    op.drop_index(
        "ix_group_memberships_group_status", table_name="group_memberships"
    )
    op.drop_table("group_memberships")
    op.drop_index("ix_groups_tenant_id_authman_group", table_name="groups")
    op.drop_index("ix_groups_tenant_id", table_name="groups")
    op.drop_table("groups")
