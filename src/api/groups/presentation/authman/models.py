"""Pydantic models for directory sync API responses."""

from __future__ import annotations

from pydantic import BaseModel, Field

from groups.application.value_objects import GroupSyncReport, SyncReport
from groups.domain.value_objects import GroupStats


class GroupStatsResponse(BaseModel):
    """Membership counts of a group after a sync."""

    total_count: int
    admins_count: int
    member_count: int
    pending_count: int
    rejected_count: int

    @classmethod
    def from_domain(cls, stats: GroupStats) -> GroupStatsResponse:
        return cls(**stats.as_dict())


class GroupSyncResponse(BaseModel):
    """Summary of a per-group sync pass."""

    group_id: str = Field(..., description="Group ID (ULID format)")
    authman_group: str = Field(..., description="Mirrored directory group")
    sync_tag: str = Field(..., description="Tag stamped on synced memberships")
    batch_count: int
    failed_batches: int
    synced_count: int = Field(..., description="Memberships submitted for upsert")
    deleted_count: int = Field(..., description="Stale memberships removed")
    stats: GroupStatsResponse

    @classmethod
    def from_report(cls, report: GroupSyncReport) -> GroupSyncResponse:
        """Convert a GroupSyncReport to API response.

        Args:
            report: Report returned by the sync engine

        Returns:
            GroupSyncResponse summarising the pass
        """
        return cls(
            group_id=report.group_id,
            authman_group=report.authman_group,
            sync_tag=report.sync_tag,
            batch_count=report.batch_count,
            failed_batches=report.failed_batches,
            synced_count=report.synced_count,
            deleted_count=report.deleted_count,
            stats=GroupStatsResponse.from_domain(report.stats),
        )


class SyncResponse(BaseModel):
    """Summary of a tenant-wide sync pass."""

    tenant_id: str
    created_group_ids: list[str]
    updated_group_ids: list[str]
    failed_stems: list[str]
    failed_stem_groups: list[str]
    groups: list[GroupSyncResponse]
    failed_groups: dict[str, str] = Field(
        ..., description="Error message keyed by group ID"
    )

    @classmethod
    def from_report(cls, report: SyncReport) -> SyncResponse:
        """Convert a SyncReport to API response."""
        return cls(
            tenant_id=report.tenant_id,
            created_group_ids=list(report.created_group_ids),
            updated_group_ids=list(report.updated_group_ids),
            failed_stems=list(report.failed_stems),
            failed_stem_groups=list(report.failed_stem_groups),
            groups=[GroupSyncResponse.from_report(r) for r in report.group_reports],
            failed_groups=dict(report.failed_groups),
        )
