"""Repository protocols (ports) for the Groups bounded context.

Repository protocols define the interface for persisting and retrieving
groups, memberships and sync bookkeeping. Implementations never commit;
the calling service owns the transaction boundary.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from groups.domain.aggregates import Group, GroupMembership
from groups.domain.sync import ManagedGroupConfig, SyncConfig, SyncTimes
from groups.domain.value_objects import (
    GroupId,
    GroupStats,
    MembershipStatus,
    SyncTag,
    TenantId,
)
from groups.ports.models import MembershipUpsert


@runtime_checkable
class IGroupRepository(Protocol):
    """Repository for Group aggregate persistence."""

    async def get_by_id(self, group_id: GroupId, tenant_id: TenantId) -> Group | None:
        """Retrieve a group within a tenant.

        Args:
            group_id: The unique identifier of the group
            tenant_id: The tenant the group must belong to

        Returns:
            The Group aggregate, or None if not found in the tenant
        """
        ...

    async def get_for_sync(
        self, group_id: GroupId, tenant_id: TenantId
    ) -> Group | None:
        """Retrieve a group, locking it for the rest of the transaction.

        Used when claiming the group's sync window.
        """
        ...

    async def get_by_authman_key(
        self, authman_group: str, tenant_id: TenantId
    ) -> Group | None:
        """Retrieve the group mirroring a directory group.

        Args:
            authman_group: The directory key
            tenant_id: The tenant to search within

        Returns:
            The Group aggregate, or None if the directory group is unmapped
        """
        ...

    async def list_authman_enabled(self, tenant_id: TenantId) -> list[Group]:
        """List every group of the tenant flagged for directory sync."""
        ...

    async def save(self, group: Group) -> None:
        """Insert or update a group.

        Pending domain events stay on the aggregate; the sync window and
        statistics of an existing row are not written.
        """
        ...

    async def update_sync_window(
        self,
        group_id: GroupId,
        tenant_id: TenantId,
        start_time: datetime | None,
        end_time: datetime | None,
    ) -> None:
        """Write the group's sync window fields.

        Raises:
            GroupNotFoundError: If no group row was modified
        """
        ...

    async def recompute_stats(self, group_id: GroupId, tenant_id: TenantId) -> GroupStats:
        """Recount memberships by status and store the snapshot on the group.

        Returns:
            The new statistics snapshot
        """
        ...


@runtime_checkable
class IMembershipRepository(Protocol):
    """Repository for group memberships."""

    async def find_memberships(
        self,
        tenant_id: TenantId,
        group_ids: list[GroupId] | None = None,
        statuses: list[MembershipStatus] | None = None,
        external_ids: list[str] | None = None,
    ) -> list[GroupMembership]:
        """Find memberships of a tenant, optionally filtered.

        Each filter left as None is not applied.
        """
        ...

    async def save_all(self, memberships: list[GroupMembership]) -> None:
        """Insert or update the given memberships."""
        ...

    async def bulk_upsert_by_external_id(
        self,
        tenant_id: TenantId,
        group_id: GroupId,
        operations: list[MembershipUpsert],
    ) -> None:
        """Apply a batch of upserts keyed by (tenant, group, external id).

        Existing rows keep their id and answers. Resolved identity fields
        are only overwritten when the operation carries them.
        """
        ...

    async def delete_unsynced(
        self, tenant_id: TenantId, group_id: GroupId, current_tag: SyncTag
    ) -> int:
        """Delete the group's memberships not stamped with ``current_tag``.

        Admin memberships are never deleted, including admins without an
        external id that no roster pass can stamp.

        Returns:
            Number of deleted memberships
        """
        ...


@runtime_checkable
class ISyncTimesRepository(Protocol):
    """Repository for the sync time ledger."""

    async def find(self, tenant_id: TenantId, key: str) -> SyncTimes | None:
        """Retrieve the ledger row for a sync key, if any."""
        ...

    async def save(self, times: SyncTimes) -> None:
        """Replace the ledger row for the key of ``times``."""
        ...


@runtime_checkable
class ISyncConfigRepository(Protocol):
    """Repository for per-tenant sync configuration."""

    async def get(self, tenant_id: TenantId) -> SyncConfig | None:
        """Retrieve the tenant's sync configuration, if any."""
        ...

    async def list_all(self) -> list[SyncConfig]:
        """List the sync configuration of every tenant."""
        ...


@runtime_checkable
class IManagedGroupConfigRepository(Protocol):
    """Repository for managed group configurations."""

    async def list_by_tenant(self, tenant_id: TenantId) -> list[ManagedGroupConfig]:
        """List the stem configurations declared by a tenant."""
        ...
