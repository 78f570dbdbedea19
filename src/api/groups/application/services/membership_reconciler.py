"""Batched reconciliation of a group's roster with the directory.

Every membership still in the directory's member list (plus every current
admin) is re-stamped with a fresh sync tag through bulk upserts keyed by
external id. Once all batches are in, rows left with an older tag are no
longer authoritative and are deleted.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from sqlalchemy.ext.asyncio import AsyncSession

from groups.application.observability import (
    AuthmanSyncProbe,
    DefaultAuthmanSyncProbe,
)
from groups.application.value_objects import (
    BatchOutcome,
    ReconcileOutcome,
    SyncTarget,
)
from groups.domain.aggregates import Group
from groups.domain.value_objects import GroupStats, MembershipStatus, SyncTag, TenantId
from groups.ports.gateways import IdentityResolver
from groups.ports.models import MembershipUpsert, ResolvedIdentity
from groups.ports.repositories import IGroupRepository, IMembershipRepository

MEMBERSHIP_BATCH_SIZE = 1000


def build_sync_targets(
    directory_ids: Iterable[str], admin_ids: Iterable[str]
) -> list[SyncTarget]:
    """Build the de-duplicated list of external ids a pass must write.

    Directory ids come first, then admins absent from the directory list.
    An id present in both is written as admin. Empty ids are dropped.

    Args:
        directory_ids: Member ids from the directory
        admin_ids: External ids of the group's current admins

    Returns:
        Ordered list of SyncTarget
    """
    admin_ids = list(admin_ids)
    admins = set(admin_ids)
    targets: dict[str, SyncTarget] = {}
    for external_id in [*directory_ids, *admin_ids]:
        if not external_id or external_id in targets:
            continue
        status = (
            MembershipStatus.ADMIN if external_id in admins else MembershipStatus.MEMBER
        )
        targets[external_id] = SyncTarget(external_id=external_id, status=status)
    return list(targets.values())


def chunked(items: list[SyncTarget], size: int) -> Iterator[list[SyncTarget]]:
    """Yield consecutive slices of at most ``size`` items."""
    if size < 1:
        raise ValueError("Batch size must be positive")
    for start in range(0, len(items), size):
        yield items[start : start + size]


def build_upserts(
    group: Group,
    tag: SyncTag,
    batch: list[SyncTarget],
    identities: dict[str, ResolvedIdentity],
) -> list[MembershipUpsert]:
    """Build one upsert per target of a batch.

    Unresolved targets carry no user id and empty name and email.
    """
    operations = []
    for target in batch:
        identity = identities.get(target.external_id)
        operations.append(
            MembershipUpsert(
                external_id=target.external_id,
                status=target.status,
                sync_tag=tag,
                user_id=identity.user_id if identity else None,
                name=identity.name if identity else "",
                email=identity.email if identity else "",
                member_answers=group.empty_answers(),
            )
        )
    return operations


class MembershipReconciler:
    """Reconciles one group's memberships against a directory member list.

    Batches are processed one at a time. A batch rejected by the store is
    reported and skipped; the remaining batches still run.
    """

    def __init__(
        self,
        session: AsyncSession,
        membership_repository: IMembershipRepository,
        group_repository: IGroupRepository,
        identity_resolver: IdentityResolver,
        batch_size: int = MEMBERSHIP_BATCH_SIZE,
        probe: AuthmanSyncProbe | None = None,
    ):
        """Initialize the reconciler.

        Args:
            session: Database session for transaction management
            membership_repository: Repository for memberships
            group_repository: Repository used to refresh group statistics
            identity_resolver: Resolver of external ids to local accounts
            batch_size: Number of external ids per upsert batch
            probe: Optional domain probe for observability
        """
        self._session = session
        self._memberships = membership_repository
        self._groups = group_repository
        self._resolver = identity_resolver
        self._batch_size = batch_size
        self._probe = probe or DefaultAuthmanSyncProbe()

    async def resolve_identities(
        self, tenant_id: TenantId, external_ids: list[str]
    ) -> dict[str, ResolvedIdentity]:
        """Resolve external ids, tolerating a failing identity service.

        Returns:
            Resolved identities keyed by external id; empty when the
            resolver fails
        """
        if not external_ids:
            return {}
        try:
            identities = await self._resolver.resolve_by_external_ids(external_ids)
        except Exception as e:
            self._probe.identity_resolution_failed(
                tenant_id.value, len(external_ids), str(e)
            )
            return {}
        wanted = set(external_ids)
        return {i.external_id: i for i in identities if i.external_id in wanted}

    async def reconcile_batch(
        self, group: Group, tag: SyncTag, batch: list[SyncTarget], index: int
    ) -> BatchOutcome:
        """Resolve and upsert one batch in its own transaction.

        Args:
            group: The group being reconciled
            tag: The pass's sync tag
            batch: Targets of this batch
            index: Position of the batch in the pass

        Returns:
            BatchOutcome describing the batch
        """
        identities = await self.resolve_identities(
            group.tenant_id, [t.external_id for t in batch]
        )
        operations = build_upserts(group, tag, batch, identities)

        try:
            async with self._session.begin():
                await self._memberships.bulk_upsert_by_external_id(
                    group.tenant_id, group.id, operations
                )
        except Exception as e:
            self._probe.batch_failed(
                group.tenant_id.value, group.id.value, index, len(batch), str(e)
            )
            return BatchOutcome(
                index=index,
                requested=len(batch),
                resolved=len(identities),
                error=str(e),
            )

        self._probe.batch_saved(
            group.tenant_id.value, group.id.value, index, len(batch), len(identities)
        )
        return BatchOutcome(index=index, requested=len(batch), resolved=len(identities))

    async def reconcile(self, group: Group, directory_ids: list[str]) -> ReconcileOutcome:
        """Reconcile the group's roster with the directory member list.

        Current admins with an external id are part of the target set and
        carry the new tag; the stale cleanup never deletes admins, so local
        admins without an external id are kept too. Cleanup is skipped when
        any batch failed, leaving unsynced rows for the next pass.

        Args:
            group: The claimed group
            directory_ids: Member external ids from the directory

        Returns:
            ReconcileOutcome for the pass
        """
        tag = SyncTag.generate()

        async with self._session.begin():
            admins = await self._memberships.find_memberships(
                group.tenant_id,
                group_ids=[group.id],
                statuses=[MembershipStatus.ADMIN],
            )
        admin_ids = [m.external_id for m in admins if m.external_id]

        targets = build_sync_targets(directory_ids, admin_ids)
        outcomes = []
        for index, batch in enumerate(chunked(targets, self._batch_size)):
            outcomes.append(await self.reconcile_batch(group, tag, batch, index))

        failed = sum(1 for o in outcomes if not o.succeeded)
        deleted = 0
        if failed:
            self._probe.stale_cleanup_skipped(group.tenant_id.value, group.id.value, failed)
        else:
            async with self._session.begin():
                deleted = await self._memberships.delete_unsynced(
                    group.tenant_id, group.id, tag
                )
            self._probe.stale_memberships_deleted(
                group.tenant_id.value, group.id.value, deleted
            )

        stats = await self.refresh_stats(group)
        return ReconcileOutcome(
            sync_tag=tag,
            batches=tuple(outcomes),
            deleted_count=deleted,
            stats=stats,
            cleanup_skipped=bool(failed),
        )

    async def refresh_stats(self, group: Group) -> GroupStats:
        """Recompute and store the group's statistics, best effort."""
        try:
            async with self._session.begin():
                group.stats = await self._groups.recompute_stats(group.id, group.tenant_id)
        except Exception as e:
            self._probe.stats_update_failed(group.tenant_id.value, group.id.value, str(e))
        return group.stats
