"""Directory sync engine for the Groups bounded context.

Mirrors the groups defined under a tenant's configured directory stems
into local groups, reconciles their admins, then reconciles the full
roster of every mirrored group.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from groups.application.observability import (
    AuthmanSyncProbe,
    DefaultAuthmanSyncProbe,
)
from groups.application.services.membership_reconciler import MembershipReconciler
from groups.application.services.sync_guard import SyncTimesGuard
from groups.application.value_objects import GroupSyncReport, SyncReport
from groups.domain.aggregates import Group, GroupMembership
from groups.domain.directory import DirectoryGroup
from groups.domain.sync import ManagedGroupConfig, SyncTimeouts
from groups.domain.value_objects import GroupId, MembershipStatus, TenantId
from groups.ports.exceptions import SyncSetupError
from groups.ports.gateways import DirectoryGateway
from groups.ports.models import ResolvedIdentity
from groups.ports.repositories import (
    IGroupRepository,
    IManagedGroupConfigRepository,
    IMembershipRepository,
)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class AuthmanSyncService:
    """Application service running directory sync passes.

    Passes are sequential: stems, stem groups, mirrored groups and batches
    are processed one at a time. Once a pass holds its sync window, errors
    in one stem, stem group or group are reported and skipped; only guard
    rejections and setup failures reach the caller.

    Domain events produced by a pass are not dispatched here. They are
    returned in the report's ``effects`` for the caller to hand to the
    outbox.
    """

    def __init__(
        self,
        session: AsyncSession,
        group_repository: IGroupRepository,
        membership_repository: IMembershipRepository,
        managed_config_repository: IManagedGroupConfigRepository,
        directory: DirectoryGateway,
        guard: SyncTimesGuard,
        reconciler: MembershipReconciler,
        tenant_admin_external_ids: list[str] | None = None,
        probe: AuthmanSyncProbe | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        """Initialize AuthmanSyncService with dependencies.

        Args:
            session: Database session for transaction management
            group_repository: Repository for groups
            membership_repository: Repository for memberships
            managed_config_repository: Source of stem configurations
            directory: Gateway to the external directory
            guard: Sync window guard
            reconciler: Roster reconciler
            tenant_admin_external_ids: External ids forced as admins on
                every mirrored group
            probe: Optional domain probe for observability
            clock: Source of the current UTC time
        """
        self._session = session
        self._groups = group_repository
        self._memberships = membership_repository
        self._configs = managed_config_repository
        self._directory = directory
        self._guard = guard
        self._reconciler = reconciler
        self._tenant_admins = list(tenant_admin_external_ids or [])
        self._probe = probe or DefaultAuthmanSyncProbe()
        self._clock = clock

    async def synchronize(
        self, tenant_id: TenantId, enforce_threshold: bool = False
    ) -> SyncReport:
        """Run a tenant-wide pass.

        Args:
            tenant_id: The tenant to sync
            enforce_threshold: Skip the pass if the last one started within
                the tenant's time threshold (scheduled runs)

        Returns:
            SyncReport of the pass

        Raises:
            SyncAlreadyRunningError: If another tenant-wide pass is running
            AlreadySyncedError: If the pass ran within the time threshold
            MissingSyncConfigError: If the threshold is enforced without config
            SyncSetupError: If the stem configurations cannot be loaded
        """
        self._probe.sync_started(tenant_id.value, enforce_threshold)
        times = await self._guard.claim_global(tenant_id, self._clock(), enforce_threshold)

        report = SyncReport(tenant_id=tenant_id.value)
        try:
            configs = await self._load_configs(tenant_id)
            for config in configs:
                for stem in config.authman_stems:
                    await self._sync_stem(tenant_id, config, stem, report)

            await self._sync_mirrored_groups(tenant_id, report)
        except Exception as e:
            self._probe.sync_failed(tenant_id.value, str(e))
            raise
        finally:
            await self._guard.release_global(times, self._clock())

        self._probe.sync_finished(
            tenant_id.value,
            created_count=len(report.created_group_ids),
            updated_count=len(report.updated_group_ids),
            synced_group_count=len(report.group_reports),
            failed_stem_count=len(report.failed_stems),
            failed_group_count=len(report.failed_groups),
        )
        return report

    async def synchronize_group(
        self,
        tenant_id: TenantId,
        group_id: GroupId,
        timeouts: SyncTimeouts | None = None,
    ) -> GroupSyncReport:
        """Reconcile one mirrored group's roster with the directory.

        Args:
            tenant_id: The tenant owning the group
            group_id: The group to sync
            timeouts: Pre-resolved guard durations; loaded when None

        Returns:
            GroupSyncReport of the pass

        Raises:
            GroupNotFoundError: If the group does not exist in the tenant
            GroupNotSyncEligibleError: If the group is not mirrored
            SyncAlreadyRunningError: If another run holds the group's window
            DirectoryError: If the directory member list cannot be fetched
        """
        group = await self._guard.claim_group(
            tenant_id, group_id, self._clock(), timeouts
        )
        authman_group = group.authman_group or ""
        self._probe.group_sync_started(tenant_id.value, group_id.value, authman_group)

        try:
            member_ids = await self._directory.list_group_members(authman_group)
            outcome = await self._reconciler.reconcile(group, member_ids)
        except Exception as e:
            self._probe.group_sync_failed(tenant_id.value, group_id.value, str(e))
            raise
        finally:
            await self._guard.release_group(group, self._clock())

        group.record_memberships_synchronized(
            tag=outcome.sync_tag,
            synced_count=outcome.synced_count,
            deleted_count=outcome.deleted_count,
            failed_batches=outcome.failed_batches,
        )
        self._probe.group_sync_finished(
            tenant_id.value,
            group_id.value,
            synced_count=outcome.synced_count,
            deleted_count=outcome.deleted_count,
            failed_batches=outcome.failed_batches,
        )
        return GroupSyncReport(
            tenant_id=tenant_id.value,
            group_id=group_id.value,
            authman_group=authman_group,
            sync_tag=outcome.sync_tag.value,
            batch_count=len(outcome.batches),
            failed_batches=outcome.failed_batches,
            synced_count=outcome.synced_count,
            deleted_count=outcome.deleted_count,
            stats=outcome.stats,
            effects=group.collect_events(),
        )

    async def _load_configs(self, tenant_id: TenantId) -> list[ManagedGroupConfig]:
        """Load the tenant's stem configurations.

        Raises:
            SyncSetupError: If the configurations cannot be read
        """
        try:
            async with self._session.begin():
                return await self._configs.list_by_tenant(tenant_id)
        except Exception as e:
            raise SyncSetupError(
                f"Failed to load managed group configs for tenant {tenant_id}"
            ) from e

    async def _sync_stem(
        self,
        tenant_id: TenantId,
        config: ManagedGroupConfig,
        stem: str,
        report: SyncReport,
    ) -> None:
        """Mirror every group of one stem; failures stay within the stem."""
        try:
            directory_groups = await self._directory.list_stem_groups(stem)
        except Exception as e:
            self._probe.stem_failed(tenant_id.value, stem, str(e))
            report.failed_stems.append(stem)
            return

        for directory_group in directory_groups:
            try:
                await self._sync_stem_group(tenant_id, config, directory_group, report)
            except Exception as e:
                self._probe.stem_group_failed(
                    tenant_id.value, directory_group.external_key, str(e)
                )
                report.failed_stem_groups.append(directory_group.external_key)

    async def _sync_stem_group(
        self,
        tenant_id: TenantId,
        config: ManagedGroupConfig,
        directory_group: DirectoryGroup,
        report: SyncReport,
    ) -> None:
        title, directory_admins = directory_group.title_and_admins()
        admin_ids = self._admin_union(directory_admins, config)

        async with self._session.begin():
            group = await self._groups.get_by_authman_key(
                directory_group.external_key, tenant_id
            )

        if group is None:
            await self._create_mirrored_group(
                tenant_id, directory_group.external_key, title, admin_ids, report
            )
        else:
            await self._reconcile_mirrored_group(group, title, admin_ids, report)

    def _admin_union(
        self, directory_admins: list[str], config: ManagedGroupConfig
    ) -> list[str]:
        """Union of directory, tenant-wide and stem-configured admins."""
        admins = (
            set(directory_admins)
            | set(self._tenant_admins)
            | set(config.admin_external_ids)
        )
        admins.discard("")
        return sorted(admins)

    async def _create_mirrored_group(
        self,
        tenant_id: TenantId,
        authman_group: str,
        title: str,
        admin_ids: list[str],
        report: SyncReport,
    ) -> None:
        identities = await self._reconciler.resolve_identities(tenant_id, admin_ids)
        group = Group.create_for_directory(
            tenant_id=tenant_id,
            title=title,
            authman_group=authman_group,
            admin_external_ids=admin_ids,
            admin_user_ids=[i.user_id for i in identities.values()],
        )
        admins = [
            self._admin_membership(group, external_id, identities.get(external_id))
            for external_id in admin_ids
        ]

        async with self._session.begin():
            await self._groups.save(group)
            await self._memberships.save_all(admins)

        report.created_group_ids.append(group.id.value)
        report.effects.extend(group.collect_events())
        self._probe.stem_group_created(
            tenant_id.value, group.id.value, authman_group, len(admins)
        )

    async def _reconcile_mirrored_group(
        self,
        group: Group,
        title: str,
        admin_ids: list[str],
        report: SyncReport,
    ) -> None:
        async with self._session.begin():
            existing = await self._memberships.find_memberships(
                group.tenant_id, group_ids=[group.id], external_ids=admin_ids
            )
        by_external_id = {m.external_id: m for m in existing}

        promoted: list[GroupMembership] = []
        missing: list[str] = []
        for external_id in admin_ids:
            membership = by_external_id.get(external_id)
            if membership is None:
                missing.append(external_id)
            elif membership.promote_to_admin():
                promoted.append(membership)

        identities = await self._reconciler.resolve_identities(group.tenant_id, missing)
        added = [
            self._admin_membership(group, external_id, identities.get(external_id))
            for external_id in missing
        ]

        title_changed = group.apply_directory_title(title)
        category_changed = group.ensure_category()
        if not (promoted or added or title_changed or category_changed):
            return

        group.record_admins_reconciled(
            promoted=[m.external_id for m in promoted],
            added=missing,
            admin_user_ids=[m.user_id for m in promoted + added if m.user_id],
        )
        async with self._session.begin():
            if title_changed or category_changed:
                await self._groups.save(group)
            if promoted or added:
                await self._memberships.save_all(promoted + added)

        report.updated_group_ids.append(group.id.value)
        report.effects.extend(group.collect_events())
        self._probe.stem_group_updated(
            group.tenant_id.value,
            group.id.value,
            group.authman_group or "",
            promoted_count=len(promoted),
            added_count=len(added),
        )

    @staticmethod
    def _admin_membership(
        group: Group, external_id: str, identity: ResolvedIdentity | None
    ) -> GroupMembership:
        """Build an admin membership, linked to a local account when resolved."""
        return GroupMembership.create(
            group=group,
            external_id=external_id,
            status=MembershipStatus.ADMIN,
            user_id=identity.user_id if identity else None,
            name=identity.name if identity else "",
            email=identity.email if identity else "",
        )

    async def _sync_mirrored_groups(self, tenant_id: TenantId, report: SyncReport) -> None:
        """Run the per-group pass for every mirrored group of the tenant."""
        async with self._session.begin():
            groups = await self._groups.list_authman_enabled(tenant_id)
        timeouts = await self._guard.resolve_timeouts(tenant_id)

        for group in groups:
            try:
                group_report = await self.synchronize_group(tenant_id, group.id, timeouts)
            except Exception as e:
                self._probe.group_sync_skipped(
                    tenant_id.value, group.id.value, f"{type(e).__name__}: {e}"
                )
                report.failed_groups[group.id.value] = str(e)
                continue
            report.group_reports.append(group_report)
