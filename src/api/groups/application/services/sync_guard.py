"""Sync window guard for directory synchronization.

Applies the ledger rules of groups.domain.sync against persisted state.
Each claim runs in its own transaction and commits before the caller
issues any directory call; releases are best effort.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from groups.application.observability import (
    AuthmanSyncProbe,
    DefaultAuthmanSyncProbe,
)
from groups.domain.aggregates import Group
from groups.domain.sync import (
    AUTHMAN_SYNC_KEY,
    DEFAULT_SYNC_TIMEOUT_MINUTES,
    ClaimDecision,
    SyncTimeouts,
    SyncTimes,
    check_claim,
    resolve_sync_timeouts,
)
from groups.domain.value_objects import GroupId, TenantId
from groups.ports.exceptions import (
    AlreadySyncedError,
    GroupNotFoundError,
    GroupNotSyncEligibleError,
    MissingSyncConfigError,
    SyncAlreadyRunningError,
)
from groups.ports.repositories import (
    IGroupRepository,
    ISyncConfigRepository,
    ISyncTimesRepository,
)


class SyncTimesGuard:
    """Claims and releases sync windows at tenant and group scope.

    The two scopes are independent: a tenant-wide pass delegates to the
    per-group guard for every mirrored group and is not blocked by a group
    sync that was triggered manually.
    """

    def __init__(
        self,
        session: AsyncSession,
        group_repository: IGroupRepository,
        sync_times_repository: ISyncTimesRepository,
        sync_config_repository: ISyncConfigRepository,
        default_timeout_minutes: int = DEFAULT_SYNC_TIMEOUT_MINUTES,
        probe: AuthmanSyncProbe | None = None,
    ):
        """Initialize the guard.

        Args:
            session: Database session for transaction management
            group_repository: Repository holding per-group sync windows
            sync_times_repository: Repository for the tenant-wide ledger
            sync_config_repository: Source of per-tenant timeouts
            default_timeout_minutes: Timeout applied when none is configured
            probe: Optional domain probe for observability
        """
        self._session = session
        self._groups = group_repository
        self._sync_times = sync_times_repository
        self._sync_configs = sync_config_repository
        self._default_timeout = default_timeout_minutes
        self._probe = probe or DefaultAuthmanSyncProbe()

    async def claim_global(
        self, tenant_id: TenantId, now: datetime, enforce_threshold: bool = False
    ) -> SyncTimes:
        """Claim the tenant-wide sync window.

        Args:
            tenant_id: The tenant to sync
            now: Start of the new run
            enforce_threshold: Reject if the last run started within the
                tenant's time threshold

        Returns:
            The ledger row as written by the claim

        Raises:
            MissingSyncConfigError: If the threshold is enforced without config
            SyncAlreadyRunningError: If another run holds the window
            AlreadySyncedError: If the last run is within the time threshold
        """
        async with self._session.begin():
            config = await self._sync_configs.get(tenant_id)
            if enforce_threshold and config is None:
                self._probe.sync_rejected(tenant_id.value, "tenant", "missing_config")
                raise MissingSyncConfigError(
                    f"Tenant {tenant_id} has no sync configuration"
                )
            timeouts = resolve_sync_timeouts(config, self._default_timeout)

            current = await self._sync_times.find(tenant_id, AUTHMAN_SYNC_KEY)
            if current is None:
                current = SyncTimes(tenant_id=tenant_id, key=AUTHMAN_SYNC_KEY)

            decision = check_claim(
                start_time=current.start_time,
                end_time=current.end_time,
                now=now,
                timeout=timeouts.timeout,
                threshold=timeouts.time_threshold if enforce_threshold else None,
            )
            self._ensure_may_proceed(decision, tenant_id, "tenant", current.start_time)

            claimed = current.started(now)
            await self._sync_times.save(claimed)

        return claimed

    async def release_global(self, times: SyncTimes, now: datetime) -> None:
        """Close the tenant-wide sync window, keeping its start time.

        Failures are reported to the probe and not raised.
        """
        try:
            async with self._session.begin():
                await self._sync_times.save(times.finished(now))
        except Exception as e:
            self._probe.release_failed(times.tenant_id.value, "tenant", str(e))

    async def claim_group(
        self,
        tenant_id: TenantId,
        group_id: GroupId,
        now: datetime,
        timeouts: SyncTimeouts | None = None,
    ) -> Group:
        """Claim a group's sync window.

        Args:
            tenant_id: The tenant owning the group
            group_id: The group to sync
            now: Start of the new run
            timeouts: Pre-resolved timeouts; loaded from config when None

        Returns:
            The claimed Group with its window opened

        Raises:
            GroupNotFoundError: If the group does not exist in the tenant
            GroupNotSyncEligibleError: If the group is not mirrored
            SyncAlreadyRunningError: If another run holds the window
        """
        async with self._session.begin():
            group = await self._groups.get_for_sync(group_id, tenant_id)
            if group is None:
                raise GroupNotFoundError(
                    f"Group {group_id} not found in tenant {tenant_id}"
                )
            if not group.is_sync_eligible():
                raise GroupNotSyncEligibleError(
                    f"Group {group_id} cannot be synchronized due to bad settings"
                )

            if timeouts is None:
                config = await self._sync_configs.get(tenant_id)
                timeouts = resolve_sync_timeouts(config, self._default_timeout)

            decision = check_claim(
                start_time=group.sync_start_time,
                end_time=group.sync_end_time,
                now=now,
                timeout=timeouts.group_timeout,
            )
            self._ensure_may_proceed(
                decision, tenant_id, group_id.value, group.sync_start_time
            )

            group.begin_sync(now)
            await self._groups.update_sync_window(
                group.id, tenant_id, group.sync_start_time, group.sync_end_time
            )

        return group

    async def release_group(self, group: Group, now: datetime) -> None:
        """Close a group's sync window, keeping its start time.

        Failures are reported to the probe and not raised.
        """
        group.finish_sync(now)
        try:
            async with self._session.begin():
                await self._groups.update_sync_window(
                    group.id, group.tenant_id, group.sync_start_time, group.sync_end_time
                )
        except Exception as e:
            self._probe.release_failed(group.tenant_id.value, group.id.value, str(e))

    async def resolve_timeouts(self, tenant_id: TenantId) -> SyncTimeouts:
        """Load and resolve the tenant's guard durations."""
        async with self._session.begin():
            config = await self._sync_configs.get(tenant_id)
        return resolve_sync_timeouts(config, self._default_timeout)

    def _ensure_may_proceed(
        self,
        decision: ClaimDecision,
        tenant_id: TenantId,
        scope: str,
        started_at: datetime | None,
    ) -> None:
        """Raise the guard rejection matching ``decision``."""
        if decision == ClaimDecision.ALREADY_RUNNING:
            self._probe.sync_rejected(tenant_id.value, scope, decision.value)
            raise SyncAlreadyRunningError(
                f"Another directory sync is running for {scope} in tenant {tenant_id}"
            )
        if decision == ClaimDecision.ALREADY_SYNCED:
            self._probe.sync_rejected(tenant_id.value, scope, decision.value)
            raise AlreadySyncedError(
                f"Tenant {tenant_id} has already been synced within the time threshold"
            )
        if decision == ClaimDecision.PROCEED_AFTER_TIMEOUT:
            self._probe.previous_sync_timed_out(tenant_id.value, scope, started_at)
