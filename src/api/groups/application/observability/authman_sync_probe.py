"""Protocol for directory sync observability.

Defines the interface for domain probes that capture the significant
moments of a directory sync pass: guard decisions, per-stem and per-group
outcomes, batch results and best-effort steps that failed.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class AuthmanSyncProbe(Protocol):
    """Domain probe for the directory sync engine."""

    def sync_started(self, tenant_id: str, enforce_threshold: bool) -> None:
        """Record that a tenant-wide pass was requested."""
        ...

    def sync_finished(
        self,
        tenant_id: str,
        created_count: int,
        updated_count: int,
        synced_group_count: int,
        failed_stem_count: int,
        failed_group_count: int,
    ) -> None:
        """Record that a tenant-wide pass completed."""
        ...

    def sync_failed(self, tenant_id: str, error: str) -> None:
        """Record that a tenant-wide pass aborted."""
        ...

    def sync_rejected(self, tenant_id: str, scope: str, reason: str) -> None:
        """Record that the sync guard refused a run."""
        ...

    def previous_sync_timed_out(
        self, tenant_id: str, scope: str, started_at: datetime | None
    ) -> None:
        """Record that an unfinished run was presumed dead."""
        ...

    def stem_failed(self, tenant_id: str, stem: str, error: str) -> None:
        """Record that a stem could not be listed."""
        ...

    def stem_group_created(
        self, tenant_id: str, group_id: str, authman_group: str, admin_count: int
    ) -> None:
        """Record that a local group was created for a directory group."""
        ...

    def stem_group_updated(
        self,
        tenant_id: str,
        group_id: str,
        authman_group: str,
        promoted_count: int,
        added_count: int,
    ) -> None:
        """Record that a mirrored group's admins or fields were reconciled."""
        ...

    def stem_group_failed(self, tenant_id: str, authman_group: str, error: str) -> None:
        """Record that a directory group could not be created or updated."""
        ...

    def group_sync_started(
        self, tenant_id: str, group_id: str, authman_group: str
    ) -> None:
        """Record that a per-group pass claimed its window."""
        ...

    def group_sync_finished(
        self,
        tenant_id: str,
        group_id: str,
        synced_count: int,
        deleted_count: int,
        failed_batches: int,
    ) -> None:
        """Record that a per-group pass completed."""
        ...

    def group_sync_failed(self, tenant_id: str, group_id: str, error: str) -> None:
        """Record that a per-group pass failed."""
        ...

    def group_sync_skipped(self, tenant_id: str, group_id: str, reason: str) -> None:
        """Record that the tenant-wide pass moved past a group it could not sync."""
        ...

    def identity_resolution_failed(
        self, tenant_id: str, requested: int, error: str
    ) -> None:
        """Record that identities could not be resolved for a batch."""
        ...

    def batch_saved(
        self, tenant_id: str, group_id: str, index: int, requested: int, resolved: int
    ) -> None:
        """Record that a membership batch was upserted."""
        ...

    def batch_failed(
        self, tenant_id: str, group_id: str, index: int, requested: int, error: str
    ) -> None:
        """Record that a membership batch was rejected by the store."""
        ...

    def stale_memberships_deleted(
        self, tenant_id: str, group_id: str, count: int
    ) -> None:
        """Record the stale memberships removed after a pass."""
        ...

    def stale_cleanup_skipped(
        self, tenant_id: str, group_id: str, failed_batches: int
    ) -> None:
        """Record that stale cleanup was skipped because batches failed."""
        ...

    def release_failed(self, tenant_id: str, scope: str, error: str) -> None:
        """Record that a sync window could not be closed."""
        ...

    def stats_update_failed(self, tenant_id: str, group_id: str, error: str) -> None:
        """Record that group statistics could not be recomputed."""
        ...

    def with_context(self, context: ObservationContext) -> AuthmanSyncProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultAuthmanSyncProbe:
    """Default implementation of AuthmanSyncProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultAuthmanSyncProbe:
        """Create a new probe with observation context bound."""
        return DefaultAuthmanSyncProbe(logger=self._logger, context=context)

    def sync_started(self, tenant_id: str, enforce_threshold: bool) -> None:
        """Record that a tenant-wide pass was requested."""
        self._logger.info(
            "authman_sync_started",
            tenant_id=tenant_id,
            enforce_threshold=enforce_threshold,
            **self._get_context_kwargs(),
        )

    def sync_finished(
        self,
        tenant_id: str,
        created_count: int,
        updated_count: int,
        synced_group_count: int,
        failed_stem_count: int,
        failed_group_count: int,
    ) -> None:
        """Record that a tenant-wide pass completed."""
        self._logger.info(
            "authman_sync_finished",
            tenant_id=tenant_id,
            created_count=created_count,
            updated_count=updated_count,
            synced_group_count=synced_group_count,
            failed_stem_count=failed_stem_count,
            failed_group_count=failed_group_count,
            **self._get_context_kwargs(),
        )

    def sync_failed(self, tenant_id: str, error: str) -> None:
        """Record that a tenant-wide pass aborted."""
        self._logger.error(
            "authman_sync_failed",
            tenant_id=tenant_id,
            error=error,
            **self._get_context_kwargs(),
        )

    def sync_rejected(self, tenant_id: str, scope: str, reason: str) -> None:
        """Record that the sync guard refused a run."""
        self._logger.info(
            "authman_sync_rejected",
            tenant_id=tenant_id,
            scope=scope,
            reason=reason,
            **self._get_context_kwargs(),
        )

    def previous_sync_timed_out(
        self, tenant_id: str, scope: str, started_at: datetime | None
    ) -> None:
        """Record that an unfinished run was presumed dead."""
        self._logger.warning(
            "authman_sync_timed_out",
            tenant_id=tenant_id,
            scope=scope,
            started_at=started_at.isoformat() if started_at else None,
            **self._get_context_kwargs(),
        )

    def stem_failed(self, tenant_id: str, stem: str, error: str) -> None:
        """Record that a stem could not be listed."""
        self._logger.error(
            "authman_stem_failed",
            tenant_id=tenant_id,
            stem=stem,
            error=error,
            **self._get_context_kwargs(),
        )

    def stem_group_created(
        self, tenant_id: str, group_id: str, authman_group: str, admin_count: int
    ) -> None:
        """Record that a local group was created for a directory group."""
        self._logger.info(
            "authman_stem_group_created",
            tenant_id=tenant_id,
            group_id=group_id,
            authman_group=authman_group,
            admin_count=admin_count,
            **self._get_context_kwargs(),
        )

    def stem_group_updated(
        self,
        tenant_id: str,
        group_id: str,
        authman_group: str,
        promoted_count: int,
        added_count: int,
    ) -> None:
        """Record that a mirrored group's admins or fields were reconciled."""
        self._logger.info(
            "authman_stem_group_updated",
            tenant_id=tenant_id,
            group_id=group_id,
            authman_group=authman_group,
            promoted_count=promoted_count,
            added_count=added_count,
            **self._get_context_kwargs(),
        )

    def stem_group_failed(self, tenant_id: str, authman_group: str, error: str) -> None:
        """Record that a directory group could not be created or updated."""
        self._logger.error(
            "authman_stem_group_failed",
            tenant_id=tenant_id,
            authman_group=authman_group,
            error=error,
            **self._get_context_kwargs(),
        )

    def group_sync_started(
        self, tenant_id: str, group_id: str, authman_group: str
    ) -> None:
        """Record that a per-group pass claimed its window."""
        self._logger.info(
            "authman_group_sync_started",
            tenant_id=tenant_id,
            group_id=group_id,
            authman_group=authman_group,
            **self._get_context_kwargs(),
        )

    def group_sync_finished(
        self,
        tenant_id: str,
        group_id: str,
        synced_count: int,
        deleted_count: int,
        failed_batches: int,
    ) -> None:
        """Record that a per-group pass completed."""
        self._logger.info(
            "authman_group_sync_finished",
            tenant_id=tenant_id,
            group_id=group_id,
            synced_count=synced_count,
            deleted_count=deleted_count,
            failed_batches=failed_batches,
            **self._get_context_kwargs(),
        )

    def group_sync_failed(self, tenant_id: str, group_id: str, error: str) -> None:
        """Record that a per-group pass failed."""
        self._logger.error(
            "authman_group_sync_failed",
            tenant_id=tenant_id,
            group_id=group_id,
            error=error,
            **self._get_context_kwargs(),
        )

    def group_sync_skipped(self, tenant_id: str, group_id: str, reason: str) -> None:
        """Record that the tenant-wide pass moved past a group it could not sync."""
        self._logger.warning(
            "authman_group_sync_skipped",
            tenant_id=tenant_id,
            group_id=group_id,
            reason=reason,
            **self._get_context_kwargs(),
        )

    def identity_resolution_failed(
        self, tenant_id: str, requested: int, error: str
    ) -> None:
        """Record that identities could not be resolved for a batch."""
        self._logger.warning(
            "identity_resolution_failed",
            tenant_id=tenant_id,
            requested=requested,
            error=error,
            **self._get_context_kwargs(),
        )

    def batch_saved(
        self, tenant_id: str, group_id: str, index: int, requested: int, resolved: int
    ) -> None:
        """Record that a membership batch was upserted."""
        self._logger.debug(
            "membership_batch_saved",
            tenant_id=tenant_id,
            group_id=group_id,
            index=index,
            requested=requested,
            resolved=resolved,
            **self._get_context_kwargs(),
        )

    def batch_failed(
        self, tenant_id: str, group_id: str, index: int, requested: int, error: str
    ) -> None:
        """Record that a membership batch was rejected by the store."""
        self._logger.error(
            "membership_batch_failed",
            tenant_id=tenant_id,
            group_id=group_id,
            index=index,
            requested=requested,
            error=error,
            **self._get_context_kwargs(),
        )

    def stale_memberships_deleted(
        self, tenant_id: str, group_id: str, count: int
    ) -> None:
        """Record the stale memberships removed after a pass."""
        self._logger.info(
            "stale_memberships_deleted",
            tenant_id=tenant_id,
            group_id=group_id,
            count=count,
            **self._get_context_kwargs(),
        )

    def stale_cleanup_skipped(
        self, tenant_id: str, group_id: str, failed_batches: int
    ) -> None:
        """Record that stale cleanup was skipped because batches failed."""
        self._logger.warning(
            "stale_cleanup_skipped",
            tenant_id=tenant_id,
            group_id=group_id,
            failed_batches=failed_batches,
            **self._get_context_kwargs(),
        )

    def release_failed(self, tenant_id: str, scope: str, error: str) -> None:
        """Record that a sync window could not be closed."""
        self._logger.error(
            "authman_sync_release_failed",
            tenant_id=tenant_id,
            scope=scope,
            error=error,
            **self._get_context_kwargs(),
        )

    def stats_update_failed(self, tenant_id: str, group_id: str, error: str) -> None:
        """Record that group statistics could not be recomputed."""
        self._logger.error(
            "group_stats_update_failed",
            tenant_id=tenant_id,
            group_id=group_id,
            error=error,
            **self._get_context_kwargs(),
        )
