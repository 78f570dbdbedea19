"""Domain probe for Groups repository operations.

Following Domain-Oriented Observability patterns, these probes capture
domain-significant events of group and membership persistence.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class GroupRepositoryProbe(Protocol):
    """Domain probe for group repository operations."""

    def group_saved(self, group_id: str, tenant_id: str, created: bool) -> None:
        """Record that a group was inserted or updated."""
        ...

    def group_not_found(self, group_id: str, tenant_id: str) -> None:
        """Record that a group was not found in the tenant."""
        ...

    def stats_recomputed(self, group_id: str, total_count: int) -> None:
        """Record that a group's statistics snapshot was refreshed."""
        ...

    def with_context(self, context: ObservationContext) -> GroupRepositoryProbe:
        """Create a new probe with observation context bound."""
        ...


class MembershipRepositoryProbe(Protocol):
    """Domain probe for membership repository operations."""

    def memberships_upserted(self, group_id: str, count: int) -> None:
        """Record that a batch of memberships was upserted by external id."""
        ...

    def unsynced_memberships_deleted(self, group_id: str, count: int) -> None:
        """Record that memberships with a stale sync tag were deleted."""
        ...

    def with_context(self, context: ObservationContext) -> MembershipRepositoryProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultGroupRepositoryProbe:
    """Default implementation of GroupRepositoryProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultGroupRepositoryProbe:
        """Create a new probe with observation context bound."""
        return DefaultGroupRepositoryProbe(logger=self._logger, context=context)

    def group_saved(self, group_id: str, tenant_id: str, created: bool) -> None:
        """Record that a group was inserted or updated."""
        self._logger.info(
            "group_saved",
            group_id=group_id,
            tenant_id=tenant_id,
            created=created,
            **self._get_context_kwargs(),
        )

    def group_not_found(self, group_id: str, tenant_id: str) -> None:
        """Record that a group was not found in the tenant."""
        self._logger.debug(
            "group_not_found",
            group_id=group_id,
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def stats_recomputed(self, group_id: str, total_count: int) -> None:
        """Record that a group's statistics snapshot was refreshed."""
        self._logger.debug(
            "group_stats_recomputed",
            group_id=group_id,
            total_count=total_count,
            **self._get_context_kwargs(),
        )


class DefaultMembershipRepositoryProbe:
    """Default implementation of MembershipRepositoryProbe using structlog."""

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

    def with_context(
        self, context: ObservationContext
    ) -> DefaultMembershipRepositoryProbe:
        """Create a new probe with observation context bound."""
        return DefaultMembershipRepositoryProbe(logger=self._logger, context=context)

    def memberships_upserted(self, group_id: str, count: int) -> None:
        """Record that a batch of memberships was upserted by external id."""
        self._logger.debug(
            "memberships_upserted",
            group_id=group_id,
            count=count,
            **self._get_context_kwargs(),
        )

    def unsynced_memberships_deleted(self, group_id: str, count: int) -> None:
        """Record that memberships with a stale sync tag were deleted."""
        self._logger.info(
            "unsynced_memberships_deleted",
            group_id=group_id,
            count=count,
            **self._get_context_kwargs(),
        )
