"""Sync time ledger and configuration for directory synchronization.

The ledger is an advisory, timeout-based mutual exclusion scheme built on
persisted start/end timestamps. The same rule is applied at two scopes:
the tenant-wide pass (a ledger row keyed ``"authman"``) and the per-group
pass (the group's own sync window fields).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import StrEnum

from groups.domain.value_objects import TenantId

# Ledger key of the tenant-wide directory sync pass
AUTHMAN_SYNC_KEY = "authman"

DEFAULT_SYNC_TIMEOUT_MINUTES = 60


@dataclass(frozen=True)
class SyncTimes:
    """Ledger row recording the most recent run for a sync key.

    ``end_time`` is None while a run is in flight, or after a run crashed
    before it could close its window.
    """

    tenant_id: TenantId
    key: str
    start_time: datetime | None = None
    end_time: datetime | None = None

    @property
    def is_running(self) -> bool:
        return self.start_time is not None and self.end_time is None

    def started(self, now: datetime) -> SyncTimes:
        """Return a row claiming a new run at ``now``."""
        return replace(self, start_time=now, end_time=None)

    def finished(self, now: datetime) -> SyncTimes:
        """Return a row closing the current run at ``now``."""
        return replace(self, end_time=now)


@dataclass(frozen=True)
class SyncConfig:
    """Per-tenant scheduling and guard configuration.

    All durations are in minutes; zero means "not configured".

    Attributes:
        tenant_id: The tenant this configuration belongs to
        cron: Cron expression for the scheduled tenant-wide pass
        timeout: Minutes after which an unfinished tenant-wide run is
            presumed dead
        group_timeout: Same as ``timeout`` for per-group runs
        time_threshold: Minimum minutes between two scheduled tenant-wide runs
    """

    tenant_id: TenantId
    cron: str = ""
    timeout: int = 0
    group_timeout: int = 0
    time_threshold: int = 0


@dataclass(frozen=True)
class ManagedGroupConfig:
    """Declares which directory stems a tenant mirrors.

    Attributes:
        id: Configuration identifier
        tenant_id: The tenant this configuration belongs to
        authman_stems: Directory stems to scan for groups
        admin_external_ids: External ids forced as admins on every group
            discovered under these stems
    """

    id: str
    tenant_id: TenantId
    authman_stems: list[str] = field(default_factory=list)
    admin_external_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SyncTimeouts:
    """Resolved guard durations for one tenant."""

    timeout: timedelta
    group_timeout: timedelta
    time_threshold: timedelta | None


def resolve_sync_timeouts(
    config: SyncConfig | None,
    default_timeout_minutes: int = DEFAULT_SYNC_TIMEOUT_MINUTES,
) -> SyncTimeouts:
    """Resolve guard durations for a tenant.

    Precedence for each timeout: a positive value on the tenant's
    SyncConfig, then ``default_timeout_minutes``. The time threshold is
    only known when a SyncConfig exists; a zero threshold never suppresses
    a run.

    Args:
        config: The tenant's sync configuration, if any
        default_timeout_minutes: Fallback timeout in minutes

    Returns:
        SyncTimeouts with every timeout populated
    """
    default = timedelta(minutes=default_timeout_minutes)
    if config is None:
        return SyncTimeouts(timeout=default, group_timeout=default, time_threshold=None)

    return SyncTimeouts(
        timeout=timedelta(minutes=config.timeout) if config.timeout > 0 else default,
        group_timeout=(
            timedelta(minutes=config.group_timeout)
            if config.group_timeout > 0
            else default
        ),
        time_threshold=timedelta(minutes=max(config.time_threshold, 0)),
    )


class ClaimDecision(StrEnum):
    """Outcome of checking a sync window before starting a run."""

    PROCEED = "proceed"
    PROCEED_AFTER_TIMEOUT = "proceed_after_timeout"
    ALREADY_RUNNING = "already_running"
    ALREADY_SYNCED = "already_synced"

    @property
    def may_proceed(self) -> bool:
        return self in (ClaimDecision.PROCEED, ClaimDecision.PROCEED_AFTER_TIMEOUT)


def check_claim(
    start_time: datetime | None,
    end_time: datetime | None,
    now: datetime,
    timeout: timedelta,
    threshold: timedelta | None = None,
) -> ClaimDecision:
    """Decide whether a new run may start given the previous sync window.

    Args:
        start_time: Start of the previous run, if any
        end_time: End of the previous run, None if it never closed
        now: Requested start of the new run
        timeout: Age after which an unfinished run is presumed dead
        threshold: Minimum age of a finished run before another may start;
            None disables the check

    Returns:
        The ClaimDecision for the new run
    """
    if start_time is None:
        return ClaimDecision.PROCEED

    if end_time is None:
        if now <= start_time + timeout:
            return ClaimDecision.ALREADY_RUNNING
        return ClaimDecision.PROCEED_AFTER_TIMEOUT

    if threshold is not None and now <= start_time + threshold:
        return ClaimDecision.ALREADY_SYNCED

    return ClaimDecision.PROCEED
