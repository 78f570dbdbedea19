"""Domain probe for the cron-driven sync scheduler."""

from __future__ import annotations

import structlog
from typing import Protocol


logger = structlog.get_logger()


class SyncSchedulerProbe(Protocol):
    """Domain probe for scheduled sync passes."""

    def scheduler_started(self, job_count: int) -> None: ...

    def scheduler_stopped(self) -> None: ...

    def invalid_cron_ignored(self, tenant_id: str, cron: str) -> None: ...

    def job_scheduled(self, tenant_id: str, cron: str) -> None: ...

    def scheduled_sync_skipped(self, tenant_id: str, reason: str) -> None: ...

    def scheduled_sync_completed(self, tenant_id: str, effect_count: int) -> None: ...

    def scheduled_sync_failed(self, tenant_id: str, error: str) -> None: ...


class DefaultSyncSchedulerProbe:
    """Default implementation using structlog."""

    def __init__(self) -> None:
        """Initialize the probe with a logger."""
        self._log = logger.bind(component="sync_scheduler")

    def scheduler_started(self, job_count: int) -> None:
        self._log.info("sync_scheduler_started", job_count=job_count)

    def scheduler_stopped(self) -> None:
        self._log.info("sync_scheduler_stopped")

    def invalid_cron_ignored(self, tenant_id: str, cron: str) -> None:
        self._log.warning("sync_cron_invalid", tenant_id=tenant_id, cron=cron)

    def job_scheduled(self, tenant_id: str, cron: str) -> None:
        self._log.info("sync_job_scheduled", tenant_id=tenant_id, cron=cron)

    def scheduled_sync_skipped(self, tenant_id: str, reason: str) -> None:
        """Guard rejections are routine for overlapping schedules."""
        self._log.info("scheduled_sync_skipped", tenant_id=tenant_id, reason=reason)

    def scheduled_sync_completed(self, tenant_id: str, effect_count: int) -> None:
        self._log.info(
            "scheduled_sync_completed",
            tenant_id=tenant_id,
            effect_count=effect_count,
        )

    def scheduled_sync_failed(self, tenant_id: str, error: str) -> None:
        self._log.error("scheduled_sync_failed", tenant_id=tenant_id, error=error)
