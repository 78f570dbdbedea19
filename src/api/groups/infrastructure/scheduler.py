"""Cron-driven tenant-wide directory sync.

One APScheduler job is registered per tenant whose SyncConfig carries a
cron expression. Every run opens its own session and enforces the
tenant's time threshold.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from croniter import croniter
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from groups.application.services import AuthmanSyncService
from groups.application.value_objects import SyncReport
from groups.domain.value_objects import TenantId
from groups.infrastructure.observability import (
    DefaultSyncSchedulerProbe,
    SyncSchedulerProbe,
)
from groups.infrastructure.outbox import SyncEffectsPublisher
from groups.infrastructure.sync_repository import SyncConfigRepository
from groups.ports.exceptions import (
    AlreadySyncedError,
    MissingSyncConfigError,
    SyncAlreadyRunningError,
)

CRON_PARTS_COUNT = 5
JOB_ID_PREFIX = "authman_sync_"


def is_valid_cron(expression: str) -> bool:
    """Check that ``expression`` is a five-field cron expression."""
    if len(expression.split()) != CRON_PARTS_COUNT:
        return False
    return croniter.is_valid(expression)


def parse_cron_expression(expression: str) -> dict[str, Any]:
    """Parse a five-field cron expression into APScheduler cron fields.

    Raises:
        ValueError: If the expression does not have five fields
    """
    parts = expression.split()
    if len(parts) != CRON_PARTS_COUNT:
        raise ValueError(f"Invalid cron expression: {expression}")

    return {
        "minute": parts[0],
        "hour": parts[1],
        "day": parts[2],
        "month": parts[3],
        "day_of_week": parts[4],
    }


class SyncScheduler:
    """Schedules tenant-wide sync passes from the tenants' cron settings."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        service_factory: Callable[[AsyncSession], AuthmanSyncService],
        publisher_factory: Callable[[AsyncSession], SyncEffectsPublisher],
        probe: SyncSchedulerProbe | None = None,
        scheduler: AsyncIOScheduler | None = None,
    ):
        """Initialize the scheduler.

        Args:
            session_factory: Factory opening one session per run
            service_factory: Builds the sync engine around a session
            publisher_factory: Builds the outbox publisher around a session
            probe: Optional domain probe for observability
            scheduler: Optional pre-configured APScheduler instance
        """
        self._session_factory = session_factory
        self._service_factory = service_factory
        self._publisher_factory = publisher_factory
        self._probe = probe or DefaultSyncSchedulerProbe()
        self.scheduler = scheduler or self._create_scheduler()

    @staticmethod
    def _create_scheduler() -> AsyncIOScheduler:
        return AsyncIOScheduler(
            executors={"default": AsyncIOExecutor()},
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": 300,
            },
            timezone="UTC",
        )

    async def load_jobs(self) -> int:
        """Register one job per tenant with a valid cron expression.

        Returns:
            Number of registered jobs
        """
        async with self._session_factory() as session:
            async with session.begin():
                configs = await SyncConfigRepository(session).list_all()

        count = 0
        for config in configs:
            if not config.cron:
                continue
            if not is_valid_cron(config.cron):
                self._probe.invalid_cron_ignored(config.tenant_id.value, config.cron)
                continue

            self.scheduler.add_job(
                self.run_tenant_sync,
                "cron",
                **parse_cron_expression(config.cron),
                id=f"{JOB_ID_PREFIX}{config.tenant_id.value}",
                args=[config.tenant_id.value],
                replace_existing=True,
            )
            self._probe.job_scheduled(config.tenant_id.value, config.cron)
            count += 1
        return count

    async def start(self) -> None:
        """Load the jobs and start the scheduler."""
        job_count = await self.load_jobs()
        if not self.scheduler.running:
            self.scheduler.start()
        self._probe.scheduler_started(job_count)

    async def shutdown(self) -> None:
        """Stop the scheduler without waiting for running passes."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        self._probe.scheduler_stopped()

    async def run_tenant_sync(self, tenant_id: str) -> SyncReport | None:
        """Run one scheduled pass and publish its effects.

        Guard rejections and failures are logged; the job never raises.

        Returns:
            The pass report, or None if the pass did not complete
        """
        async with self._session_factory() as session:
            service = self._service_factory(session)
            try:
                report = await service.synchronize(
                    TenantId(value=tenant_id), enforce_threshold=True
                )
                effects = report.all_effects()
                await self._publisher_factory(session).publish(effects)
            except (
                SyncAlreadyRunningError,
                AlreadySyncedError,
                MissingSyncConfigError,
            ) as e:
                self._probe.scheduled_sync_skipped(tenant_id, type(e).__name__)
                return None
            except Exception as e:
                self._probe.scheduled_sync_failed(tenant_id, str(e))
                return None

        self._probe.scheduled_sync_completed(tenant_id, len(effects))
        return report
