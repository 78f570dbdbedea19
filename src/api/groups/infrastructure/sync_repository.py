"""PostgreSQL repositories for sync bookkeeping and configuration."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from groups.domain.sync import ManagedGroupConfig, SyncConfig, SyncTimes
from groups.domain.value_objects import TenantId
from groups.infrastructure.models import (
    ManagedGroupConfigModel,
    SyncConfigModel,
    SyncTimesModel,
)
from groups.ports.repositories import (
    IManagedGroupConfigRepository,
    ISyncConfigRepository,
    ISyncTimesRepository,
)


class SyncTimesRepository(ISyncTimesRepository):
    """Repository for the sync time ledger.

    ``find`` locks the ledger row for the rest of the transaction, so two
    claims racing on an existing row are serialized by the database.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find(self, tenant_id: TenantId, key: str) -> SyncTimes | None:
        stmt = (
            select(SyncTimesModel)
            .where(
                SyncTimesModel.tenant_id == tenant_id.value,
                SyncTimesModel.key == key,
            )
            .with_for_update()
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            return None

        return SyncTimes(
            tenant_id=TenantId(value=model.tenant_id),
            key=model.key,
            start_time=model.start_time,
            end_time=model.end_time,
        )

    async def save(self, times: SyncTimes) -> None:
        stmt = insert(SyncTimesModel).values(
            tenant_id=times.tenant_id.value,
            key=times.key,
            start_time=times.start_time,
            end_time=times.end_time,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[SyncTimesModel.tenant_id, SyncTimesModel.key],
            set_={
                "start_time": stmt.excluded.start_time,
                "end_time": stmt.excluded.end_time,
            },
        )
        await self._session.execute(stmt)


class SyncConfigRepository(ISyncConfigRepository):
    """Repository for per-tenant sync configuration."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, tenant_id: TenantId) -> SyncConfig | None:
        stmt = select(SyncConfigModel).where(
            SyncConfigModel.tenant_id == tenant_id.value
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def list_all(self) -> list[SyncConfig]:
        result = await self._session.execute(
            select(SyncConfigModel).order_by(SyncConfigModel.tenant_id)
        )
        return [self._to_domain(model) for model in result.scalars().all()]

    @staticmethod
    def _to_domain(model: SyncConfigModel) -> SyncConfig:
        return SyncConfig(
            tenant_id=TenantId(value=model.tenant_id),
            cron=model.cron,
            timeout=model.timeout,
            group_timeout=model.group_timeout,
            time_threshold=model.time_threshold,
        )


class ManagedGroupConfigRepository(IManagedGroupConfigRepository):
    """Repository for managed group configurations."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_by_tenant(self, tenant_id: TenantId) -> list[ManagedGroupConfig]:
        stmt = (
            select(ManagedGroupConfigModel)
            .where(ManagedGroupConfigModel.tenant_id == tenant_id.value)
            .order_by(ManagedGroupConfigModel.id)
        )
        result = await self._session.execute(stmt)
        return [
            ManagedGroupConfig(
                id=model.id,
                tenant_id=TenantId(value=model.tenant_id),
                authman_stems=list(model.authman_stems or []),
                admin_external_ids=list(model.admin_uins or []),
            )
            for model in result.scalars().all()
        ]
