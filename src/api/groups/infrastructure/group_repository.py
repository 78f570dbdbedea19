"""PostgreSQL implementation of IGroupRepository.

Groups are stored in a single table. Domain events stay on the aggregate;
the sync engine hands them to the outbox once a pass is over.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from groups.domain.aggregates import Group
from groups.domain.value_objects import (
    GroupId,
    GroupPrivacy,
    GroupStats,
    MembershipStatus,
    TenantId,
)
from groups.infrastructure.models import GroupMembershipModel, GroupModel
from groups.infrastructure.observability import (
    DefaultGroupRepositoryProbe,
    GroupRepositoryProbe,
)
from groups.ports.exceptions import GroupNotFoundError
from groups.ports.repositories import IGroupRepository

_KNOWN_STATUSES = frozenset(status.value for status in MembershipStatus)


class GroupRepository(IGroupRepository):
    """Repository persisting Group aggregates in PostgreSQL.

    The repository never commits; callers wrap calls in
    ``session.begin()``.
    """

    def __init__(
        self,
        session: AsyncSession,
        probe: GroupRepositoryProbe | None = None,
    ) -> None:
        """Initialize repository with database session.

        Args:
            session: AsyncSession owned by the calling service
            probe: Optional domain probe for observability
        """
        self._session = session
        self._probe = probe or DefaultGroupRepositoryProbe()

    async def get_by_id(self, group_id: GroupId, tenant_id: TenantId) -> Group | None:
        return await self._get(group_id, tenant_id, lock=False)

    async def get_for_sync(
        self, group_id: GroupId, tenant_id: TenantId
    ) -> Group | None:
        """Load a group and lock its row until the transaction ends.

        Two claims racing on the same group's sync window are serialized
        by the database.
        """
        return await self._get(group_id, tenant_id, lock=True)

    async def _get(
        self, group_id: GroupId, tenant_id: TenantId, lock: bool
    ) -> Group | None:
        stmt = select(GroupModel).where(
            GroupModel.id == group_id.value,
            GroupModel.tenant_id == tenant_id.value,
        )
        if lock:
            stmt = stmt.with_for_update()
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            self._probe.group_not_found(group_id.value, tenant_id.value)
            return None

        return self._to_domain(model)

    async def get_by_authman_key(
        self, authman_group: str, tenant_id: TenantId
    ) -> Group | None:
        stmt = (
            select(GroupModel)
            .where(
                GroupModel.tenant_id == tenant_id.value,
                GroupModel.authman_group == authman_group,
            )
            .order_by(GroupModel.created_at)
            .limit(1)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def list_authman_enabled(self, tenant_id: TenantId) -> list[Group]:
        stmt = (
            select(GroupModel)
            .where(
                GroupModel.tenant_id == tenant_id.value,
                GroupModel.authman_enabled.is_(True),
            )
            .order_by(GroupModel.id)
        )
        result = await self._session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def save(self, group: Group) -> None:
        """Insert or update group metadata.

        Args:
            group: The Group aggregate to persist
        """
        stmt = select(GroupModel).where(GroupModel.id == group.id.value)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        created = model is None
        if model is None:
            model = GroupModel(
                id=group.id.value,
                tenant_id=group.tenant_id.value,
                sync_start_time=group.sync_start_time,
                sync_end_time=group.sync_end_time,
                stats=group.stats.as_dict(),
            )
            self._session.add(model)

        model.title = group.title
        model.category = group.category
        model.privacy = group.privacy.value
        model.hidden_for_search = group.hidden_for_search
        model.can_join_automatically = group.can_join_automatically
        model.authman_enabled = group.authman_enabled
        model.authman_group = group.authman_group
        model.membership_questions = list(group.membership_questions)

        await self._session.flush()
        self._probe.group_saved(group.id.value, group.tenant_id.value, created)

    async def update_sync_window(
        self,
        group_id: GroupId,
        tenant_id: TenantId,
        start_time: datetime | None,
        end_time: datetime | None,
    ) -> None:
        stmt = (
            update(GroupModel)
            .where(
                GroupModel.id == group_id.value,
                GroupModel.tenant_id == tenant_id.value,
            )
            .values(sync_start_time=start_time, sync_end_time=end_time)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            self._probe.group_not_found(group_id.value, tenant_id.value)
            raise GroupNotFoundError(
                f"Group {group_id} not found in tenant {tenant_id}"
            )

    async def recompute_stats(self, group_id: GroupId, tenant_id: TenantId) -> GroupStats:
        stmt = (
            select(GroupMembershipModel.status, func.count())
            .where(
                GroupMembershipModel.tenant_id == tenant_id.value,
                GroupMembershipModel.group_id == group_id.value,
            )
            .group_by(GroupMembershipModel.status)
        )
        result = await self._session.execute(stmt)
        counts = {
            MembershipStatus(status): count
            for status, count in result.all()
            if status in _KNOWN_STATUSES
        }
        stats = GroupStats.from_status_counts(counts)

        await self._session.execute(
            update(GroupModel)
            .where(
                GroupModel.id == group_id.value,
                GroupModel.tenant_id == tenant_id.value,
            )
            .values(stats=stats.as_dict())
            .execution_options(synchronize_session=False)
        )
        self._probe.stats_recomputed(group_id.value, stats.total_count)
        return stats

    @staticmethod
    def _to_domain(model: GroupModel) -> Group:
        """Reconstitute a Group aggregate from its row."""
        return Group(
            id=GroupId(value=model.id),
            tenant_id=TenantId(value=model.tenant_id),
            title=model.title,
            category=model.category,
            privacy=GroupPrivacy(model.privacy),
            hidden_for_search=model.hidden_for_search,
            can_join_automatically=model.can_join_automatically,
            authman_enabled=model.authman_enabled,
            authman_group=model.authman_group,
            sync_start_time=model.sync_start_time,
            sync_end_time=model.sync_end_time,
            membership_questions=list(model.membership_questions or []),
            stats=GroupStats(**(model.stats or {})),
        )
