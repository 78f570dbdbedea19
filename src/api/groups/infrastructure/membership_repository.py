"""PostgreSQL implementation of IMembershipRepository.

Directory reconciliation writes through a bulk ``INSERT ... ON CONFLICT``
keyed by (tenant_id, group_id, external_id), so re-running a batch is
idempotent and concurrent passes converge on the same rows.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import case, delete, func, or_, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from groups.domain.aggregates import GroupMembership
from groups.domain.value_objects import (
    GroupId,
    MemberAnswer,
    MembershipId,
    MembershipStatus,
    SyncTag,
    TenantId,
)
from groups.infrastructure.models import GroupMembershipModel
from groups.infrastructure.observability import (
    DefaultMembershipRepositoryProbe,
    MembershipRepositoryProbe,
)
from groups.ports.models import MembershipUpsert
from groups.ports.repositories import IMembershipRepository
from infrastructure.database.models import utc_now

EXTERNAL_ID_CONSTRAINT = "uq_group_memberships_tenant_group_external_id"


def _answers_to_json(answers: list[MemberAnswer]) -> list[dict[str, Any]]:
    return [{"question": a.question, "answer": a.answer} for a in answers]


class MembershipRepository(IMembershipRepository):
    """Repository for group memberships backed by PostgreSQL."""

    def __init__(
        self,
        session: AsyncSession,
        probe: MembershipRepositoryProbe | None = None,
    ) -> None:
        """Initialize repository with database session.

        Args:
            session: AsyncSession owned by the calling service
            probe: Optional domain probe for observability
        """
        self._session = session
        self._probe = probe or DefaultMembershipRepositoryProbe()

    async def find_memberships(
        self,
        tenant_id: TenantId,
        group_ids: list[GroupId] | None = None,
        statuses: list[MembershipStatus] | None = None,
        external_ids: list[str] | None = None,
    ) -> list[GroupMembership]:
        stmt = select(GroupMembershipModel).where(
            GroupMembershipModel.tenant_id == tenant_id.value
        )
        if group_ids is not None:
            stmt = stmt.where(
                GroupMembershipModel.group_id.in_([g.value for g in group_ids])
            )
        if statuses is not None:
            stmt = stmt.where(
                GroupMembershipModel.status.in_([s.value for s in statuses])
            )
        if external_ids is not None:
            stmt = stmt.where(GroupMembershipModel.external_id.in_(external_ids))

        result = await self._session.execute(stmt.order_by(GroupMembershipModel.id))
        return [self._to_domain(model) for model in result.scalars().all()]

    async def save_all(self, memberships: list[GroupMembership]) -> None:
        if not memberships:
            return

        ids = [m.id.value for m in memberships]
        result = await self._session.execute(
            select(GroupMembershipModel).where(GroupMembershipModel.id.in_(ids))
        )
        existing = {model.id: model for model in result.scalars().all()}

        for membership in memberships:
            model = existing.get(membership.id.value)
            if model is None:
                model = GroupMembershipModel(
                    id=membership.id.value,
                    tenant_id=membership.tenant_id.value,
                    group_id=membership.group_id.value,
                )
                self._session.add(model)

            model.external_id = membership.external_id or None
            model.user_id = membership.user_id
            model.name = membership.name
            model.email = membership.email
            model.status = membership.status.value
            model.sync_tag = membership.sync_tag.value if membership.sync_tag else None
            model.member_answers = _answers_to_json(membership.member_answers)

        await self._session.flush()

    async def bulk_upsert_by_external_id(
        self,
        tenant_id: TenantId,
        group_id: GroupId,
        operations: list[MembershipUpsert],
    ) -> None:
        """Insert new rows or refresh existing ones by external id.

        On conflict, status and sync tag always follow the operation. The
        linked account, name and email are only replaced by non-empty values,
        so an unresolved pass never unlinks a member.
        """
        if not operations:
            return

        now = utc_now()
        rows = [
            {
                "id": MembershipId.generate().value,
                "tenant_id": tenant_id.value,
                "group_id": group_id.value,
                "external_id": op.external_id,
                "user_id": op.user_id,
                "name": op.name,
                "email": op.email,
                "status": op.status.value,
                "sync_tag": op.sync_tag.value,
                "member_answers": _answers_to_json(op.member_answers),
                "created_at": now,
                "updated_at": now,
            }
            for op in operations
        ]

        table = GroupMembershipModel.__table__
        stmt = insert(GroupMembershipModel).values(rows)
        stmt = stmt.on_conflict_do_update(
            constraint=EXTERNAL_ID_CONSTRAINT,
            set_={
                "status": stmt.excluded.status,
                "sync_tag": stmt.excluded.sync_tag,
                "updated_at": stmt.excluded.updated_at,
                "user_id": func.coalesce(stmt.excluded.user_id, table.c.user_id),
                "name": case(
                    (stmt.excluded.name != "", stmt.excluded.name),
                    else_=table.c.name,
                ),
                "email": case(
                    (stmt.excluded.email != "", stmt.excluded.email),
                    else_=table.c.email,
                ),
            },
        )
        await self._session.execute(stmt)
        self._probe.memberships_upserted(group_id.value, len(rows))

    async def delete_unsynced(
        self, tenant_id: TenantId, group_id: GroupId, current_tag: SyncTag
    ) -> int:
        stmt = (
            delete(GroupMembershipModel)
            .where(
                GroupMembershipModel.tenant_id == tenant_id.value,
                GroupMembershipModel.group_id == group_id.value,
                GroupMembershipModel.status != MembershipStatus.ADMIN.value,
                or_(
                    GroupMembershipModel.sync_tag.is_(None),
                    GroupMembershipModel.sync_tag != current_tag.value,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        deleted = result.rowcount or 0
        self._probe.unsynced_memberships_deleted(group_id.value, deleted)
        return deleted

    @staticmethod
    def _to_domain(model: GroupMembershipModel) -> GroupMembership:
        """Reconstitute a membership from its row."""
        return GroupMembership(
            id=MembershipId(value=model.id),
            tenant_id=TenantId(value=model.tenant_id),
            group_id=GroupId(value=model.group_id),
            status=MembershipStatus(model.status),
            external_id=model.external_id or "",
            user_id=model.user_id,
            name=model.name,
            email=model.email,
            sync_tag=SyncTag(value=model.sync_tag) if model.sync_tag else None,
            member_answers=[
                MemberAnswer(question=a.get("question", ""), answer=a.get("answer", ""))
                for a in model.member_answers or []
            ],
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
