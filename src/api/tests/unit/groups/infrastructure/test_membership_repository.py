"""Unit tests for MembershipRepository."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from groups.domain.value_objects import (
    GroupId,
    MemberAnswer,
    MembershipStatus,
    SyncTag,
    TenantId,
)
from groups.infrastructure.membership_repository import (
    EXTERNAL_ID_CONSTRAINT,
    MembershipRepository,
)
from groups.infrastructure.models import GroupMembershipModel
from groups.ports.models import MembershipUpsert
from groups.ports.repositories import IMembershipRepository

TENANT = TenantId(value="illinois")


@pytest.fixture
def mock_probe():
    return MagicMock()


@pytest.fixture
def repository(mock_session, mock_probe):
    return MembershipRepository(session=mock_session, probe=mock_probe)


class TestProtocolCompliance:
    """Tests for protocol compliance."""

    def test_implements_protocol(self, repository):
        assert isinstance(repository, IMembershipRepository)


class TestBulkUpsert:
    """Tests for bulk_upsert_by_external_id."""

    @pytest.mark.asyncio
    async def test_issues_single_upsert_on_external_id(
        self, repository, mock_session, mock_probe
    ):
        group_id = GroupId.generate()
        tag = SyncTag.generate()
        operations = [
            MembershipUpsert(
                external_id="111",
                status=MembershipStatus.MEMBER,
                sync_tag=tag,
                user_id="u-1",
                name="Ada",
                email="ada@x.edu",
                member_answers=[MemberAnswer(question="Why?")],
            ),
            MembershipUpsert(
                external_id="222", status=MembershipStatus.ADMIN, sync_tag=tag
            ),
        ]

        await repository.bulk_upsert_by_external_id(TENANT, group_id, operations)

        mock_session.execute.assert_awaited_once()
        stmt = mock_session.execute.call_args[0][0]
        sql = str(stmt.compile(dialect=postgresql.dialect()))
        assert f"ON CONFLICT ON CONSTRAINT {EXTERNAL_ID_CONSTRAINT}" in sql
        assert "coalesce(excluded.user_id" in sql
        assert "member_answers" not in sql.split("DO UPDATE SET")[1]
        mock_probe.memberships_upserted.assert_called_once_with(group_id.value, 2)

    @pytest.mark.asyncio
    async def test_empty_batch_is_noop(self, repository, mock_session):
        await repository.bulk_upsert_by_external_id(TENANT, GroupId.generate(), [])

        mock_session.execute.assert_not_awaited()


class TestDeleteUnsynced:
    """Tests for delete_unsynced."""

    @pytest.mark.asyncio
    async def test_returns_deleted_count(self, repository, mock_session, mock_probe):
        result = MagicMock()
        result.rowcount = 4
        mock_session.execute.return_value = result
        group_id = GroupId.generate()

        deleted = await repository.delete_unsynced(TENANT, group_id, SyncTag.generate())

        assert deleted == 4
        stmt = mock_session.execute.call_args[0][0]
        sql = str(stmt.compile(dialect=postgresql.dialect()))
        assert "sync_tag IS NULL" in sql
        mock_probe.unsynced_memberships_deleted.assert_called_once_with(
            group_id.value, 4
        )

    @pytest.mark.asyncio
    async def test_never_deletes_admins(self, repository, mock_session):
        result = MagicMock()
        result.rowcount = 0
        mock_session.execute.return_value = result

        await repository.delete_unsynced(TENANT, GroupId.generate(), SyncTag.generate())

        stmt = mock_session.execute.call_args[0][0]
        compiled = stmt.compile(dialect=postgresql.dialect())
        assert "group_memberships.status !=" in str(compiled)
        assert "admin" in compiled.params.values()


class TestFindMemberships:
    """Tests for find_memberships."""

    @pytest.mark.asyncio
    async def test_maps_rows(self, repository, mock_session):
        model = GroupMembershipModel(
            id="01JNMEMBER0000000000000000",
            tenant_id=TENANT.value,
            group_id="01JNGROUP00000000000000000",
            external_id="111",
            user_id=None,
            name="",
            email="",
            status="admin",
            sync_tag=None,
            member_answers=[{"question": "Why?", "answer": "Chem"}],
        )
        result = MagicMock()
        result.scalars.return_value.all.return_value = [model]
        mock_session.execute.return_value = result

        [membership] = await repository.find_memberships(
            TENANT, statuses=[MembershipStatus.ADMIN]
        )

        assert membership.is_admin
        assert membership.external_id == "111"
        assert membership.sync_tag is None
        assert membership.member_answers == [MemberAnswer(question="Why?", answer="Chem")]


class TestSaveAll:
    """Tests for save_all."""

    @pytest.mark.asyncio
    async def test_empty_list_is_noop(self, repository, mock_session):
        await repository.save_all([])

        mock_session.execute.assert_not_awaited()
