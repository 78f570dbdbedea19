"""Unit tests for Groups domain value objects."""

import pytest

from groups.domain.directory import DirectoryGroup
from groups.domain.value_objects import (
    GroupId,
    GroupStats,
    MembershipStatus,
    SyncTag,
    TenantId,
)


class TestTenantId:
    """Tests for TenantId."""

    def test_rejects_empty_value(self):
        with pytest.raises(ValueError):
            TenantId(value="")

    def test_str(self):
        assert str(TenantId(value="illinois")) == "illinois"


class TestGroupId:
    """Tests for GroupId."""

    def test_generate_round_trips_through_from_string(self):
        group_id = GroupId.generate()
        assert GroupId.from_string(group_id.value) == group_id

    def test_from_string_rejects_non_ulid(self):
        with pytest.raises(ValueError, match="Invalid GroupId"):
            GroupId.from_string("not-a-ulid")


class TestSyncTag:
    """Tests for SyncTag."""

    def test_generate_is_unique(self):
        assert SyncTag.generate() != SyncTag.generate()


class TestGroupStats:
    """Tests for GroupStats.from_status_counts."""

    def test_total_counts_admins_and_members_only(self):
        stats = GroupStats.from_status_counts(
            {
                MembershipStatus.ADMIN: 2,
                MembershipStatus.MEMBER: 5,
                MembershipStatus.PENDING: 3,
                MembershipStatus.REJECTED: 1,
            }
        )

        assert stats.total_count == 7
        assert stats.admins_count == 2
        assert stats.member_count == 5
        assert stats.pending_count == 3
        assert stats.rejected_count == 1

    def test_missing_statuses_count_as_zero(self):
        stats = GroupStats.from_status_counts({MembershipStatus.MEMBER: 4})

        assert stats.as_dict() == {
            "total_count": 4,
            "admins_count": 0,
            "member_count": 4,
            "pending_count": 0,
            "rejected_count": 0,
        }


class TestDirectoryGroupTitleAndAdmins:
    """Tests for DirectoryGroup.title_and_admins."""

    def test_pipe_description_carries_title_and_admins(self):
        group = DirectoryGroup(
            external_key="chem:101",
            display_extension="chem101",
            description='"Chemistry 101"|111 | 2 22||',
        )

        title, admins = group.title_and_admins()

        assert title == "Chemistry 101"
        assert admins == ["111", "222"]

    def test_plain_description_is_title(self):
        group = DirectoryGroup(
            external_key="chem:101",
            display_extension="chem101",
            description="General Chemistry",
        )

        assert group.title_and_admins() == ("General Chemistry", [])

    def test_falls_back_to_display_extension(self):
        group = DirectoryGroup(external_key="chem:101", display_extension="chem101")

        assert group.title_and_admins() == ("chem101", [])
