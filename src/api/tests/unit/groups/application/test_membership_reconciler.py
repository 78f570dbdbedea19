"""Unit tests for MembershipReconciler.

Exercises the reconciliation properties against in-memory stores: the
roster converges on the directory list, admins are never dropped and a
failed batch leaves stale rows in place for the next pass.
"""

import pytest

from groups.application.services.membership_reconciler import (
    build_sync_targets,
    chunked,
)
from groups.application.value_objects import SyncTarget
from groups.domain.value_objects import MembershipStatus

ADMIN = MembershipStatus.ADMIN
MEMBER = MembershipStatus.MEMBER


class TestBuildSyncTargets:
    """Tests for build_sync_targets."""

    def test_directory_ids_first_then_missing_admins(self):
        targets = build_sync_targets(["a", "b", "c"], ["b", "x"])

        assert targets == [
            SyncTarget("a", MEMBER),
            SyncTarget("b", ADMIN),
            SyncTarget("c", MEMBER),
            SyncTarget("x", ADMIN),
        ]

    def test_drops_duplicates_and_empty_ids(self):
        targets = build_sync_targets(["a", "", "a", "b"], [])

        assert [t.external_id for t in targets] == ["a", "b"]


class TestChunked:
    """Tests for chunked."""

    def test_splits_into_batches(self):
        items = [SyncTarget(str(i), MEMBER) for i in range(5)]

        assert [len(batch) for batch in chunked(items, 2)] == [2, 2, 1]

    def test_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            list(chunked([], 0))


class TestReconcile:
    """Tests for MembershipReconciler.reconcile."""

    @pytest.mark.asyncio
    async def test_roster_matches_directory(self, harness):
        group = harness.mirrored_group("chem:101")
        harness.resolver.register("a", "b")

        outcome = await harness.reconciler.reconcile(group, ["a", "b", "c"])

        assert harness.statuses(group) == {"a": MEMBER, "b": MEMBER, "c": MEMBER}
        assert outcome.synced_count == 3
        assert outcome.failed_batches == 0
        assert outcome.stats.member_count == 3

    @pytest.mark.asyncio
    async def test_rerun_is_idempotent(self, harness):
        group = harness.mirrored_group("chem:101")
        harness.membership(group, "admin-1", ADMIN)

        await harness.reconciler.reconcile(group, ["a", "b"])
        first = harness.statuses(group)
        second_outcome = await harness.reconciler.reconcile(group, ["a", "b"])

        assert harness.statuses(group) == first
        assert second_outcome.deleted_count == 0

    @pytest.mark.asyncio
    async def test_removes_stale_members_but_keeps_admins(self, harness):
        group = harness.mirrored_group("chem:101")
        harness.membership(group, "a", MEMBER)
        harness.membership(group, "gone", MEMBER)
        harness.membership(group, "admin-1", ADMIN)

        outcome = await harness.reconciler.reconcile(group, ["a", "new"])

        assert harness.statuses(group) == {
            "a": MEMBER,
            "new": MEMBER,
            "admin-1": ADMIN,
        }
        assert outcome.deleted_count == 1

    @pytest.mark.asyncio
    async def test_keeps_local_admins_without_external_id(self, harness):
        group = harness.mirrored_group("chem:101")
        harness.membership(group, "", ADMIN, user_id="local-admin-1")
        harness.membership(group, "", ADMIN, user_id="local-admin-2")
        harness.membership(group, "gone", MEMBER)

        outcome = await harness.reconciler.reconcile(group, ["a", "b"])

        kept = harness.memberships.in_group(group.id)
        assert sorted(m.user_id for m in kept if m.status == ADMIN) == [
            "local-admin-1",
            "local-admin-2",
        ]
        assert sorted(m.external_id for m in kept if m.status == MEMBER) == ["a", "b"]
        assert outcome.deleted_count == 1
        assert outcome.stats.admins_count == 2

    @pytest.mark.asyncio
    async def test_admin_in_directory_list_stays_admin(self, harness):
        group = harness.mirrored_group("chem:101")
        harness.membership(group, "a", ADMIN)

        await harness.reconciler.reconcile(group, ["a", "b"])

        assert harness.statuses(group)["a"] == ADMIN

    @pytest.mark.asyncio
    async def test_unresolved_ids_are_written_without_account(self, harness):
        group = harness.mirrored_group("chem:101")
        ids = [f"uin-{i}" for i in range(10)]
        harness.resolver.register(*ids[:8])

        outcome = await harness.reconciler.reconcile(group, ids)

        rows = harness.memberships.for_group(group.id)
        assert len(rows) == 10
        assert sum(1 for m in rows.values() if m.user_id) == 8
        assert rows["uin-9"].user_id is None
        assert rows["uin-9"].name == ""
        assert outcome.batches[0].resolved == 8

    @pytest.mark.asyncio
    async def test_unresolved_pass_keeps_linked_account(self, harness):
        group = harness.mirrored_group("chem:101")
        harness.membership(group, "a", MEMBER, user_id="user-a")

        await harness.reconciler.reconcile(group, ["a"])

        assert harness.memberships.for_group(group.id)["a"].user_id == "user-a"

    @pytest.mark.asyncio
    async def test_resolver_failure_still_writes_every_id(self, harness):
        group = harness.mirrored_group("chem:101")
        harness.resolver.fail = True

        outcome = await harness.reconciler.reconcile(group, ["a", "b"])

        assert set(harness.statuses(group)) == {"a", "b"}
        assert outcome.failed_batches == 0
        harness.probe.identity_resolution_failed.assert_called_once()

    @pytest.mark.asyncio
    async def test_large_roster_is_batched(self, harness_factory):
        harness = harness_factory(batch_size=1000)
        group = harness.mirrored_group("big:lecture")
        ids = [str(i) for i in range(2500)]

        outcome = await harness.reconciler.reconcile(group, ids)

        assert [b.requested for b in outcome.batches] == [1000, 1000, 500]
        assert [len(call) for call in harness.memberships.upsert_calls] == [
            1000,
            1000,
            500,
        ]
        assert [len(call) for call in harness.resolver.calls] == [1000, 1000, 500]
        assert outcome.synced_count == 2500

    @pytest.mark.asyncio
    async def test_failed_batch_skips_stale_cleanup(self, harness_factory):
        harness = harness_factory(batch_size=2)
        group = harness.mirrored_group("chem:101")
        harness.membership(group, "stale", MEMBER)
        harness.memberships.fail_on_calls = {1}

        outcome = await harness.reconciler.reconcile(group, ["a", "b", "c", "d", "e"])

        assert outcome.failed_batches == 1
        assert outcome.cleanup_skipped is True
        assert outcome.deleted_count == 0
        assert outcome.synced_count == 3
        statuses = harness.statuses(group)
        assert "stale" in statuses
        assert {"a", "b", "e"} <= set(statuses)
        assert not {"c", "d"} & set(statuses)
        harness.probe.stale_cleanup_skipped.assert_called_once_with(
            group.tenant_id.value, group.id.value, 1
        )

    @pytest.mark.asyncio
    async def test_every_batch_uses_one_tag(self, harness_factory):
        harness = harness_factory(batch_size=1)
        group = harness.mirrored_group("chem:101")

        outcome = await harness.reconciler.reconcile(group, ["a", "b", "c"])

        tags = {op.sync_tag for call in harness.memberships.upsert_calls for op in call}
        assert tags == {outcome.sync_tag}

    @pytest.mark.asyncio
    async def test_empty_directory_list_keeps_only_admins(self, harness):
        group = harness.mirrored_group("chem:101")
        harness.membership(group, "a", MEMBER)
        harness.membership(group, "admin-1", ADMIN)

        outcome = await harness.reconciler.reconcile(group, [])

        assert harness.statuses(group) == {"admin-1": ADMIN}
        assert outcome.stats.total_count == 1
