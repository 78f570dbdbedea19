"""In-memory collaborators for exercising the directory sync engine."""

from __future__ import annotations

from collections import Counter
from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from groups.application.services import (
    AuthmanSyncService,
    MembershipReconciler,
    SyncTimesGuard,
)
from groups.domain.aggregates import Group, GroupMembership
from groups.domain.directory import DirectoryGroup
from groups.domain.sync import ManagedGroupConfig, SyncConfig, SyncTimes
from groups.domain.value_objects import (
    GroupId,
    GroupStats,
    MembershipId,
    MembershipStatus,
    SyncTag,
    TenantId,
)
from groups.ports.exceptions import (
    DirectoryError,
    GroupNotFoundError,
    IdentityResolutionError,
)
from groups.ports.models import MembershipUpsert, ResolvedIdentity

TENANT = TenantId(value="illinois")


class FakeTransaction:
    def __init__(self, session: FakeSession) -> None:
        self._session = session

    async def __aenter__(self) -> FakeTransaction:
        self._session.begin_count += 1
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self._session.commit_count += 1
        return False


class FakeSession:
    """Stands in for AsyncSession; counts transactions."""

    def __init__(self) -> None:
        self.begin_count = 0
        self.commit_count = 0

    def begin(self) -> FakeTransaction:
        return FakeTransaction(self)


class InMemoryMembershipRepository:
    """Membership store keyed by membership id, like the table."""

    def __init__(self) -> None:
        self.rows: dict[str, GroupMembership] = {}
        self.upsert_calls: list[list[MembershipUpsert]] = []
        self.fail_on_calls: set[int] = set()

    def add(self, membership: GroupMembership) -> None:
        self.rows[membership.id.value] = membership

    def in_group(self, group_id: GroupId) -> list[GroupMembership]:
        return [m for m in self.rows.values() if m.group_id == group_id]

    def for_group(self, group_id: GroupId) -> dict[str, GroupMembership]:
        return {m.external_id: m for m in self.in_group(group_id)}

    def _by_external_id(self, group_id: GroupId, external_id: str) -> GroupMembership | None:
        for m in self.in_group(group_id):
            if external_id and m.external_id == external_id:
                return m
        return None

    async def find_memberships(
        self, tenant_id, group_ids=None, statuses=None, external_ids=None
    ) -> list[GroupMembership]:
        found = []
        for m in self.rows.values():
            if m.tenant_id != tenant_id:
                continue
            if group_ids is not None and m.group_id not in group_ids:
                continue
            if statuses is not None and m.status not in statuses:
                continue
            if external_ids is not None and m.external_id not in external_ids:
                continue
            found.append(m)
        return found

    async def save_all(self, memberships: list[GroupMembership]) -> None:
        for membership in memberships:
            self.add(membership)

    async def bulk_upsert_by_external_id(self, tenant_id, group_id, operations) -> None:
        call_index = len(self.upsert_calls)
        self.upsert_calls.append(list(operations))
        if call_index in self.fail_on_calls:
            raise RuntimeError(f"batch {call_index} rejected")

        for op in operations:
            existing = self._by_external_id(group_id, op.external_id)
            if existing is None:
                self.add(
                    GroupMembership(
                        id=MembershipId.generate(),
                        tenant_id=tenant_id,
                        group_id=group_id,
                        status=op.status,
                        external_id=op.external_id,
                        user_id=op.user_id,
                        name=op.name,
                        email=op.email,
                        sync_tag=op.sync_tag,
                        member_answers=list(op.member_answers),
                    )
                )
                continue
            existing.status = op.status
            existing.sync_tag = op.sync_tag
            existing.user_id = op.user_id or existing.user_id
            existing.name = op.name or existing.name
            existing.email = op.email or existing.email

    async def delete_unsynced(self, tenant_id, group_id, current_tag: SyncTag) -> int:
        stale = [
            m.id.value
            for m in self.in_group(group_id)
            if m.status != MembershipStatus.ADMIN and m.sync_tag != current_tag
        ]
        for key in stale:
            del self.rows[key]
        return len(stale)


class InMemoryGroupRepository:
    def __init__(self, memberships: InMemoryMembershipRepository) -> None:
        self.groups: dict[str, Group] = {}
        self.locked: list[GroupId] = []
        self._memberships = memberships

    def add(self, group: Group) -> Group:
        self.groups[group.id.value] = group
        return group

    async def get_by_id(self, group_id, tenant_id) -> Group | None:
        group = self.groups.get(group_id.value)
        if group is None or group.tenant_id != tenant_id:
            return None
        return group

    async def get_for_sync(self, group_id, tenant_id) -> Group | None:
        self.locked.append(group_id)
        return await self.get_by_id(group_id, tenant_id)

    async def get_by_authman_key(self, authman_group, tenant_id) -> Group | None:
        for group in self.groups.values():
            if group.tenant_id == tenant_id and group.authman_group == authman_group:
                return group
        return None

    async def list_authman_enabled(self, tenant_id) -> list[Group]:
        return [
            g
            for g in self.groups.values()
            if g.tenant_id == tenant_id and g.authman_enabled
        ]

    async def save(self, group: Group) -> None:
        self.groups[group.id.value] = group

    async def update_sync_window(self, group_id, tenant_id, start_time, end_time):
        group = await self.get_by_id(group_id, tenant_id)
        if group is None:
            raise GroupNotFoundError(f"Group {group_id} not found")
        group.sync_start_time = start_time
        group.sync_end_time = end_time

    async def recompute_stats(self, group_id, tenant_id) -> GroupStats:
        counts = Counter(m.status for m in self._memberships.in_group(group_id))
        stats = GroupStats.from_status_counts(dict(counts))
        self.groups[group_id.value].stats = stats
        return stats


class InMemorySyncTimesRepository:
    def __init__(self) -> None:
        self.rows: dict[tuple[str, str], SyncTimes] = {}
        self.fail_on_save = False

    async def find(self, tenant_id, key) -> SyncTimes | None:
        return self.rows.get((tenant_id.value, key))

    async def save(self, times: SyncTimes) -> None:
        if self.fail_on_save:
            raise RuntimeError("ledger unavailable")
        self.rows[(times.tenant_id.value, times.key)] = times


class InMemorySyncConfigRepository:
    def __init__(self) -> None:
        self.configs: dict[str, SyncConfig] = {}

    async def get(self, tenant_id) -> SyncConfig | None:
        return self.configs.get(tenant_id.value)

    async def list_all(self) -> list[SyncConfig]:
        return list(self.configs.values())


class InMemoryManagedGroupConfigRepository:
    def __init__(self) -> None:
        self.configs: list[ManagedGroupConfig] = []
        self.error: Exception | None = None

    async def list_by_tenant(self, tenant_id) -> list[ManagedGroupConfig]:
        if self.error is not None:
            raise self.error
        return [c for c in self.configs if c.tenant_id == tenant_id]


class FakeDirectory:
    """Directory whose stems and rosters are set by the test."""

    def __init__(self) -> None:
        self.stems: dict[str, list[DirectoryGroup]] = {}
        self.members: dict[str, list[str]] = {}
        self.failing_stems: set[str] = set()
        self.failing_groups: set[str] = set()

    async def list_stem_groups(self, stem: str) -> list[DirectoryGroup]:
        if stem in self.failing_stems:
            raise DirectoryError(f"stem {stem} unavailable")
        return list(self.stems.get(stem, []))

    async def list_group_members(self, external_key: str) -> list[str]:
        if external_key in self.failing_groups:
            raise DirectoryError(f"members of {external_key} unavailable")
        return list(self.members.get(external_key, []))


class FakeIdentityResolver:
    """Resolver knowing a fixed set of accounts."""

    def __init__(self) -> None:
        self.known: dict[str, ResolvedIdentity] = {}
        self.calls: list[list[str]] = []
        self.fail = False

    def register(self, *external_ids: str) -> None:
        for external_id in external_ids:
            self.known[external_id] = ResolvedIdentity(
                external_id=external_id,
                user_id=f"user-{external_id}",
                name=f"Name {external_id}",
                email=f"{external_id}@example.edu",
            )

    async def resolve_by_external_ids(self, external_ids) -> list[ResolvedIdentity]:
        self.calls.append(list(external_ids))
        if self.fail:
            raise IdentityResolutionError("core unavailable")
        return [self.known[i] for i in external_ids if i in self.known]


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class SyncHarness:
    """Sync engine wired to in-memory collaborators."""

    def __init__(self, batch_size: int = 1000) -> None:
        self.session = FakeSession()
        self.memberships = InMemoryMembershipRepository()
        self.groups = InMemoryGroupRepository(self.memberships)
        self.sync_times = InMemorySyncTimesRepository()
        self.sync_configs = InMemorySyncConfigRepository()
        self.managed_configs = InMemoryManagedGroupConfigRepository()
        self.directory = FakeDirectory()
        self.resolver = FakeIdentityResolver()
        self.probe = MagicMock()
        self.clock = FakeClock(datetime(2026, 3, 2, 12, 0, tzinfo=UTC))
        self.tenant_admins: list[str] = []

        self.guard = SyncTimesGuard(
            session=self.session,
            group_repository=self.groups,
            sync_times_repository=self.sync_times,
            sync_config_repository=self.sync_configs,
            default_timeout_minutes=60,
            probe=self.probe,
        )
        self.reconciler = MembershipReconciler(
            session=self.session,
            membership_repository=self.memberships,
            group_repository=self.groups,
            identity_resolver=self.resolver,
            batch_size=batch_size,
            probe=self.probe,
        )

    @property
    def service(self) -> AuthmanSyncService:
        return AuthmanSyncService(
            session=self.session,
            group_repository=self.groups,
            membership_repository=self.memberships,
            managed_config_repository=self.managed_configs,
            directory=self.directory,
            guard=self.guard,
            reconciler=self.reconciler,
            tenant_admin_external_ids=self.tenant_admins,
            probe=self.probe,
            clock=self.clock,
        )

    def mirrored_group(self, authman_group: str, title: str = "Chemistry 101") -> Group:
        return self.groups.add(
            Group(
                id=GroupId.generate(),
                tenant_id=TENANT,
                title=title,
                category="Academic",
                authman_enabled=True,
                authman_group=authman_group,
            )
        )

    def membership(
        self,
        group: Group,
        external_id: str,
        status: MembershipStatus = MembershipStatus.MEMBER,
        user_id: str | None = None,
    ) -> GroupMembership:
        membership = GroupMembership.create(
            group=group, external_id=external_id, status=status, user_id=user_id
        )
        self.memberships.add(membership)
        return membership

    def statuses(self, group: Group) -> dict[str, MembershipStatus]:
        return {
            external_id: m.status
            for external_id, m in self.memberships.for_group(group.id).items()
        }


@pytest.fixture
def tenant_id() -> TenantId:
    return TENANT


@pytest.fixture
def harness() -> SyncHarness:
    """Sync engine with in-memory stores and a fixed clock."""
    return SyncHarness()


@pytest.fixture
def harness_factory():
    """Build a harness with a custom batch size."""
    return SyncHarness
