"""Group aggregate for the Groups context."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from groups.domain.events import (
    DirectoryGroupCreated,
    GroupAdminsReconciled,
    GroupMembershipsSynchronized,
)
from groups.domain.value_objects import (
    GroupId,
    GroupPrivacy,
    GroupStats,
    MemberAnswer,
    SyncTag,
    TenantId,
)

if TYPE_CHECKING:
    from groups.domain.events import DomainEvent

# Category assigned to groups mirrored from the directory
DIRECTORY_GROUP_CATEGORY = "Academic"


@dataclass
class Group:
    """Group aggregate representing a tenant-scoped collection of members.

    A group is either managed locally or mirrored from an external directory
    group (``authman_enabled``). Mirrored groups carry the directory key in
    ``authman_group`` and a sync window (``sync_start_time`` /
    ``sync_end_time``) used as the per-group run guard.

    Business rules:
    - A group is eligible for directory sync only when ``authman_enabled``
      is set and ``authman_group`` is non-empty
    - The sync engine never deletes groups

    Event collection:
    - Sync-relevant mutations record domain events
    - Events can be collected via collect_events() for the outbox pattern
    """

    id: GroupId
    tenant_id: TenantId
    title: str
    category: str = ""
    privacy: GroupPrivacy = GroupPrivacy.PUBLIC
    hidden_for_search: bool = False
    can_join_automatically: bool = False
    authman_enabled: bool = False
    authman_group: str | None = None
    sync_start_time: datetime | None = None
    sync_end_time: datetime | None = None
    membership_questions: list[str] = field(default_factory=list)
    stats: GroupStats = field(default_factory=GroupStats)
    _pending_events: list[DomainEvent] = field(default_factory=list, repr=False)

    @classmethod
    def create_for_directory(
        cls,
        tenant_id: TenantId,
        title: str,
        authman_group: str,
        admin_external_ids: list[str] | None = None,
        admin_user_ids: list[str] | None = None,
    ) -> Group:
        """Factory method for a group mirroring a directory stem group.

        The group is private, hidden from search, joinable automatically and
        flagged for directory sync. Records the DirectoryGroupCreated event.

        Args:
            tenant_id: The tenant this group belongs to
            title: Title derived from the directory group
            authman_group: The directory key of the mirrored group
            admin_external_ids: External ids seeded as initial admins
            admin_user_ids: Resolved account ids of those admins

        Returns:
            A new Group aggregate with DirectoryGroupCreated recorded

        Raises:
            ValueError: If the directory key is empty
        """
        if not authman_group:
            raise ValueError("A directory group key is required")

        group = cls(
            id=GroupId.generate(),
            tenant_id=tenant_id,
            title=title,
            category=DIRECTORY_GROUP_CATEGORY,
            privacy=GroupPrivacy.PRIVATE,
            hidden_for_search=True,
            can_join_automatically=True,
            authman_enabled=True,
            authman_group=authman_group,
        )
        group._pending_events.append(
            DirectoryGroupCreated(
                group_id=group.id.value,
                tenant_id=tenant_id.value,
                authman_group=authman_group,
                title=title,
                admin_external_ids=tuple(admin_external_ids or ()),
                occurred_at=datetime.now(UTC),
                admin_user_ids=tuple(admin_user_ids or ()),
            )
        )
        return group

    def is_sync_eligible(self) -> bool:
        """Check whether the group may be synchronized with the directory."""
        return self.authman_enabled and bool(self.authman_group)

    def empty_answers(self) -> list[MemberAnswer]:
        """Build fresh answer placeholders, one per membership question.

        Returns:
            A new list of MemberAnswer with empty answers
        """
        return [MemberAnswer(question=q) for q in self.membership_questions]

    def apply_directory_title(self, title: str) -> bool:
        """Align the title with the directory when it has drifted.

        Args:
            title: Title derived from the directory group

        Returns:
            True if the title changed
        """
        if not title or title == self.title:
            return False
        self.title = title
        return True

    def ensure_category(self) -> bool:
        """Assign the directory category when none is set.

        Returns:
            True if the category changed
        """
        if self.category:
            return False
        self.category = DIRECTORY_GROUP_CATEGORY
        return True

    def begin_sync(self, now: datetime) -> None:
        """Open a new sync window starting at ``now``."""
        self.sync_start_time = now
        self.sync_end_time = None

    def finish_sync(self, now: datetime) -> None:
        """Close the current sync window at ``now``."""
        self.sync_end_time = now

    def record_admins_reconciled(
        self,
        promoted: list[str],
        added: list[str],
        admin_user_ids: list[str] | None = None,
    ) -> None:
        """Record that directory admins were promoted or added.

        Args:
            promoted: External ids of existing members promoted to admin
            added: External ids of admins that had no membership
            admin_user_ids: Resolved account ids of the affected admins
        """
        if not promoted and not added:
            return
        self._pending_events.append(
            GroupAdminsReconciled(
                group_id=self.id.value,
                tenant_id=self.tenant_id.value,
                title=self.title,
                promoted_external_ids=tuple(promoted),
                added_external_ids=tuple(added),
                occurred_at=datetime.now(UTC),
                admin_user_ids=tuple(admin_user_ids or ()),
            )
        )

    def record_memberships_synchronized(
        self,
        tag: SyncTag,
        synced_count: int,
        deleted_count: int,
        failed_batches: int,
    ) -> None:
        """Record that the roster was reconciled with the directory."""
        self._pending_events.append(
            GroupMembershipsSynchronized(
                group_id=self.id.value,
                tenant_id=self.tenant_id.value,
                sync_tag=tag.value,
                synced_count=synced_count,
                deleted_count=deleted_count,
                failed_batches=failed_batches,
                occurred_at=datetime.now(UTC),
            )
        )

    def collect_events(self) -> list[DomainEvent]:
        """Return and clear pending domain events.

        Returns:
            List of pending domain events
        """
        events = self._pending_events.copy()
        self._pending_events.clear()
        return events
