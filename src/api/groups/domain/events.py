"""Domain events for the Groups bounded context.

Domain events capture facts about things that have happened in the domain.
They are immutable value objects carrying everything a downstream consumer
needs, so the outbox worker can dispatch them without further lookups.

Events produced by a directory sync pass are returned to the caller as
post-commit effects and appended to the outbox by the trigger.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class DirectoryGroupCreated:
    """Event raised when a sync pass creates a local group for a directory group.

    Attributes:
        group_id: The ULID of the created group
        tenant_id: The tenant the group belongs to
        authman_group: The directory key the group mirrors
        title: The group title derived from the directory
        admin_external_ids: External ids seeded as admins
        occurred_at: When the event occurred (UTC)
        admin_user_ids: Local account ids of the seeded admins that resolved
    """

    group_id: str
    tenant_id: str
    authman_group: str
    title: str
    admin_external_ids: tuple[str, ...]
    occurred_at: datetime
    admin_user_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class GroupAdminsReconciled:
    """Event raised when a sync pass promotes or adds admins on an existing group.

    Attributes:
        group_id: The ULID of the group
        tenant_id: The tenant the group belongs to
        title: The current group title
        promoted_external_ids: Existing members promoted to admin
        added_external_ids: Admins that had no membership before
        occurred_at: When the event occurred (UTC)
        admin_user_ids: Local account ids of the affected admins that resolved
    """

    group_id: str
    tenant_id: str
    title: str
    promoted_external_ids: tuple[str, ...]
    added_external_ids: tuple[str, ...]
    occurred_at: datetime
    admin_user_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class GroupMembershipsSynchronized:
    """Event raised when a group's roster has been reconciled with the directory.

    Attributes:
        group_id: The ULID of the group
        tenant_id: The tenant the group belongs to
        sync_tag: Tag stamped on every membership touched by the pass
        synced_count: Number of memberships submitted for upsert
        deleted_count: Number of stale memberships removed
        failed_batches: Number of batches the store rejected
        occurred_at: When the event occurred (UTC)
    """

    group_id: str
    tenant_id: str
    sync_tag: str
    synced_count: int
    deleted_count: int
    failed_batches: int
    occurred_at: datetime


# Type alias for all domain events in the Groups context
DomainEvent = DirectoryGroupCreated | GroupAdminsReconciled | GroupMembershipsSynchronized

__all__ = [
    "DirectoryGroupCreated",
    "GroupAdminsReconciled",
    "GroupMembershipsSynchronized",
    "DomainEvent",
]
