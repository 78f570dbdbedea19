"""Application-level value objects for directory synchronization."""

from __future__ import annotations

from dataclasses import dataclass, field

from groups.domain.events import DomainEvent
from groups.domain.value_objects import GroupStats, MembershipStatus, SyncTag


@dataclass(frozen=True)
class SyncTarget:
    """An external id to write during a pass, with the status it must carry."""

    external_id: str
    status: MembershipStatus


@dataclass(frozen=True)
class BatchOutcome:
    """Result of submitting one reconciliation batch.

    Attributes:
        index: Zero-based position of the batch in the pass
        requested: Number of external ids in the batch
        resolved: Number of ids matched to a local account
        error: Store error message, None if the batch was saved
    """

    index: int
    requested: int
    resolved: int
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ReconcileOutcome:
    """Result of reconciling one group's roster."""

    sync_tag: SyncTag
    batches: tuple[BatchOutcome, ...]
    deleted_count: int
    stats: GroupStats
    cleanup_skipped: bool = False

    @property
    def synced_count(self) -> int:
        return sum(b.requested for b in self.batches if b.succeeded)

    @property
    def failed_batches(self) -> int:
        return sum(1 for b in self.batches if not b.succeeded)


@dataclass
class GroupSyncReport:
    """Summary of a per-group pass returned to the trigger.

    ``effects`` holds the domain events to append to the outbox once the
    caller is done with the pass.
    """

    tenant_id: str
    group_id: str
    authman_group: str
    sync_tag: str
    batch_count: int
    failed_batches: int
    synced_count: int
    deleted_count: int
    stats: GroupStats
    effects: list[DomainEvent] = field(default_factory=list)


@dataclass
class SyncReport:
    """Summary of a tenant-wide pass returned to the trigger."""

    tenant_id: str
    created_group_ids: list[str] = field(default_factory=list)
    updated_group_ids: list[str] = field(default_factory=list)
    failed_stems: list[str] = field(default_factory=list)
    failed_stem_groups: list[str] = field(default_factory=list)
    group_reports: list[GroupSyncReport] = field(default_factory=list)
    failed_groups: dict[str, str] = field(default_factory=dict)
    effects: list[DomainEvent] = field(default_factory=list)

    def all_effects(self) -> list[DomainEvent]:
        """Return the pass-level effects followed by every group pass's effects."""
        effects = list(self.effects)
        for group_report in self.group_reports:
            effects.extend(group_report.effects)
        return effects
