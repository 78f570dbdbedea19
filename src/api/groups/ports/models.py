"""Data carried across the Groups ports."""

from __future__ import annotations

from dataclasses import dataclass, field

from groups.domain.value_objects import MemberAnswer, MembershipStatus, SyncTag


@dataclass(frozen=True)
class ResolvedIdentity:
    """A local account matched to a directory external id."""

    external_id: str
    user_id: str
    name: str = ""
    email: str = ""


@dataclass(frozen=True)
class MembershipUpsert:
    """One upsert-by-external-id operation of a reconciliation batch.

    Unresolved members carry ``user_id=None`` and empty name/email; the
    store must not overwrite a previously linked account with those.
    ``member_answers`` is only used when the row is inserted.
    """

    external_id: str
    status: MembershipStatus
    sync_tag: SyncTag
    user_id: str | None = None
    name: str = ""
    email: str = ""
    member_answers: list[MemberAnswer] = field(default_factory=list)

    @property
    def is_resolved(self) -> bool:
        return self.user_id is not None
