"""GroupMembership entity for the Groups context."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from groups.domain.value_objects import (
    GroupId,
    MemberAnswer,
    MembershipId,
    MembershipStatus,
    SyncTag,
    TenantId,
)

if TYPE_CHECKING:
    from groups.domain.aggregates.group import Group


@dataclass
class GroupMembership:
    """A member's relationship to a group.

    Directory-sourced memberships are keyed by ``external_id`` within their
    group; ``user_id`` stays empty until the external id resolves to a local
    account.

    Raises:
        ValueError: On construction when neither external id nor user id is set
    """

    id: MembershipId
    tenant_id: TenantId
    group_id: GroupId
    status: MembershipStatus
    external_id: str = ""
    user_id: str | None = None
    name: str = ""
    email: str = ""
    sync_tag: SyncTag | None = None
    member_answers: list[MemberAnswer] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.external_id and not self.user_id:
            raise ValueError("A membership needs an external id or a user id")

    @classmethod
    def create(
        cls,
        group: Group,
        external_id: str,
        status: MembershipStatus,
        user_id: str | None = None,
        name: str = "",
        email: str = "",
    ) -> GroupMembership:
        """Factory method for a directory-sourced membership.

        Args:
            group: The group the membership belongs to
            external_id: Directory identifier of the member
            status: Initial status
            user_id: Resolved local account id, if any
            name: Resolved display name
            email: Resolved email

        Returns:
            A new GroupMembership with answer placeholders from the group
        """
        return cls(
            id=MembershipId.generate(),
            tenant_id=group.tenant_id,
            group_id=group.id,
            status=status,
            external_id=external_id,
            user_id=user_id,
            name=name,
            email=email,
            member_answers=group.empty_answers(),
        )

    @property
    def is_admin(self) -> bool:
        return self.status == MembershipStatus.ADMIN

    def promote_to_admin(self) -> bool:
        """Set admin status.

        Returns:
            True if the status changed
        """
        if self.is_admin:
            return False
        self.status = MembershipStatus.ADMIN
        return True
