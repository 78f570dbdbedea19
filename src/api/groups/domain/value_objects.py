"""Value objects for the Groups domain.

Value objects are immutable descriptors that provide type safety and
domain semantics for identifiers and domain concepts.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from uuid import uuid4

from ulid import ULID


@dataclass(frozen=True)
class TenantId:
    """Identifier for the tenant (client organization) owning groups.

    Tenants are provisioned outside this service, so the value is kept
    opaque and only checked for emptiness.
    """

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("TenantId cannot be empty")

    def __str__(self) -> str:
        """Return string representation."""
        return self.value


@dataclass(frozen=True)
class GroupId:
    """Identifier for a Group aggregate.

    Uses ULID for sortability and distribution-friendly generation.
    """

    value: str

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def generate(cls) -> GroupId:
        """Generate a new GroupId using ULID."""
        return cls(value=str(ULID()))

    @classmethod
    def from_string(cls, value: str) -> GroupId:
        """Create GroupId from string value.

        Args:
            value: ULID string

        Returns:
            GroupId instance

        Raises:
            ValueError: If value is not a valid ULID
        """
        try:
            ULID.from_str(value)
        except ValueError as e:
            raise ValueError(f"Invalid GroupId: {value}") from e

        return cls(value=value)


@dataclass(frozen=True)
class MembershipId:
    """Identifier for a GroupMembership."""

    value: str

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def generate(cls) -> MembershipId:
        """Generate a new MembershipId using ULID."""
        return cls(value=str(ULID()))


@dataclass(frozen=True)
class SyncTag:
    """Opaque marker stamped on every membership touched by one sync pass.

    Rows still carrying an older tag once a pass has submitted all of its
    batches are no longer in the directory's authoritative member list.
    """

    value: str

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def generate(cls) -> SyncTag:
        """Generate a fresh tag for a new pass."""
        return cls(value=str(uuid4()))


class MembershipStatus(StrEnum):
    """Lifecycle status of a group membership."""

    ADMIN = "admin"
    MEMBER = "member"
    PENDING = "pending"
    REJECTED = "rejected"


class GroupPrivacy(StrEnum):
    """Visibility of a group to non-members."""

    PUBLIC = "public"
    PRIVATE = "private"


@dataclass(frozen=True)
class MemberAnswer:
    """A member's answer to one of the group's membership questions."""

    question: str
    answer: str = ""


@dataclass(frozen=True)
class GroupStats:
    """Snapshot of membership counts for a group.

    total_count covers admins and members only; pending and rejected
    requests are counted separately.
    """

    total_count: int = 0
    admins_count: int = 0
    member_count: int = 0
    pending_count: int = 0
    rejected_count: int = 0

    @classmethod
    def from_status_counts(cls, counts: dict[MembershipStatus, int]) -> GroupStats:
        """Build a snapshot from per-status row counts.

        Args:
            counts: Number of memberships keyed by status

        Returns:
            GroupStats with derived total
        """
        admins = counts.get(MembershipStatus.ADMIN, 0)
        members = counts.get(MembershipStatus.MEMBER, 0)
        return cls(
            total_count=admins + members,
            admins_count=admins,
            member_count=members,
            pending_count=counts.get(MembershipStatus.PENDING, 0),
            rejected_count=counts.get(MembershipStatus.REJECTED, 0),
        )

    def as_dict(self) -> dict[str, int]:
        """Return the snapshot as a JSON-compatible dictionary."""
        return {
            "total_count": self.total_count,
            "admins_count": self.admins_count,
            "member_count": self.member_count,
            "pending_count": self.pending_count,
            "rejected_count": self.rejected_count,
        }
