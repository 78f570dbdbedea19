"""Protocols for the external collaborators of the sync engine.

Both are pure I/O boundaries: the directory is authoritative for group
rosters, the identity service maps directory ids to local accounts.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from groups.domain.directory import DirectoryGroup
from groups.ports.models import ResolvedIdentity


@runtime_checkable
class DirectoryGateway(Protocol):
    """Read access to the external group directory."""

    async def list_stem_groups(self, stem: str) -> list[DirectoryGroup]:
        """List the groups defined under a stem.

        Raises:
            DirectoryError: If the directory cannot be queried
        """
        ...

    async def list_group_members(self, external_key: str) -> list[str]:
        """List the member external ids of a directory group.

        Raises:
            DirectoryError: If the directory cannot be queried
        """
        ...


@runtime_checkable
class IdentityResolver(Protocol):
    """Batch lookup of local accounts by external id."""

    async def resolve_by_external_ids(
        self, external_ids: list[str]
    ) -> list[ResolvedIdentity]:
        """Resolve external ids to local identities.

        Unknown ids are absent from the result rather than reported as errors.

        Raises:
            IdentityResolutionError: If the identity service fails
        """
        ...
