"""Ports (interfaces) for the Groups bounded context.

Ports define the contracts for repositories and external collaborators
without specifying implementation details, keeping the sync engine
independent of PostgreSQL and of the directory and identity services.
"""

from groups.ports.exceptions import (
    AlreadySyncedError,
    DirectoryError,
    GroupNotFoundError,
    GroupNotSyncEligibleError,
    IdentityResolutionError,
    MissingSyncConfigError,
    SyncAlreadyRunningError,
    SyncError,
    SyncSetupError,
)
from groups.ports.gateways import DirectoryGateway, IdentityResolver
from groups.ports.models import MembershipUpsert, ResolvedIdentity
from groups.ports.repositories import (
    IGroupRepository,
    IManagedGroupConfigRepository,
    IMembershipRepository,
    ISyncConfigRepository,
    ISyncTimesRepository,
)

__all__ = [
    "AlreadySyncedError",
    "DirectoryError",
    "DirectoryGateway",
    "GroupNotFoundError",
    "GroupNotSyncEligibleError",
    "IGroupRepository",
    "IManagedGroupConfigRepository",
    "IMembershipRepository",
    "ISyncConfigRepository",
    "ISyncTimesRepository",
    "IdentityResolutionError",
    "IdentityResolver",
    "MembershipUpsert",
    "MissingSyncConfigError",
    "ResolvedIdentity",
    "SyncAlreadyRunningError",
    "SyncError",
    "SyncSetupError",
]
