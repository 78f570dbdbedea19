"""Domain-Oriented Observability for Groups infrastructure."""

from groups.infrastructure.observability.gateway_probe import (
    DefaultDirectoryGatewayProbe,
    DefaultIdentityResolverProbe,
    DefaultNotificationsProbe,
    DirectoryGatewayProbe,
    IdentityResolverProbe,
    NotificationsProbe,
)
from groups.infrastructure.observability.repository_probe import (
    DefaultGroupRepositoryProbe,
    DefaultMembershipRepositoryProbe,
    GroupRepositoryProbe,
    MembershipRepositoryProbe,
)
from groups.infrastructure.observability.scheduler_probe import (
    DefaultSyncSchedulerProbe,
    SyncSchedulerProbe,
)

__all__ = [
    "DefaultDirectoryGatewayProbe",
    "DefaultGroupRepositoryProbe",
    "DefaultIdentityResolverProbe",
    "DefaultMembershipRepositoryProbe",
    "DefaultNotificationsProbe",
    "DefaultSyncSchedulerProbe",
    "DirectoryGatewayProbe",
    "GroupRepositoryProbe",
    "IdentityResolverProbe",
    "MembershipRepositoryProbe",
    "NotificationsProbe",
    "SyncSchedulerProbe",
]
