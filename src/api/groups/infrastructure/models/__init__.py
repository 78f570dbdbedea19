"""SQLAlchemy ORM models for the Groups bounded context.

These models map to database tables and are used by repository implementations.
"""

from groups.infrastructure.models.group import GroupModel
from groups.infrastructure.models.membership import GroupMembershipModel
from groups.infrastructure.models.sync import (
    ManagedGroupConfigModel,
    SyncConfigModel,
    SyncTimesModel,
)

__all__ = [
    "GroupMembershipModel",
    "GroupModel",
    "ManagedGroupConfigModel",
    "SyncConfigModel",
    "SyncTimesModel",
]
