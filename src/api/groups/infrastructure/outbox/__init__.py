"""Groups-specific outbox infrastructure."""

from groups.infrastructure.outbox.publisher import SyncEffectsPublisher
from groups.infrastructure.outbox.serializer import GroupsEventSerializer

__all__ = ["GroupsEventSerializer", "SyncEffectsPublisher"]
