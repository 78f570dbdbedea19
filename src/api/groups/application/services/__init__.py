"""Application services for the Groups bounded context."""

from groups.application.services.authman_sync_service import AuthmanSyncService
from groups.application.services.membership_reconciler import (
    MEMBERSHIP_BATCH_SIZE,
    MembershipReconciler,
)
from groups.application.services.sync_guard import SyncTimesGuard

__all__ = [
    "AuthmanSyncService",
    "MEMBERSHIP_BATCH_SIZE",
    "MembershipReconciler",
    "SyncTimesGuard",
]
