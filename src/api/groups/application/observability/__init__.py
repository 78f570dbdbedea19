"""Application-level observability probes for the Groups context."""

from groups.application.observability.authman_sync_probe import (
    AuthmanSyncProbe,
    DefaultAuthmanSyncProbe,
)

__all__ = ["AuthmanSyncProbe", "DefaultAuthmanSyncProbe"]
