"""Domain probes for the outbound HTTP adapters.

Covers the directory gateway, the Core identity resolver and the
notifications adapter.
"""

from __future__ import annotations

import structlog
from typing import Protocol


logger = structlog.get_logger()


class DirectoryGatewayProbe(Protocol):
    """Domain probe for directory requests."""

    def stem_groups_listed(self, stem: str, count: int) -> None:
        """Record the groups returned for a stem."""
        ...

    def group_members_listed(self, external_key: str, count: int, skipped: int) -> None:
        """Record the members returned for a group and how many were filtered."""
        ...

    def directory_request_failed(self, operation: str, target: str, error: str) -> None:
        """Record a failed directory request."""
        ...


class IdentityResolverProbe(Protocol):
    """Domain probe for identity lookups."""

    def identities_resolved(self, requested: int, resolved: int, pages: int) -> None:
        """Record the outcome of a lookup."""
        ...

    def identity_request_failed(self, requested: int, error: str) -> None:
        """Record a failed lookup."""
        ...


class NotificationsProbe(Protocol):
    """Domain probe for notification requests."""

    def notification_sent(self, event_type: str, recipient_count: int) -> None:
        """Record a notification accepted by the Notifications service."""
        ...

    def notification_skipped(self, event_type: str, reason: str) -> None:
        """Record an effect that produced no notification."""
        ...


class DefaultDirectoryGatewayProbe:
    """Default implementation using structlog."""

    def __init__(self) -> None:
        """Initialize the probe with a logger."""
        self._log = logger.bind(component="authman_gateway")

    def stem_groups_listed(self, stem: str, count: int) -> None:
        """Log the groups returned for a stem."""
        self._log.info("authman_stem_groups_listed", stem=stem, count=count)

    def group_members_listed(self, external_key: str, count: int, skipped: int) -> None:
        """Log the members returned for a group."""
        self._log.info(
            "authman_group_members_listed",
            external_key=external_key,
            count=count,
            skipped=skipped,
        )

    def directory_request_failed(self, operation: str, target: str, error: str) -> None:
        """Log a failed directory request."""
        self._log.error(
            "authman_request_failed",
            operation=operation,
            target=target,
            error=error,
        )


class DefaultIdentityResolverProbe:
    """Default implementation using structlog."""

    def __init__(self) -> None:
        """Initialize the probe with a logger."""
        self._log = logger.bind(component="core_identity_resolver")

    def identities_resolved(self, requested: int, resolved: int, pages: int) -> None:
        """Log the outcome of a lookup."""
        self._log.debug(
            "core_identities_resolved",
            requested=requested,
            resolved=resolved,
            pages=pages,
        )

    def identity_request_failed(self, requested: int, error: str) -> None:
        """Log a failed lookup."""
        self._log.error("core_identity_request_failed", requested=requested, error=error)


class DefaultNotificationsProbe:
    """Default implementation using structlog."""

    def __init__(self) -> None:
        """Initialize the probe with a logger."""
        self._log = logger.bind(component="notifications_adapter")

    def notification_sent(self, event_type: str, recipient_count: int) -> None:
        """Log a notification accepted by the Notifications service."""
        self._log.info(
            "notification_sent",
            event_type=event_type,
            recipient_count=recipient_count,
        )

    def notification_skipped(self, event_type: str, reason: str) -> None:
        """Log an effect that produced no notification."""
        self._log.debug("notification_skipped", event_type=event_type, reason=reason)
