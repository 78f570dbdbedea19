"""Notifications building block adapter.

Delivers Groups domain events from the outbox as in-app messages to the
admins of the affected group.
"""

from __future__ import annotations

from typing import Any

import httpx

from groups.domain.events import (
    DirectoryGroupCreated,
    DomainEvent,
    GroupAdminsReconciled,
    GroupMembershipsSynchronized,
)
from groups.infrastructure.observability import (
    DefaultNotificationsProbe,
    NotificationsProbe,
)

ADMIN_TOPIC = "group_admin"
MESSAGE_PRIORITY = 10


class NotificationDeliveryError(Exception):
    """Raised when the Notifications service rejects a message."""

    pass


def build_message(event: DomainEvent, app_id: str) -> dict[str, Any] | None:
    """Build the message body for an event.

    Returns:
        The message, or None when the event notifies nobody
    """
    match event:
        case DirectoryGroupCreated():
            subject = "New group"
            body = f"You are an admin of the new group '{event.title}'."
            operation = "group_created"
        case GroupAdminsReconciled():
            subject = "Group admin"
            body = f"You are now an admin of the group '{event.title}'."
            operation = "admins_reconciled"
        case _:
            return None

    if not event.admin_user_ids:
        return None

    return {
        "org_id": event.tenant_id,
        "app_id": app_id,
        "priority": MESSAGE_PRIORITY,
        "recipients": [
            {"user_id": user_id, "mute": False}
            for user_id in sorted(set(event.admin_user_ids))
        ],
        "topic": ADMIN_TOPIC,
        "subject": subject,
        "body": body,
        "data": {
            "type": "group",
            "operation": operation,
            "entity_type": "group",
            "entity_id": event.group_id,
            "entity_name": event.title,
        },
    }


class NotificationsAdapter:
    """EventDispatcher posting messages to the Notifications service."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        app_id: str = "all",
        timeout_seconds: float = 10.0,
        probe: NotificationsProbe | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._app_id = app_id
        self._timeout = timeout_seconds
        self._probe = probe or DefaultNotificationsProbe()
        self._transport = transport

    def supported_event_types(self) -> frozenset[str]:
        """Return the event type names this dispatcher handles."""
        return frozenset(
            {
                DirectoryGroupCreated.__name__,
                GroupAdminsReconciled.__name__,
                GroupMembershipsSynchronized.__name__,
            }
        )

    async def dispatch(self, event: DomainEvent) -> None:
        """Send the message for an event, if it has recipients.

        Raises:
            NotificationDeliveryError: On transport failure or non-200 status
        """
        event_type = type(event).__name__
        message = build_message(event, self._app_id)
        if message is None:
            self._probe.notification_skipped(event_type, "no recipients")
            return

        try:
            async with httpx.AsyncClient(
                headers=self._headers,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    f"{self._base_url}/api/bbs/message",
                    json={"async": True, "message": message},
                )
        except httpx.HTTPError as e:
            raise NotificationDeliveryError(f"Notification request failed: {e}") from e

        if response.status_code != httpx.codes.OK:
            raise NotificationDeliveryError(
                f"Notifications returned {response.status_code}"
            )

        self._probe.notification_sent(event_type, len(message["recipients"]))
