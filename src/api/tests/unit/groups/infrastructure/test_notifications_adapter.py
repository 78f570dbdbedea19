"""Unit tests for NotificationsAdapter."""

import json
from datetime import UTC, datetime
from unittest.mock import MagicMock

import httpx
import pytest

from groups.domain.events import (
    DirectoryGroupCreated,
    GroupAdminsReconciled,
    GroupMembershipsSynchronized,
)
from groups.infrastructure.notifications_adapter import (
    ADMIN_TOPIC,
    NotificationDeliveryError,
    NotificationsAdapter,
    build_message,
)

OCCURRED_AT = datetime(2026, 3, 2, 12, 0, tzinfo=UTC)


def created_event(admin_user_ids=("u-2", "u-1", "u-2")) -> DirectoryGroupCreated:
    return DirectoryGroupCreated(
        group_id="01JNGROUP000000000000000000",
        tenant_id="illinois",
        authman_group="campus:courses:chem101",
        title="Chemistry 101",
        admin_external_ids=("111", "222"),
        occurred_at=OCCURRED_AT,
        admin_user_ids=admin_user_ids,
    )


class TestBuildMessage:
    """Tests for build_message."""

    def test_group_created_message(self):
        message = build_message(created_event(), app_id="groups-app")

        assert message["org_id"] == "illinois"
        assert message["app_id"] == "groups-app"
        assert message["topic"] == ADMIN_TOPIC
        assert message["recipients"] == [
            {"user_id": "u-1", "mute": False},
            {"user_id": "u-2", "mute": False},
        ]
        assert message["data"]["operation"] == "group_created"
        assert message["data"]["entity_id"] == "01JNGROUP000000000000000000"
        assert "Chemistry 101" in message["body"]

    def test_admins_reconciled_message(self):
        event = GroupAdminsReconciled(
            group_id="g-1",
            tenant_id="illinois",
            title="Physics",
            promoted_external_ids=("1",),
            added_external_ids=(),
            occurred_at=OCCURRED_AT,
            admin_user_ids=("u-1",),
        )

        message = build_message(event, app_id="all")

        assert message["data"]["operation"] == "admins_reconciled"
        assert message["recipients"] == [{"user_id": "u-1", "mute": False}]

    def test_no_recipients_means_no_message(self):
        assert build_message(created_event(admin_user_ids=()), app_id="all") is None

    def test_roster_sync_is_not_notified(self):
        event = GroupMembershipsSynchronized(
            group_id="g-1",
            tenant_id="illinois",
            sync_tag="tag",
            synced_count=1,
            deleted_count=0,
            failed_batches=0,
            occurred_at=OCCURRED_AT,
        )

        assert build_message(event, app_id="all") is None


class TestDispatch:
    """Tests for NotificationsAdapter.dispatch."""

    @pytest.mark.asyncio
    async def test_posts_async_message(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={})

        probe = MagicMock()
        adapter = NotificationsAdapter(
            base_url="https://api.example.edu/notifications/",
            api_key="key",
            probe=probe,
            transport=httpx.MockTransport(handler),
        )

        await adapter.dispatch(created_event())

        [request] = requests
        assert request.url.path == "/notifications/api/bbs/message"
        assert request.headers["authorization"] == "Bearer key"
        body = json.loads(request.content)
        assert body["async"] is True
        assert len(body["message"]["recipients"]) == 2
        probe.notification_sent.assert_called_once_with("DirectoryGroupCreated", 2)

    @pytest.mark.asyncio
    async def test_skips_event_without_recipients(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        probe = MagicMock()
        adapter = NotificationsAdapter(
            base_url="https://api.example.edu",
            probe=probe,
            transport=httpx.MockTransport(handler),
        )

        await adapter.dispatch(created_event(admin_user_ids=()))

        probe.notification_skipped.assert_called_once()

    @pytest.mark.asyncio
    async def test_rejected_message_raises(self):
        adapter = NotificationsAdapter(
            base_url="https://api.example.edu",
            probe=MagicMock(),
            transport=httpx.MockTransport(lambda request: httpx.Response(500)),
        )

        with pytest.raises(NotificationDeliveryError):
            await adapter.dispatch(created_event())

    def test_supported_event_types(self):
        adapter = NotificationsAdapter(base_url="https://api.example.edu")

        assert adapter.supported_event_types() == {
            "DirectoryGroupCreated",
            "GroupAdminsReconciled",
            "GroupMembershipsSynchronized",
        }
