"""Unit tests for SyncEffectsPublisher."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from groups.domain.events import GroupMembershipsSynchronized
from groups.infrastructure.outbox import SyncEffectsPublisher


def synced_event(group_id: str) -> GroupMembershipsSynchronized:
    return GroupMembershipsSynchronized(
        group_id=group_id,
        tenant_id="illinois",
        sync_tag="tag",
        synced_count=1,
        deleted_count=0,
        failed_batches=0,
        occurred_at=datetime(2026, 3, 2, tzinfo=UTC),
    )


@pytest.fixture
def mock_outbox():
    outbox = MagicMock()
    outbox.append = AsyncMock()
    return outbox


class TestPublish:
    """Tests for SyncEffectsPublisher.publish."""

    @pytest.mark.asyncio
    async def test_appends_each_effect_in_one_transaction(
        self, mock_session, mock_outbox
    ):
        publisher = SyncEffectsPublisher(session=mock_session, outbox=mock_outbox)
        effects = [synced_event("g-1"), synced_event("g-2")]

        count = await publisher.publish(effects)

        assert count == 2
        mock_session.begin.assert_called_once()
        assert mock_outbox.append.await_count == 2
        mock_outbox.append.assert_any_await(
            effects[1], aggregate_type="group", aggregate_id="g-2"
        )

    @pytest.mark.asyncio
    async def test_no_effects_opens_no_transaction(self, mock_session, mock_outbox):
        publisher = SyncEffectsPublisher(session=mock_session, outbox=mock_outbox)

        assert await publisher.publish([]) == 0
        mock_session.begin.assert_not_called()
