"""Unit tests for OutboxWorker.

These tests use mocked dependencies to test the worker logic
without requiring a real database or downstream service.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from infrastructure.outbox.worker import OutboxWorker
from shared_kernel.outbox.value_objects import OutboxEntry


def make_entry(event_type: str = "DirectoryGroupCreated", retry_count: int = 0):
    return OutboxEntry(
        id=uuid4(),
        aggregate_type="group",
        aggregate_id="01ARZCX0P0HZGQP3MZXQQ0NNZZ",
        event_type=event_type,
        payload={"group_id": "01ARZCX0P0HZGQP3MZXQQ0NNZZ"},
        occurred_at=datetime(2026, 1, 8, 12, 0, 0, tzinfo=UTC),
        processed_at=None,
        created_at=datetime(2026, 1, 8, 12, 0, 1, tzinfo=UTC),
        retry_count=retry_count,
    )


@pytest.fixture
def mock_repository():
    repository = MagicMock()
    repository.fetch_unprocessed = AsyncMock(return_value=[])
    repository.mark_processed = AsyncMock()
    repository.record_failure = AsyncMock()
    return repository


@pytest.fixture
def mock_dispatcher():
    dispatcher = MagicMock()
    dispatcher.supported_event_types.return_value = frozenset(
        {"DirectoryGroupCreated"}
    )
    dispatcher.dispatch = AsyncMock()
    return dispatcher


@pytest.fixture
def mock_serializer():
    serializer = MagicMock()
    serializer.deserialize.return_value = MagicMock(name="event")
    return serializer


@pytest.fixture
def mock_probe():
    return MagicMock()


@pytest.fixture
def worker(
    mock_session_factory, mock_serializer, mock_dispatcher, mock_probe, mock_repository
):
    return OutboxWorker(
        session_factory=mock_session_factory,
        serializer=mock_serializer,
        dispatcher=mock_dispatcher,
        probe=mock_probe,
        batch_size=10,
        max_retries=3,
        repository_factory=lambda session: mock_repository,
    )


class TestOutboxWorkerInit:
    """Tests for worker construction."""

    def test_registers_dispatcher(self, worker, mock_probe):
        mock_probe.dispatcher_registered.assert_called_once_with(
            "groups", frozenset({"DirectoryGroupCreated"})
        )


class TestProcessPending:
    """Tests for OutboxWorker.process_pending."""

    @pytest.mark.asyncio
    async def test_delivers_and_marks_processed(
        self, worker, mock_repository, mock_serializer, mock_dispatcher, mock_probe
    ):
        entry = make_entry()
        mock_repository.fetch_unprocessed.return_value = [entry]

        handled = await worker.process_pending()

        assert handled == 1
        mock_repository.fetch_unprocessed.assert_awaited_once_with(10)
        mock_serializer.deserialize.assert_called_once_with(
            "DirectoryGroupCreated", entry.payload
        )
        mock_dispatcher.dispatch.assert_awaited_once_with(
            mock_serializer.deserialize.return_value
        )
        mock_repository.mark_processed.assert_awaited_once_with(entry.id)
        mock_probe.event_dispatched.assert_called_once_with(
            entry.id, "DirectoryGroupCreated"
        )

    @pytest.mark.asyncio
    async def test_unsupported_event_is_skipped(
        self, worker, mock_repository, mock_dispatcher, mock_probe
    ):
        entry = make_entry(event_type="GroupMembershipsSynchronized")
        mock_repository.fetch_unprocessed.return_value = [entry]

        await worker.process_pending()

        mock_dispatcher.dispatch.assert_not_awaited()
        mock_repository.mark_processed.assert_awaited_once_with(entry.id)
        mock_probe.event_skipped.assert_called_once()

    @pytest.mark.asyncio
    async def test_failure_is_retried(
        self, worker, mock_repository, mock_dispatcher, mock_probe
    ):
        entry = make_entry(retry_count=0)
        mock_repository.fetch_unprocessed.return_value = [entry]
        mock_dispatcher.dispatch.side_effect = RuntimeError("503")

        await worker.process_pending()

        mock_repository.record_failure.assert_awaited_once_with(
            entry.id, 1, "503", False
        )
        mock_repository.mark_processed.assert_not_awaited()
        mock_probe.event_dispatch_failed.assert_called_once_with(entry.id, "503", 1)

    @pytest.mark.asyncio
    async def test_exhausted_retries_go_to_dlq(
        self, worker, mock_repository, mock_dispatcher, mock_probe
    ):
        entry = make_entry(retry_count=2)
        mock_repository.fetch_unprocessed.return_value = [entry]
        mock_dispatcher.dispatch.side_effect = RuntimeError("503")

        await worker.process_pending()

        mock_repository.record_failure.assert_awaited_once_with(
            entry.id, 3, "503", True
        )
        mock_probe.event_moved_to_dlq.assert_called_once()

    @pytest.mark.asyncio
    async def test_empty_batch(self, worker, mock_probe):
        assert await worker.process_pending() == 0
        mock_probe.batch_processed.assert_called_once_with(0)


class TestLifecycle:
    """Tests for start/stop."""

    @pytest.mark.asyncio
    async def test_start_then_stop(self, worker, mock_probe):
        await worker.start()
        await worker.stop()

        mock_probe.worker_started.assert_called_once_with(30)
        mock_probe.worker_stopped.assert_called_once()


class TestOutboxEntry:
    """Tests for OutboxEntry retry bookkeeping."""

    def test_next_retry_count(self):
        assert make_entry(retry_count=0).next_retry_count(3) == (1, False)
        assert make_entry(retry_count=2).next_retry_count(3) == (3, True)

    def test_is_pending(self):
        assert make_entry().is_pending
