"""Outbox worker delivering domain events to downstream services.

The worker runs as a background task within the FastAPI application and
polls the outbox table for pending entries.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from infrastructure.outbox.repository import OutboxRepository
from shared_kernel.outbox.observability import DefaultOutboxWorkerProbe
from shared_kernel.outbox.ports import (
    EventDispatcher,
    EventSerializer,
    IOutboxRepository,
)
from shared_kernel.outbox.value_objects import OutboxEntry

if TYPE_CHECKING:
    from shared_kernel.outbox.observability import OutboxWorkerProbe


class OutboxWorker:
    """Background worker that delivers outbox entries.

    Each poll locks a batch of pending entries, deserializes them and hands
    them to the dispatcher one at a time. A failed delivery is retried on
    later polls until ``max_retries`` attempts have failed, then the entry
    is moved to the dead letter queue.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        serializer: EventSerializer,
        dispatcher: EventDispatcher,
        probe: OutboxWorkerProbe | None = None,
        context_name: str = "groups",
        poll_interval_seconds: int = 30,
        batch_size: int = 100,
        max_retries: int = 5,
        repository_factory: Callable[[AsyncSession], IOutboxRepository] | None = None,
    ) -> None:
        """Initialize the worker.

        Args:
            session_factory: Factory for creating database sessions
            serializer: Serializer reconstructing events from payloads
            dispatcher: Delivers events downstream
            probe: Optional observability probe
            context_name: Bounded context owning the dispatcher, for logs
            poll_interval_seconds: Seconds between polls
            batch_size: Maximum entries per poll
            max_retries: Failed attempts before an entry is dead-lettered
            repository_factory: Builds the outbox repository for a session
        """
        self._session_factory = session_factory
        self._serializer = serializer
        self._dispatcher = dispatcher
        self._probe = probe or DefaultOutboxWorkerProbe()
        self._poll_interval = poll_interval_seconds
        self._batch_size = batch_size
        self._max_retries = max_retries
        self._repository_factory = repository_factory or (
            lambda session: OutboxRepository(session, serializer)
        )
        self._running = False
        self._task: asyncio.Task | None = None

        self._probe.dispatcher_registered(
            context_name, dispatcher.supported_event_types()
        )

    async def start(self) -> None:
        """Start the poll loop in a background task."""
        self._running = True
        self._probe.worker_started(self._poll_interval)
        self._task = asyncio.create_task(self._poll_loop())

    async def stop(self) -> None:
        """Stop the poll loop and wait for it to finish."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self._probe.worker_stopped()

    async def process_pending(self) -> int:
        """Deliver one batch of pending entries.

        Returns:
            Number of entries handled, whether delivered or failed
        """
        async with self._session_factory() as session:
            async with session.begin():
                repository = self._repository_factory(session)
                entries = await repository.fetch_unprocessed(self._batch_size)
                for entry in entries:
                    await self._process_entry(entry, repository)

        self._probe.batch_processed(len(entries))
        return len(entries)

    async def _poll_loop(self) -> None:
        while self._running:
            try:
                await self.process_pending()
            except Exception as e:
                self._probe.poll_loop_error(str(e))

            await asyncio.sleep(self._poll_interval)

    async def _process_entry(
        self, entry: OutboxEntry, repository: IOutboxRepository
    ) -> None:
        """Deliver one entry, recording the outcome on its row."""
        if entry.event_type not in self._dispatcher.supported_event_types():
            await repository.mark_processed(entry.id)
            self._probe.event_skipped(entry.id, entry.event_type)
            return

        try:
            event = self._serializer.deserialize(entry.event_type, entry.payload)
            await self._dispatcher.dispatch(event)
        except Exception as e:
            retry_count, dead = entry.next_retry_count(self._max_retries)
            await repository.record_failure(entry.id, retry_count, str(e), dead)
            if dead:
                self._probe.event_moved_to_dlq(entry.id, entry.event_type, str(e))
            else:
                self._probe.event_dispatch_failed(entry.id, str(e), retry_count)
            return

        await repository.mark_processed(entry.id)
        self._probe.event_dispatched(entry.id, entry.event_type)
