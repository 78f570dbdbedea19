"""Observability probes for the outbox worker.

Following Domain Oriented Observability, probes capture domain-significant
events without cluttering the worker with logging concerns.
"""

from __future__ import annotations

import structlog
from typing import Protocol
from uuid import UUID


logger = structlog.get_logger()


class OutboxWorkerProbe(Protocol):
    """Protocol for outbox worker observability."""

    def worker_started(self, poll_interval_seconds: int) -> None:
        """Called when the worker starts."""
        ...

    def worker_stopped(self) -> None:
        """Called when the worker stops."""
        ...

    def event_dispatched(self, entry_id: UUID, event_type: str) -> None:
        """Called when an event is delivered."""
        ...

    def event_skipped(self, entry_id: UUID, event_type: str) -> None:
        """Called when no dispatcher handles an event type.

        The entry is marked processed so it does not block the queue.
        """
        ...

    def event_dispatch_failed(
        self, entry_id: UUID, error: str, retry_count: int
    ) -> None:
        """Called when delivery fails and will be retried."""
        ...

    def event_moved_to_dlq(self, entry_id: UUID, event_type: str, error: str) -> None:
        """Called when an event exceeds max retries and is moved to DLQ."""
        ...

    def batch_processed(self, count: int) -> None:
        """Called when a batch of events is processed."""
        ...

    def poll_loop_error(self, error: str) -> None:
        """Called when an error occurs in the poll loop."""
        ...

    def dispatcher_registered(
        self, context_name: str, event_types: frozenset[str]
    ) -> None:
        """Called when a bounded context registers its dispatcher."""
        ...


class DefaultOutboxWorkerProbe:
    """Default implementation using structlog."""

    def __init__(self) -> None:
        """Initialize the probe with a logger."""
        self._log = logger.bind(component="outbox_worker")

    def worker_started(self, poll_interval_seconds: int) -> None:
        """Log worker start."""
        self._log.info(
            "outbox_worker_started", poll_interval_seconds=poll_interval_seconds
        )

    def worker_stopped(self) -> None:
        """Log worker stop."""
        self._log.info("outbox_worker_stopped")

    def event_dispatched(self, entry_id: UUID, event_type: str) -> None:
        """Log a delivered event."""
        self._log.info(
            "outbox_event_dispatched",
            entry_id=str(entry_id),
            event_type=event_type,
        )

    def event_skipped(self, entry_id: UUID, event_type: str) -> None:
        """Log an event no dispatcher handles."""
        self._log.debug(
            "outbox_event_skipped",
            entry_id=str(entry_id),
            event_type=event_type,
        )

    def event_dispatch_failed(
        self, entry_id: UUID, error: str, retry_count: int
    ) -> None:
        """Log failed delivery that will be retried."""
        self._log.warning(
            "outbox_event_dispatch_failed",
            entry_id=str(entry_id),
            error=error,
            retry_count=retry_count,
        )

    def event_moved_to_dlq(self, entry_id: UUID, event_type: str, error: str) -> None:
        """Log event moved to dead letter queue."""
        self._log.error(
            "outbox_event_moved_to_dlq",
            entry_id=str(entry_id),
            event_type=event_type,
            error=error,
        )

    def batch_processed(self, count: int) -> None:
        """Log batch processing."""
        if count > 0:
            self._log.info("outbox_batch_processed", count=count)

    def poll_loop_error(self, error: str) -> None:
        """Log poll loop error."""
        self._log.warning("outbox_poll_loop_error", error=error)

    def dispatcher_registered(
        self, context_name: str, event_types: frozenset[str]
    ) -> None:
        """Log dispatcher registration."""
        self._log.info(
            "outbox_dispatcher_registered",
            context=context_name,
            event_types=sorted(event_types),
            event_count=len(event_types),
        )
