"""Protocols (ports) for the outbox pattern.

Each bounded context registers a serializer for its domain events and a
dispatcher that delivers them to downstream services, so shared_kernel
stays agnostic of specific events.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable
from uuid import UUID

if TYPE_CHECKING:
    from shared_kernel.outbox.value_objects import OutboxEntry


@runtime_checkable
class IOutboxRepository(Protocol):
    """Repository for outbox entry persistence.

    The repository shares the database session of the caller, so appends
    commit or roll back together with the caller's transaction.
    """

    async def append(self, event: Any, aggregate_type: str, aggregate_id: str) -> None:
        """Serialize and append an event within the current transaction.

        Args:
            event: The domain event to append
            aggregate_type: Type of aggregate (e.g., "group")
            aggregate_id: ULID of the aggregate
        """
        ...

    async def fetch_unprocessed(self, limit: int = 100) -> list[OutboxEntry]:
        """Fetch pending entries ordered by creation time.

        Uses FOR UPDATE SKIP LOCKED so concurrent workers never pick the
        same entry.
        """
        ...

    async def mark_processed(self, entry_id: UUID) -> None:
        """Set the entry's processed_at timestamp."""
        ...

    async def record_failure(
        self, entry_id: UUID, retry_count: int, error: str, dead: bool
    ) -> None:
        """Store a failed delivery attempt.

        Args:
            entry_id: The entry that failed
            retry_count: The attempt count after this failure
            error: The error message
            dead: Move the entry to the dead letter queue
        """
        ...


@runtime_checkable
class EventSerializer(Protocol):
    """Serializes and deserializes a context's domain events."""

    def supported_event_types(self) -> frozenset[str]:
        """Return the event type names this serializer handles."""
        ...

    def serialize(self, event: Any) -> dict[str, Any]:
        """Convert a domain event to a JSON-serializable dictionary.

        Raises:
            ValueError: If the event type is not supported
        """
        ...

    def deserialize(self, event_type: str, payload: dict[str, Any]) -> Any:
        """Reconstruct a domain event from a payload.

        Raises:
            ValueError: If the event type is not supported
        """
        ...


@runtime_checkable
class EventDispatcher(Protocol):
    """Delivers deserialized domain events to a downstream service.

    A dispatcher raises on delivery failure; the worker then retries the
    entry on a later poll or moves it to the dead letter queue.
    """

    def supported_event_types(self) -> frozenset[str]:
        """Return the event type names this dispatcher handles."""
        ...

    async def dispatch(self, event: Any) -> None:
        """Deliver one event.

        Raises:
            Exception: Any failure; the entry is retried
        """
        ...
