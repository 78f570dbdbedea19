"""Value objects for the outbox pattern."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID


@dataclass(frozen=True)
class OutboxEntry:
    """Immutable snapshot of one outbox row.

    Attributes:
        id: Unique identifier for the entry (UUID)
        aggregate_type: Type of aggregate that produced the event (e.g., "group")
        aggregate_id: ULID of the aggregate
        event_type: Name of the domain event class
        payload: Serialized event data
        occurred_at: When the domain event occurred
        processed_at: When the entry was delivered (None while pending)
        created_at: When the entry was appended
        retry_count: Number of failed delivery attempts
        last_error: The most recent delivery error, if any
        failed_at: When the entry was dead-lettered (None otherwise)
    """

    id: UUID
    aggregate_type: str
    aggregate_id: str
    event_type: str
    payload: dict[str, Any]
    occurred_at: datetime
    processed_at: datetime | None
    created_at: datetime
    retry_count: int = 0
    last_error: str | None = None
    failed_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        """True while the entry is neither delivered nor dead-lettered."""
        return self.processed_at is None and self.failed_at is None

    def next_retry_count(self, max_retries: int) -> tuple[int, bool]:
        """Attempt count after one more failure, and whether to dead-letter.

        Args:
            max_retries: Attempts allowed before an entry is dead-lettered

        Returns:
            Tuple of (new retry count, dead-letter flag)
        """
        retry_count = self.retry_count + 1
        return retry_count, retry_count >= max_retries
