"""PostgreSQL implementation of the outbox repository."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.outbox.models import OutboxModel
from shared_kernel.outbox.ports import IOutboxRepository
from shared_kernel.outbox.value_objects import OutboxEntry

if TYPE_CHECKING:
    from shared_kernel.outbox.ports import EventSerializer


class OutboxRepository(IOutboxRepository):
    """Outbox repository sharing the caller's session.

    The repository only adds and executes statements; the caller owns the
    transaction boundary.
    """

    def __init__(self, session: AsyncSession, serializer: EventSerializer) -> None:
        """Initialize the repository.

        Args:
            session: The SQLAlchemy async session of the caller
            serializer: Serializer converting events to JSON payloads
        """
        self._session = session
        self._serializer = serializer

    async def append(self, event: Any, aggregate_type: str, aggregate_id: str) -> None:
        self._session.add(
            OutboxModel(
                aggregate_type=aggregate_type,
                aggregate_id=aggregate_id,
                event_type=type(event).__name__,
                payload=self._serializer.serialize(event),
                occurred_at=event.occurred_at,
                processed_at=None,
            )
        )

    async def fetch_unprocessed(self, limit: int = 100) -> list[OutboxEntry]:
        stmt = (
            select(OutboxModel)
            .where(OutboxModel.processed_at.is_(None))
            .where(OutboxModel.failed_at.is_(None))
            .order_by(OutboxModel.created_at)
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        result = await self._session.execute(stmt)
        return [model.to_value_object() for model in result.scalars().all()]

    async def mark_processed(self, entry_id: UUID) -> None:
        await self._session.execute(
            update(OutboxModel)
            .where(OutboxModel.id == entry_id)
            .values(processed_at=datetime.now(UTC))
        )

    async def record_failure(
        self, entry_id: UUID, retry_count: int, error: str, dead: bool
    ) -> None:
        values: dict[str, Any] = {"retry_count": retry_count, "last_error": error}
        if dead:
            values["failed_at"] = datetime.now(UTC)
        await self._session.execute(
            update(OutboxModel).where(OutboxModel.id == entry_id).values(**values)
        )
