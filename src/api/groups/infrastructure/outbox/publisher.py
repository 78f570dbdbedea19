"""Hands the effects of a sync pass to the transactional outbox."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from groups.domain.events import DomainEvent
from shared_kernel.outbox.ports import IOutboxRepository

AGGREGATE_TYPE = "group"


class SyncEffectsPublisher:
    """Appends post-commit sync effects to the outbox in one transaction."""

    def __init__(self, session: AsyncSession, outbox: IOutboxRepository) -> None:
        self._session = session
        self._outbox = outbox

    async def publish(self, effects: Sequence[DomainEvent]) -> int:
        """Append every effect to the outbox.

        Returns:
            Number of appended events
        """
        if not effects:
            return 0

        async with self._session.begin():
            for event in effects:
                await self._outbox.append(
                    event,
                    aggregate_type=AGGREGATE_TYPE,
                    aggregate_id=event.group_id,
                )
        return len(effects)
