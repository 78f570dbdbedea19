"""Transactional outbox shared by the bounded contexts.

Domain events are appended to the outbox in the same transaction as the
state they describe and delivered asynchronously by the outbox worker.
"""

from shared_kernel.outbox.ports import (
    EventDispatcher,
    EventSerializer,
    IOutboxRepository,
)
from shared_kernel.outbox.value_objects import OutboxEntry

__all__ = ["EventDispatcher", "EventSerializer", "IOutboxRepository", "OutboxEntry"]
