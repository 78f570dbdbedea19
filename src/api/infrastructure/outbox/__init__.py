"""Outbox persistence and delivery.

The model and repository store events alongside the state changes that
produced them; the worker polls and delivers them.
"""

from infrastructure.outbox.models import OutboxModel
from infrastructure.outbox.repository import OutboxRepository
from infrastructure.outbox.worker import OutboxWorker

__all__ = ["OutboxModel", "OutboxRepository", "OutboxWorker"]
