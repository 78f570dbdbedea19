"""Groups event serializer for outbox persistence."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Any, get_args

from groups.domain.events import DomainEvent

# Derive supported events from the DomainEvent type alias
_EVENT_REGISTRY: dict[str, type] = {cls.__name__: cls for cls in get_args(DomainEvent)}
_SUPPORTED_EVENTS: frozenset[str] = frozenset(_EVENT_REGISTRY)


class GroupsEventSerializer:
    """Serializes and deserializes Groups domain events.

    Datetimes are stored as ISO 8601 strings and tuples as JSON lists;
    both are restored on deserialization.
    """

    def supported_event_types(self) -> frozenset[str]:
        """Return the event type names this serializer handles."""
        return _SUPPORTED_EVENTS

    def serialize(self, event: DomainEvent) -> dict[str, Any]:
        """Convert a domain event to a JSON-serializable dictionary.

        Raises:
            ValueError: If the event type is not supported
        """
        event_type = type(event).__name__
        if event_type not in _SUPPORTED_EVENTS:
            raise ValueError(f"Unsupported event type: {event_type}")

        data = asdict(event)
        for key, value in data.items():
            if isinstance(value, datetime):
                data[key] = value.isoformat()
            elif isinstance(value, tuple):
                data[key] = list(value)
        return data

    def deserialize(self, event_type: str, payload: dict[str, Any]) -> Any:
        """Reconstruct a domain event from a payload.

        Raises:
            ValueError: If the event type is not supported
        """
        event_class = _EVENT_REGISTRY.get(event_type)
        if event_class is None:
            raise ValueError(f"Unsupported event type: {event_type}")

        data = payload.copy()
        for key, value in data.items():
            if key == "occurred_at":
                data[key] = datetime.fromisoformat(value)
            elif isinstance(value, list):
                data[key] = tuple(value)
        return event_class(**data)
