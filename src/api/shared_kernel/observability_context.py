"""Observation context for domain-oriented observability.

Observation contexts collect and manage contextual metadata for instrumentation,
following the Domain Oriented Observability pattern.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ObservationContext:
    """Immutable context containing metadata for observability.

    Captures request-scoped and domain-relevant metadata that should be
    included with all instrumentation events, so the log lines of one sync
    pass can be correlated.

    Attributes:
        request_id: Unique identifier for the current request/operation.
        trigger: What started the operation, e.g. "scheduler" or "admin_api".
        extra: Additional contextual metadata.

    Example:
        context = ObservationContext(request_id="req-123", trigger="scheduler")
        probe = DefaultAuthmanSyncProbe().with_context(context)
    """

    request_id: str | None = None
    trigger: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for logging.

        Only includes non-None values to keep logs clean.
        """
        result: dict[str, Any] = {}
        if self.request_id is not None:
            result["request_id"] = self.request_id
        if self.trigger is not None:
            result["trigger"] = self.trigger
        result.update(self.extra)
        return result

    def with_extra(self, **kwargs: Any) -> ObservationContext:
        """Create a new context with additional metadata."""
        return ObservationContext(
            request_id=self.request_id,
            trigger=self.trigger,
            extra={**self.extra, **kwargs},
        )
