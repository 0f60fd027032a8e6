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

    Captures operation-scoped metadata that should be included with all
    instrumentation events, so that every event of one CLI invocation or
    fleet run can be correlated.

    Attributes:
        run_id: Unique identifier for the current command invocation.
        org_id: External organization identifier of the tenant (if applicable).
        schema_name: Tenant schema being operated on (if applicable).
        extra: Additional contextual metadata.

    Example:
        context = ObservationContext(run_id="run-123", org_id="org_42")
        probe = DefaultConnectionProbe().with_context(context)
    """

    run_id: str | None = None
    org_id: str | None = None
    schema_name: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for logging.

        Only includes non-None values to keep logs clean.
        """
        result: dict[str, Any] = {}
        if self.run_id is not None:
            result["run_id"] = self.run_id
        if self.org_id is not None:
            result["org_id"] = self.org_id
        if self.schema_name is not None:
            result["schema_name"] = self.schema_name
        result.update(self.extra)
        return result

    def with_schema(self, schema_name: str) -> ObservationContext:
        """Create a new context with the schema name set."""
        return ObservationContext(
            run_id=self.run_id,
            org_id=self.org_id,
            schema_name=schema_name,
            extra=self.extra,
        )

    def with_extra(self, **kwargs: Any) -> ObservationContext:
        """Create a new context with additional metadata."""
        return ObservationContext(
            run_id=self.run_id,
            org_id=self.org_id,
            schema_name=self.schema_name,
            extra={**self.extra, **kwargs},
        )
