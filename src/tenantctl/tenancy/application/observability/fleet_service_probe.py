"""Protocol for fleet migration observability.

Every per-tenant outcome carries the tenant's schema name so a failed
fleet run can be traced to the offending schemas from the logs alone.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class FleetServiceProbe(Protocol):
    """Domain probe for fleet-wide migrate and rollback runs."""

    def fleet_run_started(
        self, operation: str, tenant_count: int, concurrency: int
    ) -> None:
        """Record that a fleet run began."""
        ...

    def fleet_run_finished(self, operation: str, succeeded: int, failed: int) -> None:
        """Record that a fleet run ended."""
        ...

    def tenant_step_succeeded(
        self, operation: str, schema_name: str, batch: int, files: tuple[str, ...]
    ) -> None:
        """Record that one tenant was migrated or rolled back."""
        ...

    def tenant_step_failed(
        self, operation: str, schema_name: str, error: BaseException
    ) -> None:
        """Record that one tenant's step failed."""
        ...

    def tenant_step_timed_out(
        self, operation: str, schema_name: str, timeout_seconds: float
    ) -> None:
        """Record that one tenant's step exceeded the step timeout."""
        ...

    def with_context(self, context: ObservationContext) -> FleetServiceProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultFleetServiceProbe:
    """Default implementation of FleetServiceProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def with_context(self, context: ObservationContext) -> DefaultFleetServiceProbe:
        """Create a new probe with observation context bound."""
        return DefaultFleetServiceProbe(
            logger=self._logger.bind(**context.as_dict()), context=context
        )

    def fleet_run_started(
        self, operation: str, tenant_count: int, concurrency: int
    ) -> None:
        """Record that a fleet run began."""
        self._logger.info(
            "fleet_run_started",
            operation=operation,
            tenant_count=tenant_count,
            concurrency=concurrency,
        )

    def fleet_run_finished(self, operation: str, succeeded: int, failed: int) -> None:
        """Record that a fleet run ended."""
        log = self._logger.warning if failed else self._logger.info
        log(
            "fleet_run_finished",
            operation=operation,
            succeeded=succeeded,
            failed=failed,
        )

    def tenant_step_succeeded(
        self, operation: str, schema_name: str, batch: int, files: tuple[str, ...]
    ) -> None:
        """Record that one tenant was migrated or rolled back."""
        self._logger.info(
            "fleet_tenant_step_succeeded",
            operation=operation,
            schema_name=schema_name,
            batch=batch,
            files=list(files),
        )

    def tenant_step_failed(
        self, operation: str, schema_name: str, error: BaseException
    ) -> None:
        """Record that one tenant's step failed."""
        self._logger.error(
            "fleet_tenant_step_failed",
            operation=operation,
            schema_name=schema_name,
            error=str(error),
            error_type=type(error).__name__,
        )

    def tenant_step_timed_out(
        self, operation: str, schema_name: str, timeout_seconds: float
    ) -> None:
        """Record that one tenant's step exceeded the step timeout."""
        self._logger.error(
            "fleet_tenant_step_timed_out",
            operation=operation,
            schema_name=schema_name,
            timeout_seconds=timeout_seconds,
        )
