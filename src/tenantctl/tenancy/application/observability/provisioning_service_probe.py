"""Protocol for tenant provisioning observability.

Defines the interface for domain probes that capture application-level
domain events while a single tenant is provisioned.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class ProvisioningServiceProbe(Protocol):
    """Domain probe for tenant provisioning operations."""

    def provisioning_started(self, org_id: str, schema_name: str) -> None:
        """Record that provisioning of a tenant began."""
        ...

    def tenant_provisioned(
        self, org_id: str, schema_name: str, batch: int, files: tuple[str, ...]
    ) -> None:
        """Record that a tenant was migrated and marked ACTIVE."""
        ...

    def provisioning_failed(
        self, org_id: str, schema_name: str, error: Exception
    ) -> None:
        """Record that the tenant's migrations failed."""
        ...

    def failure_recording_failed(self, org_id: str, error: Exception) -> None:
        """Record that the FAILED state could not be written."""
        ...

    def compensating_rollback_skipped(self, schema_name: str) -> None:
        """Record that no file of the failing batch was committed."""
        ...

    def compensating_rollback_succeeded(
        self, schema_name: str, batch: int, files: tuple[str, ...]
    ) -> None:
        """Record that the partially applied batch was reverted."""
        ...

    def compensating_rollback_failed(self, schema_name: str, error: Exception) -> None:
        """Record that reverting the partially applied batch failed."""
        ...

    def with_context(self, context: ObservationContext) -> ProvisioningServiceProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultProvisioningServiceProbe:
    """Default implementation of ProvisioningServiceProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def with_context(
        self, context: ObservationContext
    ) -> DefaultProvisioningServiceProbe:
        """Create a new probe with observation context bound."""
        return DefaultProvisioningServiceProbe(
            logger=self._logger.bind(**context.as_dict()), context=context
        )

    def provisioning_started(self, org_id: str, schema_name: str) -> None:
        """Record that provisioning of a tenant began."""
        self._logger.info(
            "tenant_provisioning_started",
            org_id=org_id,
            schema_name=schema_name,
        )

    def tenant_provisioned(
        self, org_id: str, schema_name: str, batch: int, files: tuple[str, ...]
    ) -> None:
        """Record that a tenant was migrated and marked ACTIVE."""
        self._logger.info(
            "tenant_provisioned",
            org_id=org_id,
            schema_name=schema_name,
            batch=batch,
            files=list(files),
        )

    def provisioning_failed(
        self, org_id: str, schema_name: str, error: Exception
    ) -> None:
        """Record that the tenant's migrations failed."""
        self._logger.error(
            "tenant_provisioning_failed",
            org_id=org_id,
            schema_name=schema_name,
            error=str(error),
            error_type=type(error).__name__,
        )

    def failure_recording_failed(self, org_id: str, error: Exception) -> None:
        """Record that the FAILED state could not be written."""
        self._logger.error(
            "tenant_failure_recording_failed",
            org_id=org_id,
            error=str(error),
        )

    def compensating_rollback_skipped(self, schema_name: str) -> None:
        """Record that no file of the failing batch was committed."""
        self._logger.info(
            "compensating_rollback_skipped",
            schema_name=schema_name,
        )

    def compensating_rollback_succeeded(
        self, schema_name: str, batch: int, files: tuple[str, ...]
    ) -> None:
        """Record that the partially applied batch was reverted."""
        self._logger.warning(
            "compensating_rollback_succeeded",
            schema_name=schema_name,
            batch=batch,
            files=list(files),
        )

    def compensating_rollback_failed(self, schema_name: str, error: Exception) -> None:
        """Record that reverting the partially applied batch failed."""
        self._logger.error(
            "compensating_rollback_failed",
            schema_name=schema_name,
            error=str(error),
            error_type=type(error).__name__,
        )
