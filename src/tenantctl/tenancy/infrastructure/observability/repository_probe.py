"""Domain probe for tenancy persistence operations.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events related to the tenant registry and the
schema manager.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class TenantRegistryProbe(Protocol):
    """Domain probe for tenant registry operations.

    Records domain events during tenant state bookkeeping.
    """

    def provisioning_recorded(self, org_id: str, schema_name: str) -> None:
        """Record that a tenant row was upserted into PROVISIONING."""
        ...

    def tenant_marked_active(self, org_id: str) -> None:
        """Record that a tenant row was marked ACTIVE."""
        ...

    def tenant_marked_failed(self, org_id: str, error_length: int) -> None:
        """Record that a tenant row was marked FAILED."""
        ...

    def tenant_not_found(self, org_id: str) -> None:
        """Record that a state update matched no tenant row."""
        ...

    def transition_rejected(self, org_id: str, current: str, target: str) -> None:
        """Record that a lifecycle change was refused for the tenant's status."""
        ...

    def schemas_listed(self, count: int) -> None:
        """Record that tenant schemas were listed."""
        ...

    def registry_operation_failed(self, operation: str, error: Exception) -> None:
        """Record that a registry read or write failed."""
        ...

    def with_context(self, context: ObservationContext) -> TenantRegistryProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultTenantRegistryProbe:
    """Default implementation of TenantRegistryProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def with_context(self, context: ObservationContext) -> DefaultTenantRegistryProbe:
        """Create a new probe with observation context bound."""
        return DefaultTenantRegistryProbe(
            logger=self._logger.bind(**context.as_dict()), context=context
        )

    def provisioning_recorded(self, org_id: str, schema_name: str) -> None:
        """Record that a tenant row was upserted into PROVISIONING."""
        self._logger.debug(
            "tenant_provisioning_recorded",
            org_id=org_id,
            schema_name=schema_name,
        )

    def tenant_marked_active(self, org_id: str) -> None:
        """Record that a tenant row was marked ACTIVE."""
        self._logger.debug(
            "tenant_marked_active",
            org_id=org_id,
        )

    def tenant_marked_failed(self, org_id: str, error_length: int) -> None:
        """Record that a tenant row was marked FAILED."""
        self._logger.debug(
            "tenant_marked_failed",
            org_id=org_id,
            error_length=error_length,
        )

    def tenant_not_found(self, org_id: str) -> None:
        """Record that a state update matched no tenant row."""
        self._logger.warning(
            "tenant_not_found",
            org_id=org_id,
        )

    def transition_rejected(self, org_id: str, current: str, target: str) -> None:
        """Record that a lifecycle change was refused for the tenant's status."""
        self._logger.warning(
            "tenant_transition_rejected",
            org_id=org_id,
            current_status=current,
            target_status=target,
        )

    def schemas_listed(self, count: int) -> None:
        """Record that tenant schemas were listed."""
        self._logger.debug(
            "tenant_schemas_listed",
            count=count,
        )

    def registry_operation_failed(self, operation: str, error: Exception) -> None:
        """Record that a registry read or write failed."""
        self._logger.error(
            "tenant_registry_operation_failed",
            operation=operation,
            error=str(error),
        )


class SchemaManagerProbe(Protocol):
    """Domain probe for schema and extension DDL."""

    def schema_ensured(self, schema_name: str) -> None:
        """Record that a tenant schema exists."""
        ...

    def schema_created_concurrently(self, schema_name: str) -> None:
        """Record that another session created the schema first."""
        ...

    def extension_already_present(self, extension: str, schema: str) -> None:
        """Record that an extension was already installed."""
        ...

    def extension_created(self, extension: str, schema: str) -> None:
        """Record that an extension was installed."""
        ...

    def extension_created_concurrently(self, extension: str, schema: str) -> None:
        """Record that another session installed the extension first."""
        ...

    def ddl_failed(self, statement: str, error: Exception) -> None:
        """Record that schema or extension DDL failed."""
        ...

    def with_context(self, context: ObservationContext) -> SchemaManagerProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultSchemaManagerProbe:
    """Default implementation of SchemaManagerProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def with_context(self, context: ObservationContext) -> DefaultSchemaManagerProbe:
        """Create a new probe with observation context bound."""
        return DefaultSchemaManagerProbe(
            logger=self._logger.bind(**context.as_dict()), context=context
        )

    def schema_ensured(self, schema_name: str) -> None:
        """Record that a tenant schema exists."""
        self._logger.info(
            "tenant_schema_ensured",
            schema_name=schema_name,
        )

    def schema_created_concurrently(self, schema_name: str) -> None:
        """Record that another session created the schema first."""
        self._logger.info(
            "tenant_schema_created_concurrently",
            schema_name=schema_name,
        )

    def extension_already_present(self, extension: str, schema: str) -> None:
        """Record that an extension was already installed."""
        self._logger.debug(
            "extension_already_present",
            extension=extension,
            schema=schema,
        )

    def extension_created(self, extension: str, schema: str) -> None:
        """Record that an extension was installed."""
        self._logger.info(
            "extension_created",
            extension=extension,
            schema=schema,
        )

    def extension_created_concurrently(self, extension: str, schema: str) -> None:
        """Record that another session installed the extension first."""
        self._logger.info(
            "extension_created_concurrently",
            extension=extension,
            schema=schema,
        )

    def ddl_failed(self, statement: str, error: Exception) -> None:
        """Record that schema or extension DDL failed."""
        self._logger.error(
            "schema_ddl_failed",
            statement=statement,
            error=str(error),
        )
