"""Repository protocols (ports) for the tenancy bounded context.

The tenant registry lives in the shared schema and is the single source of
truth for tenant lifecycle state.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from tenancy.domain import OrgId, SchemaName, Tenant


@runtime_checkable
class ITenantRegistry(Protocol):
    """Registry of tenants and their provisioning state.

    Every write is a single statement so readers never observe a half-updated
    row. Implementations do not commit; the calling service owns the
    transaction.
    """

    async def upsert_provisioning(self, org_id: OrgId, schema_name: SchemaName) -> None:
        """Insert a tenant in PROVISIONING, or reset an existing one back to it.

        Keyed on org_id. On conflict the row keeps its id and created_at while
        activation and failure data are cleared.

        Raises:
            RegistryError: If the write fails
        """
        ...

    async def mark_active(self, org_id: OrgId) -> None:
        """Record that the tenant's migrations succeeded.

        Raises:
            InvalidStatusTransitionError: If the tenant is not PROVISIONING
            RegistryError: If the write fails
        """
        ...

    async def mark_failed(self, org_id: OrgId, error: BaseException | str) -> None:
        """Record that provisioning failed, keeping a bounded error message.

        Raises:
            InvalidStatusTransitionError: If the tenant is not PROVISIONING
            RegistryError: If the write fails
        """
        ...

    async def get_by_org_id(
        self, org_id: OrgId, *, for_update: bool = False
    ) -> Tenant | None:
        """Fetch a tenant by its external organization identifier.

        With for_update the row stays locked until the transaction ends.

        Returns:
            The Tenant aggregate, or None if unknown

        Raises:
            RegistryError: If the read fails
        """
        ...

    async def list_tenant_schemas(self) -> list[str]:
        """List the schema names of every known tenant, whatever their status.

        Raises:
            RegistryError: If the read fails
        """
        ...


@runtime_checkable
class ISchemaManager(Protocol):
    """Creates the database objects a tenant schema depends on."""

    async def ensure_schema(self, schema_name: SchemaName) -> None:
        """Create the schema if it does not exist.

        Raises:
            SchemaCreationError: If the DDL fails
        """
        ...

    async def ensure_extensions(self, extensions: list[str], schema: str) -> None:
        """Install the given extensions into ``schema`` unless already present.

        Raises:
            SchemaCreationError: If an extension cannot be installed
        """
        ...
