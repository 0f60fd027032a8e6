"""Tenant provisioning service for the tenancy bounded context.

Provisioning one tenant is a short saga:

1. record PROVISIONING in the registry (before any DDL, so an operator can
   always see in-flight provisioning)
2. create the tenant schema and the shared extensions it needs
3. run the tenant migrations with search path [tenant schema, shared schema]
4. mark the tenant ACTIVE

If the migrations fail the tenant is marked FAILED, the partially applied
batch is reverted on a best-effort basis, and the migration error is
re-raised. A failing compensation is logged and never replaces the
original error.
"""

from __future__ import annotations

from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database import ConnectionFactory, ConnectionScope
from infrastructure.settings import ProvisioningSettings
from shared_kernel.observability_context import ObservationContext
from tenancy.application.observability import (
    DefaultProvisioningServiceProbe,
    ProvisioningServiceProbe,
)
from tenancy.domain import InvalidStatusTransitionError, OrgId, SchemaName
from tenancy.ports.exceptions import MigrationError, RegistryError, RollbackError
from tenancy.ports.migrations import BatchResult, IMigrationRunner, MigrationTarget
from tenancy.ports.repositories import ISchemaManager, ITenantRegistry


class TenantProvisioningService:
    """Application service creating and migrating a single tenant schema.

    Each call uses its own master-scope session and the migration runner's
    own tenant-scope connection, so calls for different tenants can run
    concurrently. Calls for the same org_id are not serialized here.
    """

    def __init__(
        self,
        connection_factory: ConnectionFactory,
        migration_runner: IMigrationRunner,
        registry_factory: Callable[[AsyncSession], ITenantRegistry],
        schema_manager_factory: Callable[[AsyncSession], ISchemaManager],
        settings: ProvisioningSettings,
        probe: ProvisioningServiceProbe | None = None,
    ):
        """Initialize TenantProvisioningService with dependencies.

        Args:
            connection_factory: Factory for scoped sessions
            migration_runner: Runner applying tenant migrations
            registry_factory: Builds the tenant registry for a master session
            schema_manager_factory: Builds the schema manager for a master session
            settings: Shared schema, extensions and tenant migration location
            probe: Optional domain probe for observability
        """
        self._connection_factory = connection_factory
        self._migration_runner = migration_runner
        self._registry_factory = registry_factory
        self._schema_manager_factory = schema_manager_factory
        self._settings = settings
        self._probe = probe or DefaultProvisioningServiceProbe()

    async def provision_tenant(self, org_id: str) -> BatchResult:
        """Create, migrate and activate the schema of one organization.

        Safe to call again for a tenant in any state; the registry row is
        reset to PROVISIONING and only pending migrations are applied.

        Args:
            org_id: External organization identifier

        Returns:
            The batch applied to the tenant schema

        Raises:
            InvalidArgumentError: If org_id is missing or malformed
            RegistryError: If the registry cannot be written
            SchemaCreationError: If schema or extension DDL fails
            MigrationError: If the tenant migrations fail
            InvalidStatusTransitionError: If the tenant left PROVISIONING
                before it could be activated
        """
        tenant_org = OrgId(value=org_id)
        schema_name = SchemaName.for_org(tenant_org)
        probe = self._probe.with_context(
            ObservationContext(org_id=tenant_org.value, schema_name=schema_name.value)
        )
        probe.provisioning_started(tenant_org.value, schema_name.value)

        master_scope = ConnectionScope.master(self._settings.shared_schema)
        async with self._connection_factory.session(master_scope) as session:
            registry = self._registry_factory(session)
            async with session.begin():
                await registry.upsert_provisioning(tenant_org, schema_name)

            schema_manager = self._schema_manager_factory(session)
            await schema_manager.ensure_schema(schema_name)
            await schema_manager.ensure_extensions(
                list(self._settings.required_extensions),
                self._settings.shared_schema,
            )

            target = self._tenant_target(schema_name)
            try:
                result = await self._migration_runner.apply_latest(target)
            except MigrationError as e:
                probe.provisioning_failed(tenant_org.value, schema_name.value, e)
                await self._record_failure(probe, session, registry, tenant_org, e)
                await self._compensate(probe, target, e)
                raise

            async with session.begin():
                await registry.mark_active(tenant_org)

        probe.tenant_provisioned(
            tenant_org.value, schema_name.value, result.batch, result.files
        )
        return result

    def _tenant_target(self, schema_name: SchemaName) -> MigrationTarget:
        return MigrationTarget(
            scope=ConnectionScope.tenant(
                schema_name.value, self._settings.shared_schema
            ),
            directory=self._settings.tenant_migrations_dir,
            tracking_table=self._settings.tenant_tracking_table,
        )

    async def _record_failure(
        self,
        probe: ProvisioningServiceProbe,
        session: AsyncSession,
        registry: ITenantRegistry,
        org_id: OrgId,
        error: MigrationError,
    ) -> None:
        try:
            async with session.begin():
                await registry.mark_failed(org_id, error)
        except (RegistryError, InvalidStatusTransitionError) as e:
            probe.failure_recording_failed(org_id.value, e)

    async def _compensate(
        self,
        probe: ProvisioningServiceProbe,
        target: MigrationTarget,
        error: MigrationError,
    ) -> None:
        """Revert the files the failing batch committed, if any."""
        if not error.partially_applied:
            probe.compensating_rollback_skipped(target.schema)
            return
        try:
            reverted = await self._revert_last_batch(target)
        except RollbackError as e:
            probe.compensating_rollback_failed(target.schema, e)
            return
        probe.compensating_rollback_succeeded(
            target.schema, reverted.batch, reverted.files
        )

    async def _revert_last_batch(self, target: MigrationTarget) -> BatchResult:
        try:
            return await self._migration_runner.rollback_last_batch(target)
        except Exception as e:
            raise RollbackError(
                f"Compensating rollback failed for {target.schema}: {e}",
                schema=target.schema,
            ) from e
