"""Fleet-wide tenant migrations.

Applies or reverts tenant migrations against every schema in the registry.
Each tenant is handled independently: a failure (or timeout) is recorded in
the run report and logged with the schema name, and the run moves on. The
master session used to list tenants stays open until the run ends.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum

from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database import ConnectionFactory, ConnectionScope
from infrastructure.settings import ProvisioningSettings
from shared_kernel.observability_context import ObservationContext
from tenancy.application.observability import (
    DefaultFleetServiceProbe,
    FleetServiceProbe,
)
from tenancy.ports.migrations import BatchResult, IMigrationRunner, MigrationTarget
from tenancy.ports.repositories import ITenantRegistry

Step = Callable[[MigrationTarget], Awaitable[BatchResult]]


class FleetOperation(StrEnum):
    MIGRATE = "migrate"
    ROLLBACK = "rollback"


class StepStatus(StrEnum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class TenantStepResult:
    """Outcome of migrating or rolling back one tenant schema."""

    schema_name: str
    status: StepStatus
    batch: int | None = None
    files: tuple[str, ...] = ()
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == StepStatus.SUCCEEDED


@dataclass(frozen=True)
class FleetRunReport:
    """Per-tenant results of one fleet run, in registry order."""

    operation: FleetOperation
    results: tuple[TenantStepResult, ...] = ()

    @property
    def succeeded(self) -> list[TenantStepResult]:
        return [r for r in self.results if r.succeeded]

    @property
    def failed(self) -> list[TenantStepResult]:
        return [r for r in self.results if not r.succeeded]

    @property
    def total(self) -> int:
        return len(self.results)


class FleetMigrationService:
    """Runs tenant migrations across every registered tenant."""

    def __init__(
        self,
        connection_factory: ConnectionFactory,
        migration_runner: IMigrationRunner,
        registry_factory: Callable[[AsyncSession], ITenantRegistry],
        settings: ProvisioningSettings,
        probe: FleetServiceProbe | None = None,
    ):
        """Initialize FleetMigrationService with dependencies.

        Args:
            connection_factory: Factory for the master-scope session
            migration_runner: Runner applied to each tenant schema
            registry_factory: Builds the tenant registry for a master session
            settings: Shared schema, tenant migrations, concurrency and timeout
            probe: Optional domain probe for observability
        """
        self._connection_factory = connection_factory
        self._migration_runner = migration_runner
        self._registry_factory = registry_factory
        self._settings = settings
        self._probe = probe or DefaultFleetServiceProbe()

    async def migrate_all_tenants(self) -> FleetRunReport:
        """Apply pending tenant migrations to every tenant schema.

        Never raises for a single tenant's failure; see the report instead.

        Raises:
            RegistryError: If the tenant list cannot be read
        """
        return await self._run(
            FleetOperation.MIGRATE, self._migration_runner.apply_latest
        )

    async def rollback_all_tenants(self) -> FleetRunReport:
        """Revert the last migration batch of every tenant schema.

        Raises:
            RegistryError: If the tenant list cannot be read
        """
        return await self._run(
            FleetOperation.ROLLBACK, self._migration_runner.rollback_last_batch
        )

    async def _run(self, operation: FleetOperation, step: Step) -> FleetRunReport:
        master_scope = ConnectionScope.master(self._settings.shared_schema)
        async with self._connection_factory.session(master_scope) as session:
            registry = self._registry_factory(session)
            async with session.begin():
                schemas = await registry.list_tenant_schemas()

            concurrency = self._settings.fleet_concurrency
            self._probe.fleet_run_started(operation, len(schemas), concurrency)
            semaphore = asyncio.Semaphore(concurrency)
            results = await asyncio.gather(
                *(
                    self._run_step(operation, step, schema, semaphore)
                    for schema in schemas
                )
            )

        report = FleetRunReport(operation=operation, results=tuple(results))
        self._probe.fleet_run_finished(
            operation, len(report.succeeded), len(report.failed)
        )
        return report

    async def _run_step(
        self,
        operation: FleetOperation,
        step: Step,
        schema_name: str,
        semaphore: asyncio.Semaphore,
    ) -> TenantStepResult:
        probe = self._probe.with_context(ObservationContext(schema_name=schema_name))
        timeout = self._settings.step_timeout_seconds
        async with semaphore:
            try:
                target = MigrationTarget(
                    scope=ConnectionScope.tenant(
                        schema_name, self._settings.shared_schema
                    ),
                    directory=self._settings.tenant_migrations_dir,
                    tracking_table=self._settings.tenant_tracking_table,
                )
                if timeout is None:
                    result = await step(target)
                else:
                    result = await asyncio.wait_for(step(target), timeout)
            except TimeoutError as e:
                if timeout is None:
                    return self._failed(probe, operation, schema_name, e)
                probe.tenant_step_timed_out(operation, schema_name, timeout)
                return TenantStepResult(
                    schema_name=schema_name,
                    status=StepStatus.FAILED,
                    error=f"Timed out after {timeout}s",
                )
            except Exception as e:
                return self._failed(probe, operation, schema_name, e)

        probe.tenant_step_succeeded(
            operation, schema_name, result.batch, result.files
        )
        return TenantStepResult(
            schema_name=schema_name,
            status=StepStatus.SUCCEEDED,
            batch=result.batch,
            files=result.files,
        )

    def _failed(
        self,
        probe: FleetServiceProbe,
        operation: FleetOperation,
        schema_name: str,
        error: Exception,
    ) -> TenantStepResult:
        probe.tenant_step_failed(operation, schema_name, error)
        return TenantStepResult(
            schema_name=schema_name,
            status=StepStatus.FAILED,
            error=str(error),
        )
