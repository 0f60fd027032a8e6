"""Wiring for the tenancy bounded context.

Builds the application services with their concrete adapters. Every
service built here shares the connection factory passed in, so disposing
that factory releases every pooled connection.
"""

from __future__ import annotations

from infrastructure.database import ConnectionFactory
from infrastructure.settings import get_database_settings, get_provisioning_settings
from tenancy.application.services import (
    FleetMigrationService,
    MasterMigrationService,
    TenantProvisioningService,
)
from tenancy.infrastructure.migration_runner import MigrationRunner
from tenancy.infrastructure.schema_manager import PostgresSchemaManager
from tenancy.infrastructure.tenant_registry import TenantRegistry


def get_connection_factory() -> ConnectionFactory:
    """Create a connection factory from the environment's database settings."""
    return ConnectionFactory.from_settings(get_database_settings())


def get_migration_runner(connection_factory: ConnectionFactory) -> MigrationRunner:
    return MigrationRunner(connection_factory)


def get_provisioning_service(
    connection_factory: ConnectionFactory,
) -> TenantProvisioningService:
    """Get TenantProvisioningService with its PostgreSQL adapters."""
    return TenantProvisioningService(
        connection_factory=connection_factory,
        migration_runner=get_migration_runner(connection_factory),
        registry_factory=TenantRegistry,
        schema_manager_factory=PostgresSchemaManager,
        settings=get_provisioning_settings(),
    )


def get_fleet_service(connection_factory: ConnectionFactory) -> FleetMigrationService:
    """Get FleetMigrationService with its PostgreSQL adapters."""
    return FleetMigrationService(
        connection_factory=connection_factory,
        migration_runner=get_migration_runner(connection_factory),
        registry_factory=TenantRegistry,
        settings=get_provisioning_settings(),
    )


def get_master_migration_service(
    connection_factory: ConnectionFactory,
) -> MasterMigrationService:
    """Get MasterMigrationService for the shared schema."""
    return MasterMigrationService(
        migration_runner=get_migration_runner(connection_factory),
        settings=get_provisioning_settings(),
    )
