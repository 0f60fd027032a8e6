"""Integration test fixtures for tenant provisioning.

These fixtures require a running PostgreSQL server. Connection settings come
from the TENANTCTL_DB_* environment variables; the tests are skipped when no
server can be reached.

Every test gets its own shared schema holding the registry, created with the
bundled master migrations. The shared schema and every tenant schema
registered in it are dropped afterwards.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy import text

from infrastructure.database import (
    ConnectionFactory,
    ConnectionScope,
    DatabaseError,
    quote_identifier,
)
from infrastructure.settings import MIGRATIONS_ROOT, DatabaseSettings, ProvisioningSettings
from tenancy.application.services import (
    MasterMigrationService,
    TenantProvisioningService,
)
from tenancy.domain import OrgId, SchemaName
from tenancy.infrastructure.migration_runner import MigrationRunner
from tenancy.infrastructure.schema_manager import PostgresSchemaManager
from tenancy.infrastructure.tenant_registry import TenantRegistry
from tests.integration.migration_files import ORDERS_MIGRATION, write_tenant_migration


@pytest.fixture
def integration_db_settings() -> DatabaseSettings:
    """Database settings for integration tests, read from TENANTCTL_DB_*."""
    return DatabaseSettings()


@pytest.fixture
def tenant_migrations_dir(tmp_path: Path) -> Path:
    """Tenant migrations that only need plain PostgreSQL."""
    directory = tmp_path / "tenant"
    directory.mkdir()
    write_tenant_migration(directory, "001_create_orders.py", ORDERS_MIGRATION)
    return directory


@pytest.fixture
def it_settings(tenant_migrations_dir: Path) -> ProvisioningSettings:
    """Provisioning settings isolated in a per-test shared schema."""
    return ProvisioningSettings(
        shared_schema=f"tenantctl_it_{uuid.uuid4().hex[:12]}",
        required_extensions=["plpgsql"],
        master_migrations_dir=MIGRATIONS_ROOT / "master",
        tenant_migrations_dir=tenant_migrations_dir,
    )


@pytest_asyncio.fixture
async def connection_factory(
    integration_db_settings: DatabaseSettings,
) -> AsyncGenerator[ConnectionFactory, None]:
    """Connection factory for the test server; skips when it is unreachable."""
    factory = ConnectionFactory.from_settings(integration_db_settings)
    try:
        async with factory.connect(ConnectionScope.master()):
            pass
    except DatabaseError as e:
        await factory.dispose()
        pytest.skip(f"PostgreSQL not available: {e}")
    yield factory
    await factory.dispose()


@pytest_asyncio.fixture
async def shared_schema(
    connection_factory: ConnectionFactory, it_settings: ProvisioningSettings
) -> AsyncGenerator[str, None]:
    """Create the shared schema and apply the master migrations to it."""
    schema = it_settings.shared_schema
    async with connection_factory.connect(ConnectionScope.master()) as conn:
        await conn.execute(text(f"CREATE SCHEMA {quote_identifier(schema)}"))
        await conn.commit()

    master = MasterMigrationService(MigrationRunner(connection_factory), it_settings)
    await master.migrate()

    yield schema

    async with connection_factory.connect(ConnectionScope.master(schema)) as conn:
        tenant_schemas = (
            await conn.execute(text("SELECT schema_name FROM tenants"))
        ).scalars().all()
        for name in [*tenant_schemas, schema]:
            await conn.execute(
                text(f"DROP SCHEMA IF EXISTS {quote_identifier(name)} CASCADE")
            )
        await conn.commit()


@pytest.fixture
def org_id() -> OrgId:
    """An organization no other test run has used."""
    return OrgId(f"it-{uuid.uuid4().hex}")


@pytest.fixture
def tenant_schema(org_id: OrgId) -> SchemaName:
    return SchemaName.for_org(org_id)


@pytest.fixture
def provisioning_service(
    connection_factory: ConnectionFactory,
    it_settings: ProvisioningSettings,
    shared_schema: str,
) -> TenantProvisioningService:
    return TenantProvisioningService(
        connection_factory=connection_factory,
        migration_runner=MigrationRunner(connection_factory),
        registry_factory=TenantRegistry,
        schema_manager_factory=PostgresSchemaManager,
        settings=it_settings,
    )


@pytest_asyncio.fixture
async def registry_session(
    connection_factory: ConnectionFactory, shared_schema: str
):
    """Session scoped to the shared schema for reading and writing the registry."""
    async with connection_factory.session(ConnectionScope.master(shared_schema)) as session:
        yield session
