"""Domain-Oriented Observability for tenancy infrastructure.

Probes for registry, schema and migration operations following
Domain-Oriented Observability patterns.
"""

from tenancy.infrastructure.observability.migration_runner_probe import (
    DefaultMigrationRunnerProbe,
    MigrationRunnerProbe,
)
from tenancy.infrastructure.observability.repository_probe import (
    DefaultSchemaManagerProbe,
    DefaultTenantRegistryProbe,
    SchemaManagerProbe,
    TenantRegistryProbe,
)

__all__ = [
    "MigrationRunnerProbe",
    "DefaultMigrationRunnerProbe",
    "SchemaManagerProbe",
    "DefaultSchemaManagerProbe",
    "TenantRegistryProbe",
    "DefaultTenantRegistryProbe",
]
