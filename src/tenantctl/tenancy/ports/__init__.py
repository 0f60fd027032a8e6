"""Ports for the tenancy bounded context."""

from tenancy.ports.exceptions import (
    InvalidArgumentError,
    MigrationError,
    ProvisioningError,
    RegistryError,
    RollbackError,
    SchemaCreationError,
)
from tenancy.ports.migrations import BatchResult, IMigrationRunner, MigrationTarget
from tenancy.ports.repositories import ISchemaManager, ITenantRegistry

__all__ = [
    "BatchResult",
    "IMigrationRunner",
    "ISchemaManager",
    "ITenantRegistry",
    "InvalidArgumentError",
    "MigrationError",
    "MigrationTarget",
    "ProvisioningError",
    "RegistryError",
    "RollbackError",
    "SchemaCreationError",
]
