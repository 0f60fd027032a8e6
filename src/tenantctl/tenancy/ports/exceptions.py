"""Port-level exceptions for the tenancy bounded context.

These exceptions are raised by adapters (registry, schema manager,
migration runner) and handled by the application services. Adapters wrap
driver errors into these types so services never depend on SQLAlchemy.
"""

from __future__ import annotations

from collections.abc import Sequence

from tenancy.domain.exceptions import InvalidArgumentError, ProvisioningError

__all__ = [
    "InvalidArgumentError",
    "MigrationError",
    "ProvisioningError",
    "RegistryError",
    "RollbackError",
    "SchemaCreationError",
]


class SchemaCreationError(ProvisioningError):
    """Raised when schema or extension DDL fails for a reason other than "already exists".

    Provisioning is aborted immediately; the tenant row stays in PROVISIONING.
    """

    def __init__(self, message: str, schema: str | None = None):
        super().__init__(message)
        self.schema = schema


class MigrationError(ProvisioningError):
    """Raised when the migration runner fails to apply or revert migrations.

    A failure may leave the batch partially applied: every file listed in
    ``applied`` was committed and recorded under ``batch`` before the file
    named in ``migration`` failed.
    """

    def __init__(
        self,
        message: str,
        schema: str,
        migration: str | None = None,
        batch: int | None = None,
        applied: Sequence[str] = (),
    ):
        super().__init__(message)
        self.schema = schema
        self.migration = migration
        self.batch = batch
        self.applied = tuple(applied)

    @property
    def partially_applied(self) -> bool:
        """True when some files of the failing batch were committed."""
        return bool(self.applied)


class RegistryError(ProvisioningError):
    """Raised when reading or writing the tenant registry fails."""

    pass


class RollbackError(ProvisioningError):
    """Raised when a compensating rollback fails.

    Only ever logged by the provisioning service; the original migration
    failure is what reaches the caller.
    """

    def __init__(self, message: str, schema: str):
        super().__init__(message)
        self.schema = schema
