"""Migration runner protocol (port) for the tenancy bounded context.

The runner applies and reverts ordered migration files against one
connection scope and records applied files in a per-scope tracking table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

from infrastructure.database import ConnectionScope


@dataclass(frozen=True)
class MigrationTarget:
    """Where and what to migrate.

    Attributes:
        scope: Search path used while migrating; tracking table lives in
            its first schema
        directory: Directory of ordered migration files
        tracking_table: Name of the applied-migrations table; distinct per
            scope kind (master vs tenant) so the two never collide
    """

    scope: ConnectionScope
    directory: Path
    tracking_table: str

    @property
    def schema(self) -> str:
        """Schema the migrations are applied to."""
        return self.scope.primary_schema


@dataclass(frozen=True)
class BatchResult:
    """Outcome of applying or reverting one batch.

    Attributes:
        batch: Batch number that was applied or reverted (for a no-op apply,
            the current last batch; for a no-op rollback, 0)
        files: Migration file names, in the order they were processed
    """

    batch: int
    files: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.files


@runtime_checkable
class IMigrationRunner(Protocol):
    """Applies and reverts migration batches for a target."""

    async def apply_latest(self, target: MigrationTarget) -> BatchResult:
        """Apply every pending migration as one new batch.

        Raises:
            MigrationError: If any migration fails; files committed before
                the failure are listed in ``MigrationError.applied``
        """
        ...

    async def rollback_last_batch(self, target: MigrationTarget) -> BatchResult:
        """Revert the most recently applied batch.

        Raises:
            MigrationError: If any downgrade fails
        """
        ...

    async def list_pending(self, target: MigrationTarget) -> list[str]:
        """List the files apply_latest would apply, without applying them.

        Raises:
            MigrationError: If the tracking table cannot be read
        """
        ...
