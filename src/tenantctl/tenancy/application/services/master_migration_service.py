"""Migrations of the shared (master) schema."""

from __future__ import annotations

from dataclasses import dataclass

from infrastructure.database import ConnectionScope
from infrastructure.settings import ProvisioningSettings
from tenancy.application.observability import (
    DefaultMasterMigrationProbe,
    MasterMigrationProbe,
)
from tenancy.ports.migrations import BatchResult, IMigrationRunner, MigrationTarget


@dataclass(frozen=True)
class MasterMigrationResult:
    """Files applied to the master schema, or that would be on a dry run."""

    files: tuple[str, ...]
    batch: int | None = None
    dry_run: bool = False


class MasterMigrationService:
    """Applies and reverts the master migrations."""

    def __init__(
        self,
        migration_runner: IMigrationRunner,
        settings: ProvisioningSettings,
        probe: MasterMigrationProbe | None = None,
    ):
        self._migration_runner = migration_runner
        self._settings = settings
        self._probe = probe or DefaultMasterMigrationProbe()

    async def migrate(self, dry_run: bool = False) -> MasterMigrationResult:
        """Apply pending master migrations, or only list them when dry_run.

        Raises:
            MigrationError: If a migration fails or status cannot be read
        """
        target = self._target()
        if dry_run:
            pending = await self._migration_runner.list_pending(target)
            self._probe.pending_master_migrations(target.schema, pending)
            return MasterMigrationResult(files=tuple(pending), dry_run=True)

        result = await self._migration_runner.apply_latest(target)
        self._probe.master_migrated(target.schema, result.batch, result.files)
        return MasterMigrationResult(files=result.files, batch=result.batch)

    async def rollback(self) -> BatchResult:
        """Revert the last master migration batch.

        Raises:
            MigrationError: If a downgrade fails
        """
        target = self._target()
        result = await self._migration_runner.rollback_last_batch(target)
        self._probe.master_rolled_back(target.schema, result.batch, result.files)
        return result

    def _target(self) -> MigrationTarget:
        return MigrationTarget(
            scope=ConnectionScope.master(self._settings.shared_schema),
            directory=self._settings.master_migrations_dir,
            tracking_table=self._settings.master_tracking_table,
        )
