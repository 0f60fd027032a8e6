"""Batch migration runner built on Alembic operations.

Migration files are plain Python modules defining ``upgrade()`` and
``downgrade()`` with the usual ``from alembic import op`` directives. Files
are applied in filename order; every run of ``apply_latest`` records the
files it applied under one new batch number in a tracking table living in
the target's primary schema, and ``rollback_last_batch`` reverts exactly
the highest batch.

Each file runs in its own transaction together with its tracking row, so a
failing file leaves the batch partially applied: earlier files stay
committed and recorded.
"""

from __future__ import annotations

import importlib.util
from collections.abc import AsyncIterator, Callable
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType

from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import Connection, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection

from infrastructure.database import ConnectionFactory, DatabaseError, quote_identifier
from tenancy.infrastructure.observability import (
    DefaultMigrationRunnerProbe,
    MigrationRunnerProbe,
)
from tenancy.ports.exceptions import MigrationError
from tenancy.ports.migrations import BatchResult, MigrationTarget


@dataclass(frozen=True)
class MigrationFile:
    """A migration module on disk, identified by its file name."""

    name: str
    path: Path

    def load(self) -> ModuleType:
        """Import the migration module.

        Raises:
            ImportError: If the module lacks upgrade() or downgrade()
        """
        spec = importlib.util.spec_from_file_location(
            f"tenantctl_migration_{self.path.stem}", self.path
        )
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot load migration {self.name}")
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        for hook in ("upgrade", "downgrade"):
            if not callable(getattr(module, hook, None)):
                raise ImportError(f"Migration {self.name} does not define {hook}()")
        return module


def discover_migrations(directory: Path) -> list[MigrationFile]:
    """List migration files in ``directory`` sorted by file name.

    Files whose names start with an underscore are ignored.

    Raises:
        MigrationError: If the directory does not exist
    """
    if not directory.is_dir():
        raise MigrationError(
            f"Migration directory not found: {directory}", schema=""
        )
    return [
        MigrationFile(name=path.name, path=path)
        for path in sorted(directory.glob("*.py"))
        if not path.name.startswith("_")
    ]


def _run_operations(connection: Connection, operation: Callable[[], None]) -> None:
    """Run an upgrade or downgrade function with ``alembic.op`` bound."""
    context = MigrationContext.configure(connection=connection)
    with Operations.context(context):
        operation()


class MigrationRunner:
    """Applies and reverts migration batches using scoped connections.

    Concurrent runs against the same schema and tracking table are
    serialized with a session-level advisory lock.
    """

    def __init__(
        self,
        connection_factory: ConnectionFactory,
        probe: MigrationRunnerProbe | None = None,
    ):
        """Initialize the migration runner.

        Args:
            connection_factory: Factory for connections scoped to the target
            probe: Optional domain probe for observability
        """
        self._connection_factory = connection_factory
        self._probe = probe or DefaultMigrationRunnerProbe()

    async def apply_latest(self, target: MigrationTarget) -> BatchResult:
        """Apply every pending migration as one new batch.

        Args:
            target: Schema, directory and tracking table to migrate

        Returns:
            The new batch, or the current last batch with no files when
            nothing was pending

        Raises:
            MigrationError: If a migration fails; files committed before the
                failure are listed in ``applied``
        """
        files = self._discover(target)
        async with self._locked_connection(target, files) as (conn, completed):
            last_batch = max((batch for _, batch in completed), default=0)
            recorded = {name for name, _ in completed}
            pending = [f for f in files if f.name not in recorded]
            if not pending:
                self._probe.already_up_to_date(target.schema, last_batch)
                return BatchResult(batch=last_batch)

            batch = last_batch + 1
            applied: list[str] = []
            for migration in pending:
                try:
                    module = migration.load()
                    async with conn.begin():
                        await conn.run_sync(_run_operations, module.upgrade)
                        await conn.execute(
                            text(
                                f"INSERT INTO {self._tracking_table(target)} "
                                "(name, batch) VALUES (:name, :batch)"
                            ),
                            {"name": migration.name, "batch": batch},
                        )
                except Exception as e:
                    self._probe.migration_failed(
                        target.schema, migration.name, batch, e
                    )
                    raise MigrationError(
                        f"Migration {migration.name} failed in schema "
                        f"{target.schema}: {e}",
                        schema=target.schema,
                        migration=migration.name,
                        batch=batch,
                        applied=applied,
                    ) from e
                applied.append(migration.name)

        result = BatchResult(batch=batch, files=tuple(applied))
        self._probe.batch_applied(target.schema, result.batch, result.files)
        return result

    async def rollback_last_batch(self, target: MigrationTarget) -> BatchResult:
        """Revert the highest recorded batch, newest file first.

        Returns:
            The reverted batch, or batch 0 with no files when nothing was
            recorded

        Raises:
            MigrationError: If a downgrade fails; files already reverted are
                listed in ``applied``
        """
        files = self._discover(target)
        async with self._locked_connection(target, files) as (conn, completed):
            if not completed:
                self._probe.nothing_to_rollback(target.schema)
                return BatchResult(batch=0)

            by_name = {f.name: f for f in files}
            batch = max(b for _, b in completed)
            to_revert = [name for name, b in reversed(completed) if b == batch]
            reverted: list[str] = []
            for name in to_revert:
                try:
                    module = by_name[name].load()
                    async with conn.begin():
                        await conn.run_sync(_run_operations, module.downgrade)
                        await conn.execute(
                            text(
                                f"DELETE FROM {self._tracking_table(target)} "
                                "WHERE name = :name AND batch = :batch"
                            ),
                            {"name": name, "batch": batch},
                        )
                except Exception as e:
                    self._probe.migration_failed(target.schema, name, batch, e)
                    raise MigrationError(
                        f"Rollback of {name} failed in schema {target.schema}: {e}",
                        schema=target.schema,
                        migration=name,
                        batch=batch,
                        applied=reverted,
                    ) from e
                reverted.append(name)

        result = BatchResult(batch=batch, files=tuple(reverted))
        self._probe.batch_rolled_back(target.schema, result.batch, result.files)
        return result

    async def list_pending(self, target: MigrationTarget) -> list[str]:
        """List files apply_latest would apply, in order.

        Does not create the tracking table or take the migration lock.
        """
        files = self._discover(target)
        try:
            async with self._connection_factory.connect(target.scope) as conn:
                exists = await conn.scalar(
                    text("SELECT to_regclass(:qualified) IS NOT NULL"),
                    {"qualified": self._tracking_table(target)},
                )
                completed = await self._completed(conn, target) if exists else []
        except (DatabaseError, SQLAlchemyError) as e:
            self._probe.migration_failed(target.schema, None, None, e)
            raise MigrationError(
                f"Could not read migration status for {target.schema}: {e}",
                schema=target.schema,
            ) from e

        self._check_for_missing_files(target, completed, files)
        recorded = {name for name, _ in completed}
        pending = [f.name for f in files if f.name not in recorded]
        self._probe.pending_listed(target.schema, pending)
        return pending

    @asynccontextmanager
    async def _locked_connection(
        self, target: MigrationTarget, files: list[MigrationFile]
    ) -> AsyncIterator[tuple[AsyncConnection, list[tuple[str, int]]]]:
        """Connection holding the migration lock, with the recorded migrations.

        The tracking table is created if needed and every recorded file must
        still exist in ``files``.
        """
        lock_key = f"{target.schema}.{target.tracking_table}"
        async with AsyncExitStack() as stack:
            try:
                conn = await stack.enter_async_context(
                    self._connection_factory.connect(target.scope)
                )
                await conn.execute(
                    text("SELECT pg_advisory_lock(hashtext(:key))"), {"key": lock_key}
                )
                await conn.commit()
                stack.push_async_callback(self._release_lock, conn, target, lock_key)
                await self._ensure_tracking_table(conn, target)
                completed = await self._completed(conn, target)
            except (DatabaseError, SQLAlchemyError) as e:
                self._probe.migration_failed(target.schema, None, None, e)
                raise MigrationError(
                    f"Could not prepare migrations for {target.schema}: {e}",
                    schema=target.schema,
                ) from e
            self._check_for_missing_files(target, completed, files)
            yield conn, completed

    async def _release_lock(
        self, conn: AsyncConnection, target: MigrationTarget, lock_key: str
    ) -> None:
        try:
            if conn.in_transaction():
                await conn.rollback()
            await conn.execute(
                text("SELECT pg_advisory_unlock(hashtext(:key))"), {"key": lock_key}
            )
            await conn.commit()
        except SQLAlchemyError as e:
            # Closing the underlying connection releases session-level locks
            self._probe.lock_release_failed(target.schema, e)
            await conn.invalidate()

    async def _ensure_tracking_table(
        self, conn: AsyncConnection, target: MigrationTarget
    ) -> None:
        await conn.execute(
            text(
                f"CREATE TABLE IF NOT EXISTS {self._tracking_table(target)} ("
                "id SERIAL PRIMARY KEY, "
                "name VARCHAR(255) NOT NULL, "
                "batch INTEGER NOT NULL, "
                "migration_time TIMESTAMPTZ NOT NULL DEFAULT NOW())"
            )
        )
        await conn.commit()

    async def _completed(
        self, conn: AsyncConnection, target: MigrationTarget
    ) -> list[tuple[str, int]]:
        """Recorded (name, batch) pairs in the order they were applied."""
        result = await conn.execute(
            text(f"SELECT name, batch FROM {self._tracking_table(target)} ORDER BY id")
        )
        rows = [(row.name, row.batch) for row in result]
        await conn.commit()
        return rows

    def _discover(self, target: MigrationTarget) -> list[MigrationFile]:
        try:
            return discover_migrations(target.directory)
        except MigrationError as e:
            raise MigrationError(str(e), schema=target.schema) from e

    def _check_for_missing_files(
        self,
        target: MigrationTarget,
        completed: list[tuple[str, int]],
        files: list[MigrationFile],
    ) -> None:
        available = {f.name for f in files}
        missing = [name for name, _ in completed if name not in available]
        if missing:
            self._probe.missing_migration_files(target.schema, missing)
            raise MigrationError(
                f"The migration directory is corrupt, the following files are "
                f"missing: {', '.join(missing)}",
                schema=target.schema,
            )

    @staticmethod
    def _tracking_table(target: MigrationTarget) -> str:
        return f"{quote_identifier(target.schema)}.{quote_identifier(target.tracking_table)}"
