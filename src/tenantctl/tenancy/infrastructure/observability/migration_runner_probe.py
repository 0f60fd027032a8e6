"""Domain probe for migration runner operations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class MigrationRunnerProbe(Protocol):
    """Domain probe for applying and reverting migration batches."""

    def batch_applied(self, schema: str, batch: int, files: tuple[str, ...]) -> None:
        """Record that a batch of migrations was applied."""
        ...

    def already_up_to_date(self, schema: str, batch: int) -> None:
        """Record that no migration was pending."""
        ...

    def batch_rolled_back(
        self, schema: str, batch: int, files: tuple[str, ...]
    ) -> None:
        """Record that a batch of migrations was reverted."""
        ...

    def nothing_to_rollback(self, schema: str) -> None:
        """Record that no batch was recorded for the schema."""
        ...

    def migration_failed(
        self, schema: str, migration: str | None, batch: int | None, error: Exception
    ) -> None:
        """Record that a migration (or its bookkeeping) failed."""
        ...

    def missing_migration_files(self, schema: str, files: list[str]) -> None:
        """Record that recorded migrations have no file in the directory."""
        ...

    def pending_listed(self, schema: str, files: list[str]) -> None:
        """Record that pending migrations were listed."""
        ...

    def lock_release_failed(self, schema: str, error: Exception) -> None:
        """Record that the migration lock could not be released."""
        ...

    def with_context(self, context: ObservationContext) -> MigrationRunnerProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultMigrationRunnerProbe:
    """Default implementation of MigrationRunnerProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def with_context(self, context: ObservationContext) -> DefaultMigrationRunnerProbe:
        """Create a new probe with observation context bound."""
        return DefaultMigrationRunnerProbe(
            logger=self._logger.bind(**context.as_dict()), context=context
        )

    def batch_applied(self, schema: str, batch: int, files: tuple[str, ...]) -> None:
        """Record that a batch of migrations was applied."""
        self._logger.info(
            "migration_batch_applied",
            schema=schema,
            batch=batch,
            files=list(files),
        )

    def already_up_to_date(self, schema: str, batch: int) -> None:
        """Record that no migration was pending."""
        self._logger.info(
            "migrations_up_to_date",
            schema=schema,
            batch=batch,
        )

    def batch_rolled_back(
        self, schema: str, batch: int, files: tuple[str, ...]
    ) -> None:
        """Record that a batch of migrations was reverted."""
        self._logger.info(
            "migration_batch_rolled_back",
            schema=schema,
            batch=batch,
            files=list(files),
        )

    def nothing_to_rollback(self, schema: str) -> None:
        """Record that no batch was recorded for the schema."""
        self._logger.info(
            "migrations_nothing_to_rollback",
            schema=schema,
        )

    def migration_failed(
        self, schema: str, migration: str | None, batch: int | None, error: Exception
    ) -> None:
        """Record that a migration (or its bookkeeping) failed."""
        self._logger.error(
            "migration_failed",
            schema=schema,
            migration=migration,
            batch=batch,
            error=str(error),
            error_type=type(error).__name__,
        )

    def missing_migration_files(self, schema: str, files: list[str]) -> None:
        """Record that recorded migrations have no file in the directory."""
        self._logger.error(
            "migration_files_missing",
            schema=schema,
            files=files,
        )

    def pending_listed(self, schema: str, files: list[str]) -> None:
        """Record that pending migrations were listed."""
        self._logger.debug(
            "pending_migrations_listed",
            schema=schema,
            count=len(files),
        )

    def lock_release_failed(self, schema: str, error: Exception) -> None:
        """Record that the migration lock could not be released."""
        self._logger.warning(
            "migration_lock_release_failed",
            schema=schema,
            error=str(error),
        )
