"""Protocol for master schema migration observability."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class MasterMigrationProbe(Protocol):
    """Domain probe for migrations of the shared schema."""

    def pending_master_migrations(self, schema: str, files: list[str]) -> None:
        """Record the result of a dry run."""
        ...

    def master_migrated(self, schema: str, batch: int, files: tuple[str, ...]) -> None:
        """Record that master migrations were applied."""
        ...

    def master_rolled_back(
        self, schema: str, batch: int, files: tuple[str, ...]
    ) -> None:
        """Record that the last master batch was reverted."""
        ...

    def with_context(self, context: ObservationContext) -> MasterMigrationProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultMasterMigrationProbe:
    """Default implementation of MasterMigrationProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def with_context(self, context: ObservationContext) -> DefaultMasterMigrationProbe:
        """Create a new probe with observation context bound."""
        return DefaultMasterMigrationProbe(
            logger=self._logger.bind(**context.as_dict()), context=context
        )

    def pending_master_migrations(self, schema: str, files: list[str]) -> None:
        """Record the result of a dry run."""
        self._logger.info(
            "master_migrations_pending",
            schema=schema,
            files=files,
        )

    def master_migrated(self, schema: str, batch: int, files: tuple[str, ...]) -> None:
        """Record that master migrations were applied."""
        self._logger.info(
            "master_migrated",
            schema=schema,
            batch=batch,
            files=list(files),
        )

    def master_rolled_back(
        self, schema: str, batch: int, files: tuple[str, ...]
    ) -> None:
        """Record that the last master batch was reverted."""
        self._logger.info(
            "master_rolled_back",
            schema=schema,
            batch=batch,
            files=list(files),
        )
