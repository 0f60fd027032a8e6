"""Domain probes for infrastructure observability.

Domain probes provide a high-level instrumentation API oriented around
domain semantics, keeping infrastructure code clean and testable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class ConnectionProbe(Protocol):
    """Domain probe for database connection observability.

    This probe captures domain-significant events related to scoped
    database connections without exposing logging implementation details.
    """

    def scope_acquired(self, search_path: tuple[str, ...]) -> None:
        """Record that a connection was checked out for a search path."""
        ...

    def scope_released(self, search_path: tuple[str, ...]) -> None:
        """Record that a scoped connection was returned to the pool."""
        ...

    def connection_failed(self, host: str, database: str, error: Exception) -> None:
        """Record that a database connection attempt failed."""
        ...

    def connection_reset_failed(
        self, search_path: tuple[str, ...], error: Exception
    ) -> None:
        """Record that resetting a connection's search path failed."""
        ...

    def ssl_certificate_unreadable(self, path: str, error: Exception) -> None:
        """Record that the configured CA bundle could not be loaded."""
        ...

    def engine_disposed(self) -> None:
        """Record that the engine and its pool were closed."""
        ...

    def with_context(self, context: ObservationContext) -> ConnectionProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultConnectionProbe:
    """Default implementation of ConnectionProbe using structlog.

    Supports observation context for including run-scoped metadata
    with all log events.
    """

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def with_context(self, context: ObservationContext) -> DefaultConnectionProbe:
        """Create a new probe with observation context bound."""
        return DefaultConnectionProbe(
            logger=self._logger.bind(**context.as_dict()), context=context
        )

    def scope_acquired(self, search_path: tuple[str, ...]) -> None:
        """Record that a connection was checked out for a search path."""
        self._logger.debug(
            "database_scope_acquired",
            search_path=list(search_path),
        )

    def scope_released(self, search_path: tuple[str, ...]) -> None:
        """Record that a scoped connection was returned to the pool."""
        self._logger.debug(
            "database_scope_released",
            search_path=list(search_path),
        )

    def connection_failed(self, host: str, database: str, error: Exception) -> None:
        """Record that a database connection attempt failed."""
        self._logger.error(
            "database_connection_failed",
            host=host,
            database=database,
            error=str(error),
        )

    def connection_reset_failed(
        self, search_path: tuple[str, ...], error: Exception
    ) -> None:
        """Record that resetting a connection's search path failed."""
        self._logger.warning(
            "database_connection_reset_failed",
            search_path=list(search_path),
            error=str(error),
        )

    def ssl_certificate_unreadable(self, path: str, error: Exception) -> None:
        """Record that the configured CA bundle could not be loaded."""
        self._logger.warning(
            "database_ssl_certificate_unreadable",
            path=path,
            error=str(error),
        )

    def engine_disposed(self) -> None:
        """Record that the engine and its pool were closed."""
        self._logger.debug(
            "database_engine_disposed",
        )
