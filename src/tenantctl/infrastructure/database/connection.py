"""Scoped database connections.

A connection scope is an ordered PostgreSQL search path. The factory hands
out fresh, independently closable connections (or sessions) bound to a
scope, so nothing in the application shares a process-wide connection or
mutates ambient state to switch between the master and tenant schemas.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, AsyncSession

from infrastructure.database.engines import create_engine_from_settings
from infrastructure.database.exceptions import DatabaseConnectionError
from infrastructure.database.identifiers import quote_identifier, quote_search_path
from infrastructure.observability import ConnectionProbe, DefaultConnectionProbe

if TYPE_CHECKING:
    from infrastructure.settings import DatabaseSettings

__all__ = ["ConnectionFactory", "ConnectionScope"]


@dataclass(frozen=True)
class ConnectionScope:
    """Ordered list of schemas consulted for unqualified names.

    The first schema is where unqualified objects are created, including
    migration tracking tables.
    """

    search_path: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.search_path:
            raise ValueError("search_path must contain at least one schema")
        for schema in self.search_path:
            quote_identifier(schema)

    @property
    def primary_schema(self) -> str:
        """Schema that receives newly created objects."""
        return self.search_path[0]

    @classmethod
    def master(cls, shared_schema: str = "public") -> ConnectionScope:
        """Scope for the shared schema holding the tenant registry."""
        return cls(search_path=(shared_schema,))

    @classmethod
    def tenant(cls, schema_name: str, shared_schema: str = "public") -> ConnectionScope:
        """Scope for a tenant schema, falling back to the shared schema.

        The fallback lets tenant objects reference types owned by extensions
        installed in the shared schema (e.g. ``vector``).
        """
        return cls(search_path=(schema_name, shared_schema))


class ConnectionFactory:
    """Factory for scoped connections drawn from one async engine.

    Every connection handed out has its search path set on checkout and
    reset before it goes back to the pool, on every exit path.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        probe: ConnectionProbe | None = None,
    ):
        """Initialize the connection factory.

        Args:
            engine: Async engine owning the connection pool
            probe: Optional observability probe
        """
        self._engine = engine
        self._probe = probe or DefaultConnectionProbe()

    @classmethod
    def from_settings(
        cls,
        settings: DatabaseSettings,
        probe: ConnectionProbe | None = None,
    ) -> ConnectionFactory:
        """Create a factory with a new engine built from settings."""
        probe = probe or DefaultConnectionProbe()
        return cls(create_engine_from_settings(settings, probe), probe=probe)

    @asynccontextmanager
    async def connect(self, scope: ConnectionScope) -> AsyncIterator[AsyncConnection]:
        """Check out a connection whose search path is ``scope``.

        The connection is not in a transaction when yielded; callers manage
        transactions with ``async with conn.begin()``.

        Raises:
            DatabaseConnectionError: If no connection can be established
        """
        try:
            conn = await self._engine.connect()
        except (SQLAlchemyError, OSError) as e:
            url = self._engine.url
            self._probe.connection_failed(
                host=url.host or "", database=url.database or "", error=e
            )
            raise DatabaseConnectionError(f"Failed to connect to database: {e}") from e

        try:
            await conn.execute(
                text(f"SET search_path TO {quote_search_path(scope.search_path)}")
            )
            await conn.commit()
            self._probe.scope_acquired(scope.search_path)
            yield conn
        finally:
            await self._release(conn, scope)

    @asynccontextmanager
    async def session(self, scope: ConnectionScope) -> AsyncIterator[AsyncSession]:
        """Open an AsyncSession bound to a connection scoped to ``scope``.

        Usage:
            async with factory.session(ConnectionScope.master()) as session:
                async with session.begin():
                    await session.execute(...)
        """
        async with self.connect(scope) as conn:
            session = AsyncSession(bind=conn, expire_on_commit=False)
            try:
                yield session
            finally:
                await session.close()

    async def dispose(self) -> None:
        """Close the engine and every pooled connection."""
        await self._engine.dispose()
        self._probe.engine_disposed()

    async def _release(self, conn: AsyncConnection, scope: ConnectionScope) -> None:
        try:
            if conn.in_transaction():
                await conn.rollback()
            await conn.execute(text("RESET search_path"))
            await conn.commit()
        except SQLAlchemyError as e:
            # Never return a connection with an unknown search path to the pool
            self._probe.connection_reset_failed(scope.search_path, e)
            await conn.invalidate()
        finally:
            await conn.close()
            self._probe.scope_released(scope.search_path)
