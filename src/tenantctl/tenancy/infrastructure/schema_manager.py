"""PostgreSQL implementation of ISchemaManager.

Creates tenant schemas and installs the extensions tenant migrations depend
on. Both operations are idempotent. An extension is looked up in
pg_extension before creation. When another session creates the same schema
or extension concurrently, PostgreSQL can report a duplicate_object or
unique_violation even with IF NOT EXISTS; both are treated as success.
"""

from __future__ import annotations

from typing import NoReturn

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database import InvalidIdentifierError, quote_identifier
from tenancy.domain import SchemaName
from tenancy.infrastructure.observability import (
    DefaultSchemaManagerProbe,
    SchemaManagerProbe,
)
from tenancy.ports.exceptions import SchemaCreationError
from tenancy.ports.repositories import ISchemaManager

DUPLICATE_OBJECT = "42710"
UNIQUE_VIOLATION = "23505"
_ALREADY_EXISTS_CODES = frozenset({DUPLICATE_OBJECT, UNIQUE_VIOLATION})


def sqlstate_of(error: DBAPIError) -> str | None:
    """Extract the SQLSTATE code from a wrapped driver error, if exposed."""
    orig = error.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


class PostgresSchemaManager(ISchemaManager):
    """Runs schema and extension DDL on a session's connection.

    Each statement runs in its own transaction, so the session must not be
    inside one when these methods are called.
    """

    def __init__(
        self,
        session: AsyncSession,
        probe: SchemaManagerProbe | None = None,
    ) -> None:
        self._session = session
        self._probe = probe or DefaultSchemaManagerProbe()

    async def ensure_schema(self, schema_name: SchemaName) -> None:
        """Create the schema if it does not exist."""
        try:
            statement = f"CREATE SCHEMA IF NOT EXISTS {quote_identifier(schema_name.value)}"
        except InvalidIdentifierError as e:
            raise SchemaCreationError(str(e), schema=schema_name.value) from e

        try:
            async with self._session.begin():
                await self._session.execute(text(statement))
        except DBAPIError as e:
            if sqlstate_of(e) not in _ALREADY_EXISTS_CODES:
                self._fail_schema(statement, schema_name, e)
            self._probe.schema_created_concurrently(schema_name.value)
            return
        except SQLAlchemyError as e:
            self._fail_schema(statement, schema_name, e)
        self._probe.schema_ensured(schema_name.value)

    def _fail_schema(
        self, statement: str, schema_name: SchemaName, error: SQLAlchemyError
    ) -> NoReturn:
        self._probe.ddl_failed(statement, error)
        raise SchemaCreationError(
            f"Failed to create schema {schema_name}: {error}",
            schema=schema_name.value,
        ) from error

    async def ensure_extensions(self, extensions: list[str], schema: str) -> None:
        """Install each extension into ``schema`` unless already installed."""
        for extension in extensions:
            await self._ensure_extension(extension, schema)

    async def _ensure_extension(self, extension: str, schema: str) -> None:
        try:
            statement = (
                f"CREATE EXTENSION IF NOT EXISTS {quote_identifier(extension)} "
                f"WITH SCHEMA {quote_identifier(schema)}"
            )
        except InvalidIdentifierError as e:
            raise SchemaCreationError(str(e), schema=schema) from e

        try:
            async with self._session.begin():
                installed = await self._session.scalar(
                    text("SELECT 1 FROM pg_extension WHERE extname = :name"),
                    {"name": extension},
                )
                if installed:
                    self._probe.extension_already_present(extension, schema)
                    return
                await self._session.execute(text(statement))
        except DBAPIError as e:
            if sqlstate_of(e) in _ALREADY_EXISTS_CODES:
                self._probe.extension_created_concurrently(extension, schema)
                return
            self._probe.ddl_failed(statement, e)
            raise SchemaCreationError(
                f"Failed to create extension {extension}: {e}", schema=schema
            ) from e
        except SQLAlchemyError as e:
            self._probe.ddl_failed(statement, e)
            raise SchemaCreationError(
                f"Failed to create extension {extension}: {e}", schema=schema
            ) from e
        self._probe.extension_created(extension, schema)
