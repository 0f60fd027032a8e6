"""Helpers for embedding identifiers in raw DDL.

Schema and table names cannot be bound as query parameters, so they are
validated against a conservative pattern and double-quoted instead.
"""

from __future__ import annotations

import re

from infrastructure.database.exceptions import InvalidIdentifierError

# PostgreSQL truncates identifiers beyond 63 bytes
_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


def quote_identifier(name: str) -> str:
    """Return ``name`` double-quoted for use in SQL.

    Raises:
        InvalidIdentifierError: If name is not a plain identifier
    """
    if not isinstance(name, str) or not _IDENTIFIER_PATTERN.fullmatch(name):
        raise InvalidIdentifierError(f"Invalid SQL identifier: {name!r}")
    return f'"{name}"'


def quote_search_path(schemas: tuple[str, ...]) -> str:
    """Render an ordered list of schemas as a search_path value."""
    return ", ".join(quote_identifier(schema) for schema in schemas)
