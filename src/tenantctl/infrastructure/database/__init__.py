"""Database infrastructure - shared connection primitives."""

from infrastructure.database.connection import ConnectionFactory, ConnectionScope
from infrastructure.database.exceptions import (
    DatabaseConnectionError,
    DatabaseError,
    InvalidIdentifierError,
)
from infrastructure.database.identifiers import quote_identifier

__all__ = [
    "ConnectionFactory",
    "ConnectionScope",
    "DatabaseConnectionError",
    "DatabaseError",
    "InvalidIdentifierError",
    "quote_identifier",
]
