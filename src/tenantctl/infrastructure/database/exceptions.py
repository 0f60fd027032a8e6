"""Database-specific exceptions shared by every adapter."""


class DatabaseError(Exception):
    """Base exception for database operations."""

    pass


class DatabaseConnectionError(DatabaseError):
    """Raised when a scoped connection cannot be established."""

    pass


class InvalidIdentifierError(DatabaseError, ValueError):
    """Raised when a schema or table name is unsafe to embed in SQL."""

    pass
