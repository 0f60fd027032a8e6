"""Schema name generation for tenant schemas.

This module provides deterministic schema names for every component
that needs to locate a tenant's schema (provisioning, fleet migrations,
data-plane services). Names are derived from an MD5 digest of the external
organization identifier so they are stable across processes and restarts.

Changes here affect every existing tenant.
"""

from __future__ import annotations

import hashlib
import re

from tenancy.domain.exceptions import InvalidArgumentError

SCHEMA_PREFIX = "tid_"
HASH_LENGTH = 10

# Printable identifier characters only; no whitespace or control characters
_ORG_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.:\-]{1,100}$")
_SCHEMA_NAME_PATTERN = re.compile(rf"^{SCHEMA_PREFIX}[0-9a-f]{{{HASH_LENGTH}}}$")


class SchemaNameGenerator:
    """Generates deterministic schema names for tenants.

    The name format is: tid_{hash}
    - hash: First 10 hex characters of MD5(org_id)

    The prefix keeps the result a valid lowercase PostgreSQL identifier that
    never needs case folding and can be safely double-quoted in DDL.

    Example:
        >>> SchemaNameGenerator.generate("org_42")
        "tid_" + hashlib.md5(b"org_42").hexdigest()[:10]

    Note:
        The mapping must never change: existing tenant schemas were created
        under the names it produced, and re-provisioning relies on getting the
        same name back.
    """

    @staticmethod
    def generate(org_id: str) -> str:
        """Generate the schema name for an organization.

        Args:
            org_id: External organization identifier. Must be a non-empty
                string of letters, digits, and ``_ . : -`` (max 100 chars).

        Returns:
            Schema name in the format ``tid_<10 hex chars>``

        Raises:
            InvalidArgumentError: If org_id is missing, empty, or malformed
        """
        if org_id is None or not isinstance(org_id, str):
            raise InvalidArgumentError("org_id must be a non-None string")

        if not org_id.strip():
            raise InvalidArgumentError("org_id must not be empty or whitespace-only")

        if not _ORG_ID_PATTERN.fullmatch(org_id):
            raise InvalidArgumentError(f"org_id is not a well-formed identifier: {org_id!r}")

        digest = hashlib.md5(org_id.encode("utf-8")).hexdigest()
        return f"{SCHEMA_PREFIX}{digest[:HASH_LENGTH]}"

    @staticmethod
    def is_valid(schema_name: str) -> bool:
        """Check whether a name has the shape of a generated tenant schema."""
        return bool(_SCHEMA_NAME_PATTERN.fullmatch(schema_name))


def generate_schema_name(org_id: str) -> str:
    """Generate the schema name for an organization.

    Convenience wrapper around SchemaNameGenerator.generate().
    """
    return SchemaNameGenerator.generate(org_id)
