"""Value objects for the tenancy domain.

Value objects are immutable descriptors that provide type safety and
domain semantics for identifiers and domain concepts.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from tenancy.domain.exceptions import InvalidArgumentError
from tenancy.domain.schema_name_generator import SchemaNameGenerator

ERROR_MESSAGE_MAX_LENGTH = 2000


class TenantStatus(StrEnum):
    """Lifecycle state of a tenant schema.

    The registry row is the single source of truth for this state.
    """

    PROVISIONING = "PROVISIONING"
    ACTIVE = "ACTIVE"
    FAILED = "FAILED"


@dataclass(frozen=True)
class OrgId:
    """External organization identifier owned by the identity system."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value.strip():
            raise InvalidArgumentError("org_id is required")

    def __str__(self) -> str:
        """Return string representation."""
        return self.value


@dataclass(frozen=True)
class SchemaName:
    """Identifier of a tenant's PostgreSQL schema."""

    value: str

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def for_org(cls, org_id: OrgId) -> SchemaName:
        """Derive the schema name for an organization."""
        return cls(value=SchemaNameGenerator.generate(org_id.value))


def truncate_error_message(error: BaseException | str) -> str:
    """Render an error for storage, bounded to ERROR_MESSAGE_MAX_LENGTH characters."""
    return str(error)[:ERROR_MESSAGE_MAX_LENGTH]
