"""Tenancy domain: the Tenant aggregate, its lifecycle and naming rules."""

from tenancy.domain.exceptions import (
    InvalidArgumentError,
    InvalidStatusTransitionError,
    ProvisioningError,
)
from tenancy.domain.schema_name_generator import (
    SchemaNameGenerator,
    generate_schema_name,
)
from tenancy.domain.tenant import Tenant
from tenancy.domain.value_objects import (
    ERROR_MESSAGE_MAX_LENGTH,
    OrgId,
    SchemaName,
    TenantStatus,
    truncate_error_message,
)

__all__ = [
    "ERROR_MESSAGE_MAX_LENGTH",
    "InvalidArgumentError",
    "InvalidStatusTransitionError",
    "OrgId",
    "ProvisioningError",
    "SchemaName",
    "SchemaNameGenerator",
    "Tenant",
    "TenantStatus",
    "generate_schema_name",
    "truncate_error_message",
]
