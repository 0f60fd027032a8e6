"""Tenant aggregate for the tenancy context."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from tenancy.domain.exceptions import InvalidStatusTransitionError
from tenancy.domain.value_objects import (
    OrgId,
    SchemaName,
    TenantStatus,
    truncate_error_message,
)


@dataclass
class Tenant:
    """Tenant aggregate representing one isolated customer schema.

    Business rules:
    - schema_name is derived from org_id and never changes for a given org_id
    - status only moves PROVISIONING -> ACTIVE or PROVISIONING -> FAILED
    - any tenant may be re-provisioned, which resets activation and failure data
    - error_message is only set while FAILED and is bounded in length
    """

    org_id: OrgId
    schema_name: SchemaName
    status: TenantStatus = TenantStatus.PROVISIONING
    id: int | None = None
    started_at: datetime | None = None
    activated_at: datetime | None = None
    failed_at: datetime | None = None
    error_message: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None

    @classmethod
    def provision(cls, org_id: OrgId, now: datetime | None = None) -> Tenant:
        """Factory method for a tenant entering provisioning.

        Args:
            org_id: External organization identifier
            now: Timestamp to record (defaults to current UTC time)

        Returns:
            A Tenant in PROVISIONING with its schema name derived from org_id
        """
        tenant = cls(org_id=org_id, schema_name=SchemaName.for_org(org_id))
        tenant.start_provisioning(now)
        return tenant

    def start_provisioning(self, now: datetime | None = None) -> None:
        """Move the tenant (back) into PROVISIONING.

        Allowed from every state; activation and failure data are cleared.
        """
        now = now or datetime.now(UTC)
        self.schema_name = SchemaName.for_org(self.org_id)
        self.status = TenantStatus.PROVISIONING
        self.started_at = now
        self.activated_at = None
        self.failed_at = None
        self.error_message = None
        self.updated_at = now

    def activate(self, now: datetime | None = None) -> None:
        """Mark the tenant ACTIVE after its migrations succeeded.

        Raises:
            InvalidStatusTransitionError: If the tenant is not PROVISIONING
        """
        self._require_provisioning(TenantStatus.ACTIVE)
        now = now or datetime.now(UTC)
        self.status = TenantStatus.ACTIVE
        self.activated_at = now
        self.updated_at = now

    def fail(self, error: BaseException | str, now: datetime | None = None) -> None:
        """Mark the tenant FAILED, keeping a bounded copy of the error.

        Raises:
            InvalidStatusTransitionError: If the tenant is not PROVISIONING
        """
        self._require_provisioning(TenantStatus.FAILED)
        now = now or datetime.now(UTC)
        self.status = TenantStatus.FAILED
        self.failed_at = now
        self.error_message = truncate_error_message(error)
        self.updated_at = now

    @property
    def is_active(self) -> bool:
        return self.status == TenantStatus.ACTIVE

    def _require_provisioning(self, target: TenantStatus) -> None:
        if self.status != TenantStatus.PROVISIONING:
            raise InvalidStatusTransitionError(
                current=self.status.value, target=target.value
            )
