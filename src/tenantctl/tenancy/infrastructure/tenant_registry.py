"""PostgreSQL implementation of ITenantRegistry.

The registry lives in the shared schema; the session handed in must be
bound to a connection scoped to it. The registry never commits: callers
wrap each call in ``async with session.begin()``.

Re-provisioning is an upsert keyed on external_org_id. What happens to each
column on conflict is declared in PROVISIONING_MERGE_RULES. Moving a tenant
out of PROVISIONING goes through the Tenant aggregate, with the row locked.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tenancy.domain import (
    InvalidStatusTransitionError,
    OrgId,
    SchemaName,
    Tenant,
    TenantStatus,
)
from tenancy.infrastructure.models import TenantModel
from tenancy.infrastructure.observability import (
    DefaultTenantRegistryProbe,
    TenantRegistryProbe,
)
from tenancy.ports.exceptions import InvalidArgumentError, RegistryError
from tenancy.ports.repositories import ITenantRegistry


class MergeRule(StrEnum):
    """What an upsert conflict does to a column."""

    PRESERVE = "preserve"
    RECOMPUTE = "recompute"
    RESET_TO_PROVISIONING = "reset_to_provisioning"
    NOW = "now"
    CLEAR = "clear"


PROVISIONING_MERGE_RULES: dict[str, MergeRule] = {
    "id": MergeRule.PRESERVE,
    "external_org_id": MergeRule.PRESERVE,
    "schema_name": MergeRule.RECOMPUTE,
    "status": MergeRule.RESET_TO_PROVISIONING,
    "started_at": MergeRule.NOW,
    "activated_at": MergeRule.CLEAR,
    "failed_at": MergeRule.CLEAR,
    "error_message": MergeRule.CLEAR,
    "created_at": MergeRule.PRESERVE,
    "updated_at": MergeRule.NOW,
    "deleted_at": MergeRule.PRESERVE,
}


def provisioning_conflict_values(
    schema_name: SchemaName, now: datetime
) -> dict[str, Any]:
    """Column values written when an upsert hits an existing row.

    Preserved columns are absent from the result.
    """
    resolvers: dict[MergeRule, Callable[[], Any]] = {
        MergeRule.RECOMPUTE: lambda: schema_name.value,
        MergeRule.RESET_TO_PROVISIONING: lambda: TenantStatus.PROVISIONING.value,
        MergeRule.NOW: lambda: now,
        MergeRule.CLEAR: lambda: None,
    }
    return {
        column: resolvers[rule]()
        for column, rule in PROVISIONING_MERGE_RULES.items()
        if rule != MergeRule.PRESERVE
    }


class TenantRegistry(ITenantRegistry):
    """Repository for the tenant registry table."""

    def __init__(
        self,
        session: AsyncSession,
        probe: TenantRegistryProbe | None = None,
    ) -> None:
        """Initialize registry with a session scoped to the shared schema.

        Args:
            session: AsyncSession bound to the master scope
            probe: Optional domain probe for observability
        """
        self._session = session
        self._probe = probe or DefaultTenantRegistryProbe()

    async def upsert_provisioning(self, org_id: OrgId, schema_name: SchemaName) -> None:
        """Insert the tenant in PROVISIONING or reset the existing row.

        Runs as a single INSERT ... ON CONFLICT statement.

        Raises:
            InvalidArgumentError: If schema_name is not the one derived from org_id
            RegistryError: If the write fails
        """
        now = datetime.now(UTC)
        tenant = Tenant.provision(org_id, now)
        if tenant.schema_name != schema_name:
            raise InvalidArgumentError(
                f"Schema {schema_name} does not belong to organization {org_id}"
            )
        stmt = insert(TenantModel).values(
            external_org_id=tenant.org_id.value,
            schema_name=tenant.schema_name.value,
            status=tenant.status.value,
            started_at=tenant.started_at,
            activated_at=tenant.activated_at,
            failed_at=tenant.failed_at,
            error_message=tenant.error_message,
            created_at=now,
            updated_at=tenant.updated_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[TenantModel.external_org_id],
            set_=provisioning_conflict_values(tenant.schema_name, now),
        )
        try:
            await self._session.execute(stmt)
        except SQLAlchemyError as e:
            self._probe.registry_operation_failed("upsert_provisioning", e)
            raise RegistryError(
                f"Failed to record provisioning for {org_id}: {e}"
            ) from e
        self._probe.provisioning_recorded(org_id.value, schema_name.value)

    async def mark_active(self, org_id: OrgId) -> None:
        """Move a PROVISIONING tenant to ACTIVE and stamp activated_at.

        Raises:
            InvalidStatusTransitionError: If the tenant is not PROVISIONING
            RegistryError: If the read or write fails
        """
        tenant = await self._transition("mark_active", org_id, lambda t: t.activate())
        if tenant is not None:
            self._probe.tenant_marked_active(org_id.value)

    async def mark_failed(self, org_id: OrgId, error: BaseException | str) -> None:
        """Move a PROVISIONING tenant to FAILED with a truncated error message.

        Raises:
            InvalidStatusTransitionError: If the tenant is not PROVISIONING
            RegistryError: If the read or write fails
        """
        tenant = await self._transition("mark_failed", org_id, lambda t: t.fail(error))
        if tenant is not None:
            self._probe.tenant_marked_failed(
                org_id.value, len(tenant.error_message or "")
            )

    async def get_by_org_id(
        self, org_id: OrgId, *, for_update: bool = False
    ) -> Tenant | None:
        """Fetch the tenant registered for an organization.

        Args:
            org_id: External organization identifier
            for_update: Lock the row until the surrounding transaction ends

        Returns:
            The Tenant aggregate, or None if not found
        """
        stmt = select(TenantModel).where(TenantModel.external_org_id == org_id.value)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            self._probe.registry_operation_failed("get_by_org_id", e)
            raise RegistryError(f"Failed to read tenant {org_id}: {e}") from e
        model = result.scalar_one_or_none()
        if model is None:
            return None
        return self._to_domain(model)

    async def list_tenant_schemas(self) -> list[str]:
        """List every tenant schema, oldest tenant first, whatever its status."""
        stmt = select(TenantModel.schema_name).order_by(TenantModel.id)
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            self._probe.registry_operation_failed("list_tenant_schemas", e)
            raise RegistryError(f"Failed to list tenant schemas: {e}") from e
        schemas = list(result.scalars().all())
        self._probe.schemas_listed(len(schemas))
        return schemas

    async def _transition(
        self,
        operation: str,
        org_id: OrgId,
        apply: Callable[[Tenant], None],
    ) -> Tenant | None:
        """Load the row under lock, apply a lifecycle change and write it back.

        Returns None when no tenant is registered for org_id.
        """
        tenant = await self.get_by_org_id(org_id, for_update=True)
        if tenant is None:
            self._probe.tenant_not_found(org_id.value)
            return None

        try:
            apply(tenant)
        except InvalidStatusTransitionError as e:
            self._probe.transition_rejected(org_id.value, e.current, e.target)
            raise

        update_stmt = (
            update(TenantModel)
            .where(
                TenantModel.external_org_id == org_id.value,
                TenantModel.status == TenantStatus.PROVISIONING.value,
            )
            .values(
                status=tenant.status.value,
                activated_at=tenant.activated_at,
                failed_at=tenant.failed_at,
                error_message=tenant.error_message,
                updated_at=tenant.updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        try:
            updated = await self._session.execute(update_stmt)
        except SQLAlchemyError as e:
            self._probe.registry_operation_failed(operation, e)
            raise RegistryError(f"Failed to {operation} for {org_id}: {e}") from e
        if updated.rowcount == 0:
            raise RegistryError(
                f"Failed to {operation} for {org_id}: "
                "tenant left PROVISIONING concurrently"
            )
        return tenant

    @staticmethod
    def _to_domain(model: TenantModel) -> Tenant:
        return Tenant(
            id=model.id,
            org_id=OrgId(value=model.external_org_id),
            schema_name=SchemaName(value=model.schema_name),
            status=TenantStatus(model.status),
            started_at=model.started_at,
            activated_at=model.activated_at,
            failed_at=model.failed_at,
            error_message=model.error_message,
            created_at=model.created_at,
            updated_at=model.updated_at,
            deleted_at=model.deleted_at,
        )
