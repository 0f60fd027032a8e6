"""Unit tests for TenantRegistry.

Statements are captured from a mocked session and compiled with the
PostgreSQL dialect so the SQL can be inspected without a database.
"""

from datetime import UTC, datetime
from unittest.mock import Mock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError

from tenancy.domain import (
    InvalidArgumentError,
    InvalidStatusTransitionError,
    OrgId,
    SchemaName,
    TenantStatus,
    generate_schema_name,
)
from tenancy.infrastructure.models import TenantModel
from tenancy.infrastructure.observability import TenantRegistryProbe
from tenancy.infrastructure.tenant_registry import (
    PROVISIONING_MERGE_RULES,
    MergeRule,
    TenantRegistry,
    provisioning_conflict_values,
)
from tenancy.ports.exceptions import RegistryError

ORG = OrgId("org_42")
SCHEMA = SchemaName(generate_schema_name("org_42"))


def _compiled(mock_session):
    stmt = mock_session.execute.call_args.args[0]
    return stmt.compile(dialect=postgresql.dialect())


@pytest.fixture
def mock_probe():
    return Mock(spec=TenantRegistryProbe)


@pytest.fixture
def registry(mock_session, mock_probe):
    return TenantRegistry(session=mock_session, probe=mock_probe)


class TestMergeRules:
    """Tests for the re-provisioning merge rule table."""

    def test_every_column_has_a_rule(self):
        """Adding a column to tenants requires deciding its merge rule."""
        assert set(PROVISIONING_MERGE_RULES) == set(TenantModel.__table__.columns.keys())

    def test_identity_and_history_are_preserved(self):
        for column in ("id", "external_org_id", "created_at", "deleted_at"):
            assert PROVISIONING_MERGE_RULES[column] == MergeRule.PRESERVE

    def test_conflict_values_reset_lifecycle(self):
        now = datetime(2025, 11, 3, tzinfo=UTC)

        values = provisioning_conflict_values(SCHEMA, now)

        assert values == {
            "schema_name": SCHEMA.value,
            "status": "PROVISIONING",
            "started_at": now,
            "activated_at": None,
            "failed_at": None,
            "error_message": None,
            "updated_at": now,
        }


class TestUpsertProvisioning:
    """Tests for TenantRegistry.upsert_provisioning()."""

    @pytest.mark.asyncio
    async def test_single_upsert_statement_keyed_on_org_id(
        self, registry, mock_session, mock_probe
    ):
        await registry.upsert_provisioning(ORG, SCHEMA)

        mock_session.execute.assert_awaited_once()
        sql = str(_compiled(mock_session))
        assert sql.startswith("INSERT INTO tenants")
        assert "ON CONFLICT (external_org_id) DO UPDATE SET" in sql
        mock_probe.provisioning_recorded.assert_called_once_with("org_42", SCHEMA.value)

    @pytest.mark.asyncio
    async def test_conflict_update_leaves_preserved_columns_alone(
        self, registry, mock_session
    ):
        await registry.upsert_provisioning(ORG, SCHEMA)

        set_clause = str(_compiled(mock_session)).split("DO UPDATE SET", 1)[1]
        for column in ("status", "started_at", "activated_at", "failed_at"):
            assert f"{column} =" in set_clause
        for column in ("external_org_id", "created_at", "deleted_at"):
            assert column not in set_clause

    @pytest.mark.asyncio
    async def test_inserted_values(self, registry, mock_session):
        await registry.upsert_provisioning(ORG, SCHEMA)

        params = _compiled(mock_session).params
        assert params["external_org_id"] == "org_42"
        assert params["schema_name"] == SCHEMA.value
        assert params["status"] == "PROVISIONING"
        assert params["error_message"] is None

    @pytest.mark.asyncio
    async def test_does_not_commit(self, registry, mock_session):
        """The calling service owns the transaction."""
        await registry.upsert_provisioning(ORG, SCHEMA)
        mock_session.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_wraps_database_errors(self, registry, mock_session, mock_probe):
        mock_session.execute.side_effect = OperationalError("INSERT", {}, Exception("down"))

        with pytest.raises(RegistryError):
            await registry.upsert_provisioning(ORG, SCHEMA)

        mock_probe.registry_operation_failed.assert_called_once()
        mock_probe.provisioning_recorded.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejects_schema_of_another_org(self, registry, mock_session):
        other = SchemaName(generate_schema_name("org_7"))

        with pytest.raises(InvalidArgumentError):
            await registry.upsert_provisioning(ORG, other)

        mock_session.execute.assert_not_awaited()


def tenant_row(status="PROVISIONING"):
    return TenantModel(
        id=7,
        external_org_id="org_42",
        schema_name=SCHEMA.value,
        status=status,
        started_at=datetime(2025, 11, 3, tzinfo=UTC),
    )


def rows(model=None, rowcount=1):
    """Session results for the locked SELECT followed by the guarded UPDATE."""
    selected = Mock()
    selected.scalar_one_or_none.return_value = model
    return [selected, Mock(rowcount=rowcount)]


def _compiled_call(mock_session, index):
    stmt = mock_session.execute.call_args_list[index].args[0]
    return stmt.compile(dialect=postgresql.dialect())


class TestStateUpdates:
    """Tests for mark_active() and mark_failed()."""

    @pytest.mark.asyncio
    async def test_mark_active_locks_then_updates(
        self, registry, mock_session, mock_probe
    ):
        mock_session.execute.side_effect = rows(tenant_row())

        await registry.mark_active(ORG)

        assert "FOR UPDATE" in str(_compiled_call(mock_session, 0))
        compiled = _compiled_call(mock_session, 1)
        sql = str(compiled)
        assert sql.startswith("UPDATE tenants SET")
        assert "tenants.status = " in sql.split("WHERE", 1)[1]
        assert compiled.params["status"] == "ACTIVE"
        assert compiled.params["status_1"] == "PROVISIONING"
        assert compiled.params["activated_at"] is not None
        assert compiled.params["updated_at"] == compiled.params["activated_at"]
        assert compiled.params["external_org_id_1"] == "org_42"
        mock_probe.tenant_marked_active.assert_called_once_with("org_42")

    @pytest.mark.asyncio
    async def test_mark_failed_truncates_error(self, registry, mock_session, mock_probe):
        mock_session.execute.side_effect = rows(tenant_row())

        await registry.mark_failed(ORG, RuntimeError("x" * 10_000))

        params = _compiled_call(mock_session, 1).params
        assert params["status"] == "FAILED"
        assert params["failed_at"] is not None
        assert params["activated_at"] is None
        assert len(params["error_message"]) == 2000
        mock_probe.tenant_marked_failed.assert_called_once_with("org_42", 2000)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", ["ACTIVE", "FAILED"])
    async def test_only_provisioning_tenants_can_be_activated(
        self, registry, mock_session, mock_probe, status
    ):
        mock_session.execute.side_effect = rows(tenant_row(status))

        with pytest.raises(InvalidStatusTransitionError):
            await registry.mark_active(ORG)

        assert mock_session.execute.await_count == 1
        mock_probe.transition_rejected.assert_called_once_with("org_42", status, "ACTIVE")
        mock_probe.tenant_marked_active.assert_not_called()

    @pytest.mark.asyncio
    async def test_active_tenant_cannot_be_marked_failed(self, registry, mock_session):
        mock_session.execute.side_effect = rows(tenant_row("ACTIVE"))

        with pytest.raises(InvalidStatusTransitionError):
            await registry.mark_failed(ORG, "boom")

        assert mock_session.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_row_changed_between_lock_and_update(self, registry, mock_session):
        mock_session.execute.side_effect = rows(tenant_row(), rowcount=0)

        with pytest.raises(RegistryError, match="left PROVISIONING"):
            await registry.mark_active(ORG)

    @pytest.mark.asyncio
    async def test_unknown_tenant_is_reported(self, registry, mock_session, mock_probe):
        mock_session.execute.side_effect = rows(None)

        await registry.mark_active(ORG)

        assert mock_session.execute.await_count == 1
        mock_probe.tenant_not_found.assert_called_once_with("org_42")
        mock_probe.tenant_marked_active.assert_not_called()

    @pytest.mark.asyncio
    async def test_wraps_database_errors(self, registry, mock_session):
        mock_session.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))

        with pytest.raises(RegistryError):
            await registry.mark_failed(ORG, "boom")


class TestReads:
    """Tests for get_by_org_id() and list_tenant_schemas()."""

    @pytest.mark.asyncio
    async def test_list_tenant_schemas_does_not_filter_by_status(
        self, registry, mock_session, mock_probe
    ):
        """FAILED tenants are retried by later fleet runs."""
        result = Mock()
        result.scalars.return_value.all.return_value = ["tid_a", "tid_b", "tid_c"]
        mock_session.execute.return_value = result

        schemas = await registry.list_tenant_schemas()

        assert schemas == ["tid_a", "tid_b", "tid_c"]
        sql = str(_compiled(mock_session))
        assert "WHERE" not in sql
        assert "ORDER BY tenants.id" in sql
        mock_probe.schemas_listed.assert_called_once_with(3)

    @pytest.mark.asyncio
    async def test_get_by_org_id_returns_aggregate(self, registry, mock_session):
        failed_at = datetime(2025, 11, 3, tzinfo=UTC)
        model = TenantModel(
            id=7,
            external_org_id="org_42",
            schema_name=SCHEMA.value,
            status="FAILED",
            failed_at=failed_at,
            error_message="boom",
        )
        result = Mock()
        result.scalar_one_or_none.return_value = model
        mock_session.execute.return_value = result

        tenant = await registry.get_by_org_id(ORG)

        assert tenant.id == 7
        assert tenant.org_id == ORG
        assert tenant.schema_name == SCHEMA
        assert tenant.status == TenantStatus.FAILED
        assert tenant.failed_at == failed_at
        assert tenant.error_message == "boom"

    @pytest.mark.asyncio
    async def test_get_by_org_id_returns_none_when_missing(self, registry, mock_session):
        result = Mock()
        result.scalar_one_or_none.return_value = None
        mock_session.execute.return_value = result

        assert await registry.get_by_org_id(ORG) is None

    @pytest.mark.asyncio
    async def test_get_by_org_id_can_lock_the_row(self, registry, mock_session):
        result = Mock()
        result.scalar_one_or_none.return_value = None
        mock_session.execute.return_value = result

        await registry.get_by_org_id(ORG, for_update=True)

        assert str(_compiled(mock_session)).endswith("FOR UPDATE")
