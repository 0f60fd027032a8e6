"""Unit tests for SQL identifier quoting and connection scopes."""

import pytest

from infrastructure.database import ConnectionScope, InvalidIdentifierError
from infrastructure.database.identifiers import quote_identifier, quote_search_path


class TestQuoteIdentifier:
    """Tests for quote_identifier."""

    def test_quotes_plain_identifier(self):
        assert quote_identifier("tid_0123456789") == '"tid_0123456789"'

    @pytest.mark.parametrize(
        "name",
        ["", "1tenant", 'tid"; DROP SCHEMA public; --', "has space", "tid_abc\n", "a" * 64],
    )
    def test_rejects_unsafe_identifiers(self, name):
        """Anything but a plain identifier of at most 63 chars is rejected."""
        with pytest.raises(InvalidIdentifierError):
            quote_identifier(name)

    def test_invalid_identifier_is_a_value_error(self):
        with pytest.raises(ValueError):
            quote_identifier("")

    def test_quote_search_path_keeps_order(self):
        assert quote_search_path(("tid_abc", "public")) == '"tid_abc", "public"'


class TestConnectionScope:
    """Tests for ConnectionScope."""

    def test_master_scope_is_shared_schema_only(self):
        scope = ConnectionScope.master()
        assert scope.search_path == ("public",)
        assert scope.primary_schema == "public"

    def test_tenant_scope_falls_back_to_shared_schema(self):
        """Tenant objects can resolve extension types from the shared schema."""
        scope = ConnectionScope.tenant("tid_abc", "shared")
        assert scope.search_path == ("tid_abc", "shared")
        assert scope.primary_schema == "tid_abc"

    def test_empty_search_path_is_rejected(self):
        with pytest.raises(ValueError):
            ConnectionScope(search_path=())

    def test_unsafe_schema_is_rejected(self):
        with pytest.raises(InvalidIdentifierError):
            ConnectionScope.tenant("bad-name")

    def test_scopes_are_value_objects(self):
        assert ConnectionScope.tenant("tid_abc") == ConnectionScope.tenant("tid_abc")
