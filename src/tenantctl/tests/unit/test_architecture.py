"""Architecture tests using pytest-archon.

These tests enforce DDD architectural boundaries between layers
within the Tenancy bounded context.
"""

from pytest_archon import archrule


class TestTenancyDomainLayerBoundaries:
    """Tests that the domain layer has no forbidden dependencies."""

    def test_domain_does_not_import_infrastructure(self):
        """Domain layer should not depend on infrastructure.

        Schema naming and the tenant lifecycle must not know about
        connections, SQL, or migration tooling.
        """
        (
            archrule("domain_no_infrastructure")
            .match("tenancy.domain*")
            .should_not_import("tenancy.infrastructure*", "infrastructure*")
            .check("tenancy")
        )

    def test_domain_does_not_import_sqlalchemy(self):
        (
            archrule("domain_no_sqlalchemy")
            .match("tenancy.domain*")
            .should_not_import("sqlalchemy*", "alembic*", "asyncpg*")
            .check("tenancy")
        )

    def test_domain_does_not_import_application(self):
        (
            archrule("domain_no_application")
            .match("tenancy.domain*")
            .should_not_import("tenancy.application*")
            .check("tenancy")
        )


class TestTenancyPortsLayerBoundaries:
    """Tests that the ports layer has no forbidden dependencies."""

    def test_ports_does_not_import_infrastructure(self):
        """Ports define interfaces; they should not know about
        concrete implementations like TenantRegistry.
        """
        (
            archrule("ports_no_infrastructure")
            .match("tenancy.ports*")
            .should_not_import("tenancy.infrastructure*")
            .check("tenancy")
        )

    def test_ports_does_not_import_application(self):
        (
            archrule("ports_no_application")
            .match("tenancy.ports*")
            .should_not_import("tenancy.application*")
            .check("tenancy")
        )


class TestTenancyApplicationLayerBoundaries:
    """Tests that the application layer has no forbidden dependencies."""

    def test_application_does_not_import_infrastructure(self):
        """Application services should depend on ports, not adapters.

        Adapters are wired in by tenancy.dependencies.
        """
        (
            archrule("application_no_infrastructure")
            .match("tenancy.application*")
            .should_not_import("tenancy.infrastructure*")
            .check("tenancy")
        )

    def test_application_does_not_import_presentation(self):
        (
            archrule("application_no_presentation")
            .match("tenancy.application*")
            .should_not_import("tenancy.presentation*", "rich*")
            .check("tenancy")
        )


class TestSharedKernelBoundaries:
    def test_shared_kernel_does_not_import_bounded_contexts(self):
        (
            archrule("shared_kernel_no_contexts")
            .match("shared_kernel*")
            .should_not_import("tenancy*", "infrastructure*")
            .check("shared_kernel")
        )
