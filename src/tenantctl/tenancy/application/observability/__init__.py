"""Domain-Oriented Observability for the tenancy application layer.

Probes for application service operations following Domain-Oriented Observability patterns.
"""

from tenancy.application.observability.fleet_service_probe import (
    DefaultFleetServiceProbe,
    FleetServiceProbe,
)
from tenancy.application.observability.master_migration_probe import (
    DefaultMasterMigrationProbe,
    MasterMigrationProbe,
)
from tenancy.application.observability.provisioning_service_probe import (
    DefaultProvisioningServiceProbe,
    ProvisioningServiceProbe,
)

__all__ = [
    "FleetServiceProbe",
    "DefaultFleetServiceProbe",
    "MasterMigrationProbe",
    "DefaultMasterMigrationProbe",
    "ProvisioningServiceProbe",
    "DefaultProvisioningServiceProbe",
]
