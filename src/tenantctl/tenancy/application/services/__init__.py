"""Application services for the tenancy bounded context.

Application services orchestrate the registry, schema manager and
migration runner to fulfil the provisioning and migration use cases.
"""

from tenancy.application.services.fleet_service import (
    FleetMigrationService,
    FleetOperation,
    FleetRunReport,
    StepStatus,
    TenantStepResult,
)
from tenancy.application.services.master_migration_service import (
    MasterMigrationResult,
    MasterMigrationService,
)
from tenancy.application.services.provisioning_service import (
    TenantProvisioningService,
)

__all__ = [
    "FleetMigrationService",
    "FleetOperation",
    "FleetRunReport",
    "MasterMigrationResult",
    "MasterMigrationService",
    "StepStatus",
    "TenantProvisioningService",
    "TenantStepResult",
]
