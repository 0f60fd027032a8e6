"""Domain exceptions for the tenancy bounded context."""


class ProvisioningError(Exception):
    """Base class for every failure raised by tenant provisioning.

    Callers that only need to know "provisioning did not complete" can catch
    this type; the subclasses identify which step failed.
    """

    pass


class InvalidArgumentError(ProvisioningError, ValueError):
    """Raised when a tenant identifier is missing or malformed.

    Provisioning is aborted before any registry or database write happens.
    """

    pass


class InvalidStatusTransitionError(ProvisioningError):
    """Raised when a tenant is moved along a lifecycle edge that does not exist.

    Tenants may only move PROVISIONING -> ACTIVE or PROVISIONING -> FAILED;
    any state may go back to PROVISIONING.
    """

    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot transition tenant from {current} to {target}")
        self.current = current
        self.target = target
