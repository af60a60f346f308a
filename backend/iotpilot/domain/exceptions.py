"""Domain-level exception hierarchy."""


class DomainError(Exception):
    """Base exception for service-layer errors."""

    def __init__(self, message: str = "Domain error") -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    """Raised when a requested resource cannot be located."""


class ConflictError(DomainError):
    """Raised when a unique constraint or business rule is violated."""


class ForbiddenError(DomainError):
    """Raised when a user attempts an operation they are not allowed to perform."""


class ValidationError(DomainError):
    """Raised when a value object rejects its input."""


class BadRequestError(DomainError):
    """Raised when a request value is well-formed but outside accepted bounds."""


class UnauthorizedError(DomainError):
    """Raised when authentication credentials are invalid."""


# -----------------------------------------------------------------------------
# Tenancy


class TenantAccessDenied(ForbiddenError):
    def __init__(self, message: str = "Access to this tenant is denied") -> None:
        super().__init__(message)


class CrossTenantAccess(ForbiddenError):
    def __init__(self, source_customer_id=None, target_customer_id=None) -> None:
        super().__init__(
            f"Cross-tenant access from customer {source_customer_id} "
            f"to customer {target_customer_id} is not allowed"
        )
        self.source_customer_id = source_customer_id
        self.target_customer_id = target_customer_id


class TenantOperationNotAllowed(ForbiddenError):
    pass


class TenantNotFound(NotFoundError):
    def __init__(self, customer_id=None) -> None:
        super().__init__(
            f"Customer {customer_id} not found" if customer_id else "Customer not found"
        )
        self.customer_id = customer_id


class TenantInactive(ConflictError):
    def __init__(self, customer_id=None) -> None:
        super().__init__(f"Customer {customer_id} is inactive")
        self.customer_id = customer_id


class TenantSuspended(ConflictError):
    def __init__(self, customer_id=None) -> None:
        super().__init__(f"Customer {customer_id} is suspended")
        self.customer_id = customer_id


class TenantQuotaExceeded(ConflictError):
    def __init__(self, resource: str, limit: int) -> None:
        super().__init__(f"Quota exceeded for {resource}: limit is {limit}")
        self.resource = resource
        self.limit = limit


# -----------------------------------------------------------------------------
# Devices


class DeviceNotFound(NotFoundError):
    def __init__(self, message: str = "Device not found") -> None:
        super().__init__(message)


class DeviceAlreadyExists(ConflictError):
    def __init__(self, device_id: str) -> None:
        super().__init__(f"Device {device_id} already exists")
        self.device_id = device_id


class DeviceAccessDenied(ForbiddenError):
    def __init__(self, device_id=None) -> None:
        super().__init__(f"Access to device {device_id} is denied")
        self.device_id = device_id


class InvalidDeviceData(ValidationError):
    pass


class SSHConnectionFailed(ForbiddenError):
    """SSH access to a device was refused by policy."""

    def __init__(self, device_id, reason: str) -> None:
        super().__init__(f"SSH connection to device {device_id} failed: {reason}")
        self.device_id = device_id
        self.reason = reason


class DeviceUnreachable(DomainError):
    """Raised when a device cannot be contacted over the network."""
