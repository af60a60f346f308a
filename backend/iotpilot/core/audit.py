"""Audit logging for security-sensitive operations.

Audit records are plain structured log lines on the ``iotpilot.audit``
logger, tagged with ``"audit": true`` so aggregation can route them to
separate retention. Each record captures who acted (user, role, tenant),
what was touched (action, resource), where the request came from and
whether it succeeded.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from .logging import get_logger


class AuditAction(str, Enum):
    """Types of auditable actions."""

    # Authentication
    LOGIN_SUCCESS = "auth.login.success"
    LOGIN_FAILURE = "auth.login.failure"
    LOGOUT = "auth.logout"
    REGISTER = "auth.register"
    PASSWORD_RESET = "auth.password.reset"

    # API keys
    API_KEY_CREATE = "api_key.create"
    API_KEY_REVOKE = "api_key.revoke"

    # User management
    USER_APPROVE = "user.approve"
    USER_REJECT = "user.reject"

    # Customer management
    CUSTOMER_CREATE = "customer.create"
    CUSTOMER_UPDATE = "customer.update"
    CUSTOMER_STATUS_CHANGE = "customer.status.change"

    # Devices
    DEVICE_REGISTER = "device.register"
    DEVICE_UPDATE = "device.update"
    DEVICE_DELETE = "device.delete"
    DEVICE_SETTINGS_UPDATE = "device.settings.update"
    ALERT_DELETE = "alert.delete"

    # Remote execution
    COMMAND_EXECUTE = "command.execute"
    SSH_SESSION_OPEN = "ssh.session.open"
    SSH_SESSION_CLOSE = "ssh.session.close"

    # Access control
    ACCESS_DENIED = "access.denied"


class AuditOutcome(str, Enum):
    """Outcome of an audited action."""

    SUCCESS = "success"
    FAILURE = "failure"
    DENIED = "denied"
    ERROR = "error"


@dataclass
class AuditContext:
    """Who performed the action and from where."""

    user_id: Optional[int] = None
    email: Optional[str] = None
    user_role: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    request_id: Optional[str] = None
    customer_id: Optional[int] = None


@dataclass
class AuditEvent:
    """Represents a single audit log entry."""

    action: AuditAction
    outcome: AuditOutcome
    context: AuditContext
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    resource_name: Optional[str] = None
    details: dict[str, Any] = field(default_factory=dict)
    error_message: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert event to dictionary for logging."""
        data: dict[str, Any] = {
            "audit": True,
            "timestamp": self.timestamp.isoformat(),
            "action": self.action.value,
            "outcome": self.outcome.value,
            "context": asdict(self.context),
        }
        if self.resource_type:
            data["resource"] = {
                "type": self.resource_type,
                "id": self.resource_id,
                "name": self.resource_name,
            }
        if self.details:
            data["details"] = self.details
        if self.error_message:
            data["error"] = self.error_message
        return data


class AuditLogger:
    """Writes audit events to a dedicated logger."""

    def __init__(self, logger_name: str = "audit") -> None:
        self._logger = get_logger(f"iotpilot.{logger_name}")
        # Audit records are never filtered by the app log level
        self._logger.setLevel(logging.INFO)

    def log(self, event: AuditEvent) -> None:
        message = f"AUDIT: {event.action.value} - {event.outcome.value}"
        log_data = event.to_dict()
        if event.outcome == AuditOutcome.ERROR:
            self._logger.error(message, extra=log_data)
        elif event.outcome in (AuditOutcome.FAILURE, AuditOutcome.DENIED):
            self._logger.warning(message, extra=log_data)
        else:
            self._logger.info(message, extra=log_data)


_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """Return the process-wide AuditLogger."""
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger()
    return _audit_logger


def audit_log(
    action: AuditAction,
    outcome: AuditOutcome,
    *,
    user: Optional[Any] = None,
    customer_id: Optional[int] = None,
    request: Optional[Any] = None,
    email: Optional[str] = None,
    resource_type: Optional[str] = None,
    resource_id: Optional[Any] = None,
    resource_name: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
    error_message: Optional[str] = None,
) -> None:
    """Log an audit event using the global logger.

    Args:
        action: Type of action being performed.
        outcome: Result of the action.
        user: Acting ``User`` row, if authenticated.
        customer_id: Tenant the action applies to. Defaults to the user's tenant.
        request: FastAPI request, used for client IP, user agent and request id.
        email: Email to record when no user row is available (failed logins).
        resource_type: Type of resource affected (``device``, ``user``...).
        resource_id: Identifier of the affected resource.
        resource_name: Human-readable name of the resource.
        details: Additional details, masked before logging.
        error_message: Error details if the action failed.

    Example:
        >>> audit_log(AuditAction.LOGIN_FAILURE, AuditOutcome.FAILURE, email="a@b.io")
    """
    context = create_audit_context(request, user)
    if email and not context.email:
        context.email = email
    if customer_id is not None:
        context.customer_id = customer_id

    event = AuditEvent(
        action=action,
        outcome=outcome,
        context=context,
        resource_type=resource_type,
        resource_id=str(resource_id) if resource_id is not None else None,
        resource_name=resource_name,
        details=mask_sensitive_data(details or {}),
        error_message=error_message,
    )
    get_audit_logger().log(event)


def create_audit_context(request: Optional[Any] = None, user: Optional[Any] = None) -> AuditContext:
    """Build an AuditContext from a FastAPI request and user row."""
    context = AuditContext()
    if user is not None:
        context.user_id = user.id
        context.email = user.email
        context.user_role = user.role
        context.customer_id = user.customer_id

    if request is not None:
        context.ip_address = get_client_ip(request)
        context.user_agent = request.headers.get("user-agent")
        context.request_id = request.headers.get("x-request-id")
    return context


def get_client_ip(request: Any) -> Optional[str]:
    """Client address, preferring proxy headers."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None


def mask_sensitive_data(
    data: dict[str, Any], sensitive_keys: set[str] | None = None
) -> dict[str, Any]:
    """Return a copy of ``data`` with secret-looking fields masked."""
    if sensitive_keys is None:
        sensitive_keys = {
            "password",
            "hashed_password",
            "secret",
            "token",
            "api_key",
            "private_key",
            "ssh_key",
        }

    masked: dict[str, Any] = {}
    for key, value in data.items():
        if any(s in key.lower() for s in sensitive_keys):
            masked[key] = "***MASKED***"
        elif isinstance(value, dict):
            masked[key] = mask_sensitive_data(value, sensitive_keys)
        else:
            masked[key] = value
    return masked
