"""Domain events published on the in-process event bus."""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from iotpilot.domain.context import TenantContext


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(kw_only=True)
class DomainEvent:
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    occurred_on: datetime = field(default_factory=_utcnow)

    @property
    def event_type(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["event_type"] = self.event_type
        data["occurred_on"] = self.occurred_on.isoformat()
        return data


@dataclass(kw_only=True)
class TenantScopedEvent(DomainEvent):
    tenant_id: Optional[int]

    def belongs_to(self, context: TenantContext) -> bool:
        """Whether a handler running under ``context`` may see this event."""
        return context.has_access(self.tenant_id)


# -----------------------------------------------------------------------------
# Customers


@dataclass(kw_only=True)
class CustomerCreated(TenantScopedEvent):
    name: str


@dataclass(kw_only=True)
class CustomerStatusChanged(TenantScopedEvent):
    old_status: str
    new_status: str
    reason: Optional[str] = None


@dataclass(kw_only=True)
class CustomerSettingsUpdated(TenantScopedEvent):
    settings: dict[str, Any]


# -----------------------------------------------------------------------------
# Users


@dataclass(kw_only=True)
class UserRegistered(TenantScopedEvent):
    user_id: int
    email: str
    status: str


@dataclass(kw_only=True)
class UserLoggedIn(TenantScopedEvent):
    user_id: int
    email: str
    remember: bool = False


# -----------------------------------------------------------------------------
# Devices


@dataclass(kw_only=True)
class DeviceRegistered(TenantScopedEvent):
    device_pk: int
    device_id: str
    hostname: str
    auto_registered: bool = False


@dataclass(kw_only=True)
class DeviceUpdated(TenantScopedEvent):
    device_pk: int
    changes: dict[str, Any]


@dataclass(kw_only=True)
class DeviceStatusChanged(TenantScopedEvent):
    device_pk: int
    old_status: str
    new_status: str


@dataclass(kw_only=True)
class DeviceRemoved(TenantScopedEvent):
    device_pk: int
    device_id: str


@dataclass(kw_only=True)
class MetricsCollected(TenantScopedEvent):
    device_pk: int
    metrics: dict[str, float]


@dataclass(kw_only=True)
class CommandExecuted(TenantScopedEvent):
    device_pk: int
    command_id: int
    command: str
    status: str


@dataclass(kw_only=True)
class SSHSessionStarted(TenantScopedEvent):
    session_id: str
    device_pk: int
    user_id: Optional[int]


@dataclass(kw_only=True)
class SSHSessionEnded(TenantScopedEvent):
    session_id: str
    device_pk: int
    command_count: int
