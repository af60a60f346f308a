"""Device business policies.

Each policy exposes ``check(...)`` which returns normally or raises the
matching domain exception.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from iotpilot.core.permissions import UserRole, has_role
from iotpilot.domain.context import TenantContext
from iotpilot.domain.devices import DEFAULT_DEVICE_SETTINGS, DeviceMetrics, DeviceName, DeviceStatus
from iotpilot.domain.exceptions import (
    DeviceAccessDenied,
    DeviceAlreadyExists,
    DeviceNotFound,
    InvalidDeviceData,
    SSHConnectionFailed,
)
from iotpilot.domain.specifications import HasAccessToEntity

RESERVED_DEVICE_NAMES = frozenset({"localhost", "server", "router", "switch", "gateway"})


class DeviceExistsPolicy:
    def check(self, device: Optional[Any]) -> Any:
        if device is None:
            raise DeviceNotFound()
        return device


class DeviceAccessiblePolicy:
    def __init__(self, context: TenantContext) -> None:
        self.context = context

    def check(self, device: Optional[Any]) -> Any:
        DeviceExistsPolicy().check(device)
        if not HasAccessToEntity(self.context).is_satisfied_by(device):
            raise DeviceAccessDenied(device.id)
        return device


class SSHAllowedPolicy:
    """Device must be reachable by the caller, enabled for SSH and online."""

    def __init__(self, context: TenantContext) -> None:
        self.context = context

    def check(self, device: Optional[Any]) -> Any:
        DeviceAccessiblePolicy(self.context).check(device)
        if not has_role(self.context.role, UserRole.USER):
            raise SSHConnectionFailed(device.id, "Insufficient permissions for SSH access")
        settings = device.settings or {}
        if not settings.get("ssh_enabled", DEFAULT_DEVICE_SETTINGS["ssh_enabled"]):
            raise SSHConnectionFailed(device.id, "SSH is disabled for this device")
        if device.status != DeviceStatus.ONLINE.value:
            raise SSHConnectionFailed(device.id, "Device is not online")
        return device


class DeviceNamingPolicy:
    """Hostnames are valid names, not reserved and unique within a tenant.

    ``is_taken`` answers whether another device of the tenant already uses
    the name.
    """

    def __init__(self, is_taken: Callable[[str], bool]) -> None:
        self.is_taken = is_taken

    def check(self, hostname: str) -> str:
        name = DeviceName(hostname).value
        if name.lower() in RESERVED_DEVICE_NAMES:
            raise InvalidDeviceData(f"Device name '{name}' is reserved")
        if self.is_taken(name):
            raise DeviceAlreadyExists(name)
        return name


class MetricCollectionPolicy:
    def check(self, device: Optional[Any], metrics: DeviceMetrics) -> DeviceMetrics:
        DeviceExistsPolicy().check(device)
        if device.status == DeviceStatus.OFFLINE.value:
            raise InvalidDeviceData("Cannot collect metrics from an offline device")
        for name in ("cpu_usage", "memory_usage", "disk_usage"):
            value = getattr(metrics, name)
            if value is not None and not 0 <= value <= 100:
                raise InvalidDeviceData(f"{name} must be between 0 and 100")
        if metrics.network_upload < 0 or metrics.network_download < 0:
            raise InvalidDeviceData("Network usage cannot be negative")
        return metrics
