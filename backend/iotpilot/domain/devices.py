"""Device value objects, enumerations and filters."""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from iotpilot.domain.exceptions import InvalidDeviceData

DEVICE_NAME_MIN_LENGTH = 3
DEVICE_NAME_MAX_LENGTH = 50

_IPV4_PATTERN = re.compile(r"^(\d{1,3})\.(\d{1,3})\.(\d{1,3})\.(\d{1,3})$")
_MAC_COLON = re.compile(r"^([0-9A-Fa-f]{2}:){5}[0-9A-Fa-f]{2}$")
_MAC_HYPHEN = re.compile(r"^([0-9A-Fa-f]{2}-){5}[0-9A-Fa-f]{2}$")


class DeviceStatus(str, Enum):
    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"
    MAINTENANCE = "MAINTENANCE"
    ERROR = "ERROR"


class HardwareType(str, Enum):
    """Board reported by the device agent at registration."""

    PI_ZERO = "PI_ZERO"
    PI_3 = "PI_3"
    PI_4 = "PI_4"
    PI_5 = "PI_5"
    ORANGE_PI = "ORANGE_PI"
    GENERIC = "GENERIC"


class DeviceType(str, Enum):
    """Functional role of a device in the network."""

    ROUTER = "router"
    SWITCH = "switch"
    SERVER = "server"
    GATEWAY = "gateway"
    SENSOR = "sensor"
    CAMERA = "camera"
    OTHER = "other"


class AppStatus(str, Enum):
    RUNNING = "RUNNING"
    STOPPED = "STOPPED"
    ERROR = "ERROR"
    NOT_INSTALLED = "NOT_INSTALLED"
    UNKNOWN = "UNKNOWN"


class AlertType(str, Enum):
    DEVICE_OFFLINE = "DEVICE_OFFLINE"
    HIGH_CPU = "HIGH_CPU"
    HIGH_MEMORY = "HIGH_MEMORY"
    HIGH_TEMPERATURE = "HIGH_TEMPERATURE"
    LOW_DISK_SPACE = "LOW_DISK_SPACE"
    APPLICATION_ERROR = "APPLICATION_ERROR"
    SYSTEM_ERROR = "SYSTEM_ERROR"
    SECURITY_ALERT = "SECURITY_ALERT"
    INFO = "INFO"
    CUSTOM = "CUSTOM"


class AlertSeverity(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CommandStatus(str, Enum):
    PENDING = "PENDING"
    EXECUTING = "EXECUTING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    TIMEOUT = "TIMEOUT"


class CommandType(str, Enum):
    RESTART = "RESTART"
    REBOOT = "REBOOT"
    SHUTDOWN = "SHUTDOWN"
    UPDATE = "UPDATE"
    INSTALL = "INSTALL"
    UNINSTALL = "UNINSTALL"
    CUSTOM = "CUSTOM"

    @classmethod
    def parse(cls, raw: str) -> "CommandType":
        try:
            return cls((raw or "").strip().upper())
        except ValueError as exc:
            raise InvalidDeviceData(f"Unsupported command: {raw}") from exc


# -----------------------------------------------------------------------------
# Value objects


@dataclass(slots=True, frozen=True)
class DeviceId:
    value: str

    def __post_init__(self) -> None:
        if not self.value or not str(self.value).strip():
            raise InvalidDeviceData("Device ID cannot be empty")
        object.__setattr__(self, "value", str(self.value).strip())

    @classmethod
    def generate(cls) -> "DeviceId":
        return cls(str(uuid.uuid4()))

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True, frozen=True)
class DeviceName:
    value: str

    def __post_init__(self) -> None:
        name = (self.value or "").strip()
        if len(name) < DEVICE_NAME_MIN_LENGTH:
            raise InvalidDeviceData(
                f"Device name must be at least {DEVICE_NAME_MIN_LENGTH} characters"
            )
        if len(name) > DEVICE_NAME_MAX_LENGTH:
            raise InvalidDeviceData(
                f"Device name cannot exceed {DEVICE_NAME_MAX_LENGTH} characters"
            )
        object.__setattr__(self, "value", name)

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True, frozen=True)
class IpAddress:
    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise InvalidDeviceData("IP address cannot be empty")
        match = _IPV4_PATTERN.match(self.value)
        if not match:
            raise InvalidDeviceData("Invalid IP address format")
        if any(int(octet) > 255 for octet in match.groups()):
            raise InvalidDeviceData("IP address octets must be between 0 and 255")

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True, frozen=True)
class MacAddress:
    value: str

    def __post_init__(self) -> None:
        if not self.is_valid(self.value):
            raise InvalidDeviceData("Invalid MAC address format")

    @staticmethod
    def is_valid(value: Optional[str]) -> bool:
        return bool(value) and bool(_MAC_COLON.match(value) or _MAC_HYPHEN.match(value))

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True, frozen=True)
class Port:
    value: int

    def __post_init__(self) -> None:
        if not 1 <= int(self.value) <= 65535:
            raise InvalidDeviceData("Port must be between 1 and 65535")


@dataclass(slots=True, frozen=True)
class SshCredentials:
    username: str
    password: Optional[str] = None
    private_key: Optional[str] = None
    port: int = 22

    def __post_init__(self) -> None:
        if not self.username:
            raise InvalidDeviceData("SSH username cannot be empty")
        if not self.password and not self.private_key:
            raise InvalidDeviceData("Either password or private key must be provided")
        Port(self.port)

    @property
    def has_password(self) -> bool:
        return bool(self.password)

    @property
    def has_private_key(self) -> bool:
        return bool(self.private_key)

    def __repr__(self) -> str:
        return f"SshCredentials(username={self.username!r}, port={self.port})"


@dataclass(slots=True)
class DeviceMetrics:
    """Point-in-time resource usage reported by a device."""

    cpu_usage: Optional[float] = None
    memory_usage: Optional[float] = None
    disk_usage: Optional[float] = None
    network_upload: float = 0.0
    network_download: float = 0.0

    @property
    def network_usage(self) -> float:
        return self.network_upload + self.network_download

    def as_dict(self) -> dict[str, float]:
        values = {
            "cpu_usage": self.cpu_usage,
            "memory_usage": self.memory_usage,
            "disk_usage": self.disk_usage,
            "network_upload": self.network_upload,
            "network_download": self.network_download,
        }
        return {k: v for k, v in values.items() if v is not None}


# -----------------------------------------------------------------------------
# Settings and filters

DEFAULT_DEVICE_SETTINGS: dict[str, Any] = {
    "tags": [],
    "heartbeat_interval": 120,
    "metrics_enabled": True,
    "cpu_threshold": 80,
    "memory_threshold": 85,
    "temperature_threshold": 70,
    "disk_threshold": 90,
    "network_monitoring": True,
    "auto_update": False,
    "update_channel": "stable",
    "ssh_enabled": True,
    "ssh_username": None,
    "ssh_port": 22,
    "api_key_rotation_days": 30,
}


@dataclass(slots=True)
class DeviceFilters:
    """Filters accepted by the device listing endpoint."""

    status: Optional[DeviceStatus] = None
    device_type: Optional[HardwareType] = None
    location: Optional[str] = None


@dataclass(slots=True)
class AlertFilters:
    severity: Optional[AlertSeverity] = None
    status: Optional[str] = None  # "active" or "resolved"
    alert_type: Optional[AlertType] = None


@dataclass(slots=True)
class MetricWindow:
    """Query window for metric history."""

    metrics: Optional[list[str]] = None
    period: str = "24h"
    resolution: str = "auto"
