"""Service layer entry points."""

from .alert_service import AlertService
from .api_key_service import APIKeyService
from .auth_service import AuthService, LoginResult
from .command_service import CommandService
from .customer_service import CustomerService
from .device_service import DeviceListing, DeviceRegistration, DeviceService
from .health_service import HealthService
from .heartbeat_service import Heartbeat, HeartbeatService
from .metric_service import MetricService
from .preference_service import PreferenceCategory, PreferenceService
from .ssh import SSHSessionConfig, SSHSessionManager, get_ssh_session_manager
from .ssh_service import SSHService
from .system_service import SystemService
from .user_service import UserService

__all__ = [
    "AlertService",
    "APIKeyService",
    "AuthService",
    "CommandService",
    "CustomerService",
    "DeviceListing",
    "DeviceRegistration",
    "DeviceService",
    "HealthService",
    "Heartbeat",
    "HeartbeatService",
    "LoginResult",
    "MetricService",
    "PreferenceCategory",
    "PreferenceService",
    "SSHService",
    "SSHSessionConfig",
    "SSHSessionManager",
    "SystemService",
    "UserService",
    "get_ssh_session_manager",
]
