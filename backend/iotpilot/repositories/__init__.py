"""Repository layer for persistence access."""

from .alert_repository import AlertRepository
from .api_key_repository import APIKeyRepository
from .base import SQLAlchemyRepository, TenantScopedRepository
from .command_repository import CommandRepository
from .customer_repository import CustomerRepository
from .device_repository import DeviceRepository
from .metric_repository import MetricRepository
from .preference_repository import PreferenceRepository, SystemConfigRepository
from .ssh_session_repository import SSHSessionRepository
from .user_repository import LoginSessionRepository, UserRepository

__all__ = [
    "AlertRepository",
    "APIKeyRepository",
    "CommandRepository",
    "CustomerRepository",
    "DeviceRepository",
    "LoginSessionRepository",
    "MetricRepository",
    "PreferenceRepository",
    "SQLAlchemyRepository",
    "SSHSessionRepository",
    "SystemConfigRepository",
    "TenantScopedRepository",
    "UserRepository",
]
