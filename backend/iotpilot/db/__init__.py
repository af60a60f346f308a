"""Database module initialization."""

from .models import (
    Alert,
    APIKey,
    Base,
    Customer,
    Device,
    DeviceCommand,
    DeviceMetric,
    Session,
    SSHSession,
    SystemConfig,
    User,
    UserPreference,
)
from .session import SessionLocal, engine, get_db
from .utils import seed_default_data, seed_with_new_session

__all__ = [
    "Alert",
    "APIKey",
    "Base",
    "Customer",
    "Device",
    "DeviceCommand",
    "DeviceMetric",
    "Session",
    "SSHSession",
    "SystemConfig",
    "User",
    "UserPreference",
    "get_db",
    "engine",
    "SessionLocal",
    "seed_default_data",
    "seed_with_new_session",
]
