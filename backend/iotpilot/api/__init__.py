"""API module initialization."""

from . import (
    admin,
    alerts,
    api_keys,
    auth,
    commands,
    customers,
    devices,
    health,
    heartbeat,
    metrics,
    metrics_history,
    settings,
    ssh,
)

__all__ = [
    "admin",
    "alerts",
    "api_keys",
    "auth",
    "commands",
    "customers",
    "devices",
    "health",
    "heartbeat",
    "metrics",
    "metrics_history",
    "settings",
    "ssh",
]
