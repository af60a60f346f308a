"""Domain layer primitives (contexts, value objects, events, exceptions)."""

from . import customers, devices, events, exceptions, users
from .context import TenantContext, TenantContextProvider

__all__ = [
    "TenantContext",
    "TenantContextProvider",
    "customers",
    "devices",
    "events",
    "exceptions",
    "users",
]
