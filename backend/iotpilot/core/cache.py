"""In-process cache partitioned by tenant.

Entries live in ``{tenant_key: {key: (value, expires_at)}}``. Expiry is
checked lazily on read; there is no background sweeper and no size bound.
Superadmin contexts share a single ``SUPERADMIN`` partition.
"""

from __future__ import annotations

import threading
import time
from functools import lru_cache
from typing import Any, Callable, Optional, TypeVar

from iotpilot.core.config import settings
from iotpilot.core.logging import get_logger
from iotpilot.domain.context import TenantContext
from iotpilot.domain.exceptions import ValidationError

logger = get_logger(__name__)

T = TypeVar("T")

SUPERADMIN_PARTITION = "SUPERADMIN"


class TenantScopedCache:
    """TTL cache whose keys never collide across tenants."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._store: dict[str, dict[str, tuple[Any, Optional[float]]]] = {}

    def _tenant_key(self, context: TenantContext) -> str:
        if context.can_bypass_tenant_restrictions and not context.requires_tenant_scope:
            return SUPERADMIN_PARTITION
        if context.customer_id is None:
            raise ValidationError("Customer ID is required for tenant-scoped cache")
        return str(context.customer_id)

    def get(self, key: str, context: TenantContext) -> Any:
        tenant = self._tenant_key(context)
        with self._lock:
            partition = self._store.get(tenant)
            if not partition or key not in partition:
                return None
            value, expires_at = partition[key]
            if expires_at is not None and self._clock() >= expires_at:
                del partition[key]
                return None
            return value

    def set(
        self,
        key: str,
        value: Any,
        context: TenantContext,
        ttl: Optional[float] = None,
    ) -> None:
        """Store ``value``; ``ttl`` is in seconds, None keeps it until removed."""
        tenant = self._tenant_key(context)
        expires_at = self._clock() + ttl if ttl is not None else None
        with self._lock:
            self._store.setdefault(tenant, {})[key] = (value, expires_at)

    def has(self, key: str, context: TenantContext) -> bool:
        tenant = self._tenant_key(context)
        with self._lock:
            partition = self._store.get(tenant) or {}
            entry = partition.get(key)
            if entry is None:
                return False
            expires_at = entry[1]
            if expires_at is not None and self._clock() >= expires_at:
                del partition[key]
                return False
            return True

    def delete(self, key: str, context: TenantContext) -> bool:
        tenant = self._tenant_key(context)
        with self._lock:
            partition = self._store.get(tenant)
            if not partition or key not in partition:
                return False
            del partition[key]
            return True

    def get_or_set(
        self,
        key: str,
        factory: Callable[[], T],
        context: TenantContext,
        ttl: Optional[float] = None,
    ) -> T:
        """Return the cached value, computing and storing it on a miss.

        ``None`` results are not cached.
        """
        if self.has(key, context):
            return self.get(key, context)
        value = factory()
        if value is not None:
            self.set(key, value, context, ttl=ttl)
        return value

    def clear_tenant(self, customer_id: int | str) -> None:
        with self._lock:
            removed = self._store.pop(str(customer_id), None)
        if removed:
            logger.debug("Cleared %d cache entries for customer %s", len(removed), customer_id)

    def clear_all(self) -> None:
        with self._lock:
            self._store.clear()


@lru_cache(maxsize=1)
def get_tenant_cache() -> TenantScopedCache:
    """Process-wide cache instance."""
    return TenantScopedCache()


def default_ttl() -> float:
    return settings.cache_default_ttl_seconds
