"""Default event subscribers."""

from __future__ import annotations

from iotpilot.application.bus import ALL_EVENTS, EventBus
from iotpilot.core.cache import get_tenant_cache
from iotpilot.core.logging import get_logger
from iotpilot.domain.events import (
    CustomerSettingsUpdated,
    CustomerStatusChanged,
    DomainEvent,
    TenantScopedEvent,
)

logger = get_logger("iotpilot.events")


def log_event(event: DomainEvent) -> None:
    extra = {"event_type": event.event_type, "event_id": event.event_id}
    if isinstance(event, TenantScopedEvent):
        extra["customer_id"] = event.tenant_id
    logger.info("Domain event %s", event.event_type, extra=extra)


def invalidate_customer_cache(event: TenantScopedEvent) -> None:
    if event.tenant_id is not None:
        get_tenant_cache().clear_tenant(event.tenant_id)


def register_default_subscribers(bus: EventBus) -> None:
    bus.subscribe(ALL_EVENTS, log_event)
    bus.subscribe(CustomerSettingsUpdated, invalidate_customer_cache)
    bus.subscribe(CustomerStatusChanged, invalidate_customer_cache)
