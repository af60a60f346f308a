"""Command and query handlers for customers."""

from __future__ import annotations

from typing import Any, Optional, Sequence

from iotpilot.application.commands import (
    CreateCustomer,
    DeactivateCustomer,
    ReactivateCustomer,
    SuspendCustomer,
    UpdateCustomer,
)
from iotpilot.application.queries import GetCustomer, GetCustomerSettings, ListCustomers
from iotpilot.core.cache import TenantScopedCache, default_ttl, get_tenant_cache
from iotpilot.core.permissions import UserRole, is_admin
from iotpilot.db import Customer
from iotpilot.domain.context import TenantContext
from iotpilot.domain.customers import QUOTA_SETTINGS, CustomerFilters
from iotpilot.domain.exceptions import TenantAccessDenied
from iotpilot.services.customer_service import CustomerService


def settings_cache_key(customer_id: int) -> str:
    return f"customer_settings:{customer_id}"


def tenant_cache_context(customer_id: int) -> TenantContext:
    """Cache partition of ``customer_id`` regardless of who is asking."""
    return TenantContext(customer_id=customer_id, user_id=None, role=UserRole.USER.value)


def _require_superadmin(context: TenantContext, message: str) -> None:
    if not context.is_superadmin:
        raise TenantAccessDenied(message)


class CreateCustomerHandler:
    def __init__(self, service: CustomerService) -> None:
        self.service = service

    def handle(self, command: CreateCustomer) -> Customer:
        _require_superadmin(command.context, "Only super admins can create customers")
        return self.service.create_customer(command.name, command.settings)


class UpdateCustomerHandler:
    def __init__(self, service: CustomerService) -> None:
        self.service = service

    def handle(self, command: UpdateCustomer) -> Customer:
        command.validate_tenant_access()
        context = command.context
        if not is_admin(context.role):
            raise TenantAccessDenied("Only admins can update customers")
        if command.settings and not context.is_superadmin:
            restricted = sorted(QUOTA_SETTINGS & set(command.settings))
            if restricted:
                raise TenantAccessDenied(f"Only super admins can change {', '.join(restricted)}")
        return self.service.update_customer(
            command.customer_id, name=command.name, settings=command.settings
        )


class CustomerStatusHandler:
    """Handles deactivate, suspend and reactivate."""

    def __init__(self, service: CustomerService) -> None:
        self.service = service

    def handle(self, command) -> Customer:
        _require_superadmin(command.context, "Only super admins can change customer status")
        if isinstance(command, DeactivateCustomer):
            return self.service.deactivate(command.customer_id, command.reason)
        if isinstance(command, SuspendCustomer):
            return self.service.suspend(command.customer_id, command.reason)
        return self.service.reactivate(command.customer_id, command.reason)


class GetCustomerHandler:
    def __init__(self, service: CustomerService) -> None:
        self.service = service

    def handle(self, query: GetCustomer) -> Optional[Customer]:
        query.validate_tenant_access()
        return self.service.get_customer(query.customer_id)


class GetCustomerSettingsHandler:
    def __init__(self, service: CustomerService, cache: Optional[TenantScopedCache] = None) -> None:
        self.service = service
        self.cache = cache or get_tenant_cache()

    def handle(self, query: GetCustomerSettings) -> Optional[dict[str, Any]]:
        query.validate_tenant_access()

        def load() -> Optional[dict[str, Any]]:
            customer = self.service.get_customer(query.customer_id)
            if customer is None:
                return None
            return self.service.get_settings(customer).to_dict()

        return self.cache.get_or_set(
            settings_cache_key(query.customer_id),
            load,
            tenant_cache_context(query.customer_id),
            ttl=default_ttl(),
        )


class ListCustomersHandler:
    def __init__(self, service: CustomerService) -> None:
        self.service = service

    def handle(self, query: ListCustomers) -> Sequence[Customer]:
        filters = CustomerFilters(
            status=query.status,
            name_contains=query.name_contains,
            limit=query.limit,
            offset=query.offset,
        )
        context = query.context
        if not context.is_superadmin:
            filters.ids = [context.customer_id] if context.customer_id is not None else []
        return self.service.list_customers(filters)
