"""Customer (tenant) lifecycle services."""

from __future__ import annotations

from typing import Any, Optional, Sequence

from sqlalchemy.orm import Session

from iotpilot.application.bus import EventBus, get_event_bus
from iotpilot.core.logging import get_logger
from iotpilot.db import Customer
from iotpilot.domain.customers import (
    CustomerFilters,
    CustomerName,
    CustomerStatus,
    OrganizationSettings,
)
from iotpilot.domain.events import (
    CustomerCreated,
    CustomerSettingsUpdated,
    CustomerStatusChanged,
)
from iotpilot.domain.exceptions import (
    ConflictError,
    TenantInactive,
    TenantNotFound,
    TenantQuotaExceeded,
    TenantSuspended,
)
from iotpilot.repositories import CustomerRepository

logger = get_logger(__name__)


class CustomerService:
    """Business logic around customers, their settings and quotas."""

    def __init__(self, session: Session, events: Optional[EventBus] = None) -> None:
        self.session = session
        self.customers = CustomerRepository(session)
        self.events = events or get_event_bus()

    # -------------------------------------------------------------------------
    # Queries

    def get_customer(self, customer_id: int) -> Optional[Customer]:
        return self.customers.get_by_id(customer_id)

    def require_customer(self, customer_id: int) -> Customer:
        customer = self.customers.get_by_id(customer_id)
        if not customer:
            raise TenantNotFound(customer_id)
        return customer

    def list_customers(self, filters: CustomerFilters) -> Sequence[Customer]:
        return self.customers.list_filtered(filters)

    def get_settings(self, customer: Customer) -> OrganizationSettings:
        return OrganizationSettings.from_dict(customer.settings)

    # -------------------------------------------------------------------------
    # Mutations

    def create_customer(self, name: str, settings: Optional[dict[str, Any]] = None) -> Customer:
        customer_name = CustomerName(name)
        if self.customers.get_by_name(customer_name.value):
            raise ConflictError("Customer with this name already exists")
        org_settings = OrganizationSettings().merge(settings or {})

        customer = Customer(
            name=customer_name.value,
            status=CustomerStatus.ACTIVE.value,
            settings=org_settings.to_dict(),
        )
        self.customers.add(customer)
        self.customers.commit()
        self.customers.refresh(customer)
        logger.info("Customer created", extra={"customer_id": customer.id})
        self.events.publish(CustomerCreated(tenant_id=customer.id, name=customer.name))
        return customer

    def update_customer(
        self,
        customer_id: int,
        *,
        name: Optional[str] = None,
        settings: Optional[dict[str, Any]] = None,
    ) -> Customer:
        customer = self.require_customer(customer_id)
        self.ensure_active(customer)

        if name is not None:
            customer_name = CustomerName(name)
            existing = self.customers.get_by_name(customer_name.value)
            if existing and existing.id != customer.id:
                raise ConflictError("Customer with this name already exists")
            customer.name = customer_name.value

        merged: Optional[OrganizationSettings] = None
        if settings is not None:
            merged = self.get_settings(customer).merge(settings)
            customer.settings = merged.to_dict()

        self.customers.commit()
        self.customers.refresh(customer)
        if merged is not None:
            self.events.publish(
                CustomerSettingsUpdated(tenant_id=customer.id, settings=merged.to_dict())
            )
        return customer

    def deactivate(self, customer_id: int, reason: Optional[str] = None) -> Customer:
        return self._change_status(customer_id, CustomerStatus.INACTIVE, reason)

    def suspend(self, customer_id: int, reason: Optional[str] = None) -> Customer:
        return self._change_status(customer_id, CustomerStatus.SUSPENDED, reason)

    def reactivate(self, customer_id: int, reason: Optional[str] = None) -> Customer:
        return self._change_status(customer_id, CustomerStatus.ACTIVE, reason)

    def _change_status(
        self, customer_id: int, target: CustomerStatus, reason: Optional[str]
    ) -> Customer:
        customer = self.require_customer(customer_id)
        if customer.status == target.value:
            raise ConflictError(f"Customer is already {target.value.lower()}")
        old_status = customer.status
        customer.status = target.value
        self.customers.commit()
        self.customers.refresh(customer)
        logger.info(
            "Customer status changed",
            extra={
                "customer_id": customer.id,
                "old_status": old_status,
                "new_status": target.value,
            },
        )
        self.events.publish(
            CustomerStatusChanged(
                tenant_id=customer.id,
                old_status=old_status,
                new_status=target.value,
                reason=reason,
            )
        )
        return customer

    # -------------------------------------------------------------------------
    # Guards

    def ensure_active(self, customer: Customer) -> None:
        if customer.status == CustomerStatus.ACTIVE.value:
            return
        if customer.status == CustomerStatus.SUSPENDED.value:
            raise TenantSuspended(customer.id)
        raise TenantInactive(customer.id)

    def ensure_user_quota(self, customer: Customer) -> None:
        limit = self.get_settings(customer).max_users
        if self.customers.count_users(customer.id) >= limit:
            raise TenantQuotaExceeded("users", limit)

    def ensure_device_quota(self, customer: Customer) -> None:
        limit = self.get_settings(customer).max_devices
        if self.customers.count_devices(customer.id) >= limit:
            raise TenantQuotaExceeded("devices", limit)
