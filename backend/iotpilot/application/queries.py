"""Customer queries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from iotpilot.application.messages import TenantAwareQuery
from iotpilot.domain.customers import CustomerStatus


@dataclass(kw_only=True)
class GetCustomer(TenantAwareQuery):
    customer_id: int


@dataclass(kw_only=True)
class GetCustomerSettings(TenantAwareQuery):
    customer_id: int


@dataclass(kw_only=True)
class ListCustomers(TenantAwareQuery):
    status: Optional[CustomerStatus] = None
    name_contains: Optional[str] = None
    limit: int = 100
    offset: int = 0
