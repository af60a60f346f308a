"""Base classes for tenant-aware commands and queries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from iotpilot.domain.context import TenantContext
from iotpilot.domain.exceptions import TenantAccessDenied, ValidationError
from iotpilot.domain.specifications import HasTenantAccess


@dataclass(kw_only=True)
class TenantAwareMessage:
    """Message issued under ``context``, optionally targeting ``customer_id``."""

    context: TenantContext
    customer_id: Optional[int] = None

    @property
    def requires_tenant_scope(self) -> bool:
        return self.context.requires_tenant_scope

    def validate_tenant_access(self) -> None:
        target = self.get_customer_id_or_none()
        if not HasTenantAccess(self.context).is_satisfied_by(target):
            raise TenantAccessDenied()

    def get_customer_id_or_none(self) -> Optional[int]:
        if self.customer_id is not None:
            return self.customer_id
        return self.context.customer_id

    def get_customer_id(self) -> int:
        customer_id = self.get_customer_id_or_none()
        if customer_id is None:
            raise ValidationError("Customer ID is required")
        return customer_id


@dataclass(kw_only=True)
class TenantAwareCommand(TenantAwareMessage):
    pass


@dataclass(kw_only=True)
class TenantAwareQuery(TenantAwareMessage):
    pass
