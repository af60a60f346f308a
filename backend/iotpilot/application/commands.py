"""Customer commands."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from iotpilot.application.messages import TenantAwareCommand
from iotpilot.domain.exceptions import ValidationError


@dataclass(kw_only=True)
class CreateCustomer(TenantAwareCommand):
    name: str
    settings: Optional[dict[str, Any]] = None


@dataclass(kw_only=True)
class UpdateCustomer(TenantAwareCommand):
    customer_id: int
    name: Optional[str] = None
    settings: Optional[dict[str, Any]] = None

    def __post_init__(self) -> None:
        if self.name is None and self.settings is None:
            raise ValidationError("Update command must include at least one update")


@dataclass(kw_only=True)
class DeactivateCustomer(TenantAwareCommand):
    customer_id: int
    reason: Optional[str] = None


@dataclass(kw_only=True)
class SuspendCustomer(TenantAwareCommand):
    customer_id: int
    reason: Optional[str] = None


@dataclass(kw_only=True)
class ReactivateCustomer(TenantAwareCommand):
    customer_id: int
    reason: Optional[str] = None
