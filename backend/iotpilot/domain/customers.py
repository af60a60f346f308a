"""Customer (tenant) value objects."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from typing import Any, Optional

from iotpilot.domain.exceptions import ValidationError

CUSTOMER_NAME_MAX_LENGTH = 100
_DOMAIN_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9-]{1,61}[a-zA-Z0-9](?:\.[a-zA-Z]{2,})+$")

# Plan limits only a superadmin may change
QUOTA_SETTINGS = frozenset({"max_users", "max_devices", "data_retention_days", "allowed_features"})


class CustomerStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"
    PENDING = "PENDING"


@dataclass(slots=True, frozen=True)
class CustomerName:
    value: str

    def __post_init__(self) -> None:
        trimmed = (self.value or "").strip()
        if not trimmed:
            raise ValidationError("Customer name cannot be empty")
        if len(trimmed) > CUSTOMER_NAME_MAX_LENGTH:
            raise ValidationError(
                f"Customer name cannot exceed {CUSTOMER_NAME_MAX_LENGTH} characters"
            )
        object.__setattr__(self, "value", trimmed)

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True, frozen=True)
class OrganizationSettings:
    """Per-tenant limits and branding."""

    max_users: int = 10
    max_devices: int = 50
    allowed_features: tuple[str, ...] = ("basic",)
    data_retention_days: int = 30
    custom_domain: Optional[str] = None
    logo_url: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None

    def __post_init__(self) -> None:
        for name in ("max_users", "max_devices", "data_retention_days"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValidationError(f"{name} must be an integer")
            if value < 1:
                raise ValidationError(f"{name} must be at least 1")
        features = self.allowed_features
        if isinstance(features, str) or not isinstance(features, (list, tuple)):
            raise ValidationError("allowed_features must be a list of strings")
        if not all(isinstance(feature, str) for feature in features):
            raise ValidationError("allowed_features must be a list of strings")
        for name in ("custom_domain", "logo_url", "primary_color", "secondary_color"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise ValidationError(f"{name} must be a string")
        if self.custom_domain is not None and not _DOMAIN_PATTERN.match(self.custom_domain):
            raise ValidationError(f"Invalid custom domain: {self.custom_domain}")
        object.__setattr__(self, "allowed_features", tuple(self.allowed_features))

    def has_feature(self, feature: str) -> bool:
        return feature in self.allowed_features

    def merge(self, changes: dict[str, Any]) -> "OrganizationSettings":
        """New settings with ``changes`` applied; unknown keys are rejected."""
        unknown = set(changes) - set(self.__dataclass_fields__)
        if unknown:
            raise ValidationError(f"Unknown organization settings: {', '.join(sorted(unknown))}")
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["allowed_features"] = list(self.allowed_features)
        return data

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "OrganizationSettings":
        if not data:
            return cls()
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


@dataclass(slots=True)
class CustomerFilters:
    status: Optional[CustomerStatus] = None
    name_contains: Optional[str] = None
    limit: int = 100
    offset: int = 0
    ids: Optional[list[int]] = field(default=None)
