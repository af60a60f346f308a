"""Composable tenant specifications.

A specification answers a yes/no question about a candidate. Tenant
specifications take an entity exposing ``customer_id``, a bare customer id
or a ``TenantContext`` depending on the rule.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Optional, TypeVar

from iotpilot.domain.context import TenantContext

T = TypeVar("T")


class Specification:
    def is_satisfied_by(self, candidate: Any) -> bool:
        raise NotImplementedError

    def __and__(self, other: "Specification") -> "Specification":
        return _Predicate(lambda c: self.is_satisfied_by(c) and other.is_satisfied_by(c))

    def __or__(self, other: "Specification") -> "Specification":
        return _Predicate(lambda c: self.is_satisfied_by(c) or other.is_satisfied_by(c))

    def __invert__(self) -> "Specification":
        return _Predicate(lambda c: not self.is_satisfied_by(c))


class _Predicate(Specification):
    def __init__(self, predicate: Callable[[Any], bool]) -> None:
        self._predicate = predicate

    def is_satisfied_by(self, candidate: Any) -> bool:
        return self._predicate(candidate)


class BelongsToTenant(Specification):
    """Entity is owned by ``customer_id``."""

    def __init__(self, customer_id: Optional[int]) -> None:
        self.customer_id = customer_id

    def is_satisfied_by(self, candidate: Any) -> bool:
        return getattr(candidate, "customer_id", None) == self.customer_id


class HasTenantAccess(Specification):
    """Customer id is reachable from the context."""

    def __init__(self, context: TenantContext) -> None:
        self.context = context

    def is_satisfied_by(self, candidate: Optional[int]) -> bool:
        return self.context.has_access(candidate)


class CanBypassTenantRestrictions(Specification):
    def is_satisfied_by(self, candidate: TenantContext) -> bool:
        return candidate.can_bypass_tenant_restrictions


class HasAccessToEntity(Specification):
    """Entity's owning tenant is reachable from the context."""

    def __init__(self, context: TenantContext) -> None:
        self.context = context

    def is_satisfied_by(self, candidate: Any) -> bool:
        return self.context.has_access(getattr(candidate, "customer_id", None))


def filter_by_tenant(items: Iterable[T], context: TenantContext) -> list[T]:
    if context.can_bypass_tenant_restrictions:
        return list(items)
    rule = HasAccessToEntity(context)
    return [item for item in items if rule.is_satisfied_by(item)]
