"""Request-scoped tenant context for multi-tenant operations."""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass
from typing import Any, Iterator, Optional

from iotpilot.core.permissions import UserRole, is_superadmin
from iotpilot.domain.exceptions import ForbiddenError, UnauthorizedError


@dataclass(slots=True, frozen=True)
class TenantContext:
    """Identity and tenant scope of the caller.

    ``customer_id`` is None only for superadmins acting without a selected
    tenant. A superadmin that selects a tenant (``X-Customer-ID``) keeps the
    bypass flag but gets that tenant as its default scope.
    """

    customer_id: Optional[int]
    user_id: Optional[int]
    role: str
    is_superadmin: bool = False

    @property
    def can_bypass_tenant_restrictions(self) -> bool:
        return self.is_superadmin

    @property
    def requires_tenant_scope(self) -> bool:
        return not self.is_superadmin

    def has_access(self, customer_id: Optional[int]) -> bool:
        if self.is_superadmin:
            return True
        if self.customer_id is None:
            return False
        return self.customer_id == customer_id

    def assert_access(self, customer_id: Optional[int]) -> None:
        if not self.has_access(customer_id):
            raise ForbiddenError("Access denied: customer scope mismatch")


class TenantContextProvider:
    """Builds contexts and tracks the active one per task/thread."""

    _current: ContextVar[Optional[TenantContext]] = ContextVar("tenant_context", default=None)

    @staticmethod
    def create_context(user: Any, customer_id: Optional[int] = None) -> TenantContext:
        """Context for an authenticated user row.

        ``customer_id`` selects a tenant and only takes effect for superadmins.
        """
        superadmin = is_superadmin(user.role)
        return TenantContext(
            customer_id=customer_id if superadmin and customer_id else user.customer_id,
            user_id=user.id,
            role=user.role,
            is_superadmin=superadmin,
        )

    @staticmethod
    def create_superadmin_context(user_id: Optional[int] = None) -> TenantContext:
        return TenantContext(
            customer_id=None,
            user_id=user_id,
            role=UserRole.SUPERADMIN.value,
            is_superadmin=True,
        )

    @classmethod
    def current(cls) -> Optional[TenantContext]:
        return cls._current.get()

    @classmethod
    def require(cls) -> TenantContext:
        context = cls._current.get()
        if context is None:
            raise UnauthorizedError("No tenant context available")
        return context

    @classmethod
    def set_context(cls, context: TenantContext) -> Token:
        return cls._current.set(context)

    @classmethod
    def clear_context(cls, token: Optional[Token] = None) -> None:
        if token is not None:
            cls._current.reset(token)
        else:
            cls._current.set(None)

    @classmethod
    @contextmanager
    def scoped(cls, context: TenantContext) -> Iterator[TenantContext]:
        token = cls.set_context(context)
        try:
            yield context
        finally:
            cls.clear_context(token)
