"""Base repository utilities."""

from __future__ import annotations

from typing import Generic, Optional, TypeVar

from sqlalchemy.orm import Query, Session

from iotpilot.domain.context import TenantContext
from iotpilot.domain.exceptions import CrossTenantAccess

TModel = TypeVar("TModel")


class SQLAlchemyRepository(Generic[TModel]):
    """Minimal base repository storing the SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, instance: TModel) -> TModel:
        self.session.add(instance)
        return instance

    def remove(self, instance: TModel) -> None:
        self.session.delete(instance)

    def refresh(self, instance: TModel) -> TModel:
        self.session.refresh(instance)
        return instance

    def commit(self) -> None:
        self.session.commit()

    def flush(self) -> None:
        self.session.flush()


class TenantScopedRepository(SQLAlchemyRepository[TModel]):
    """Repository whose reads and writes are confined to the caller's tenant.

    Superadmins without a selected tenant see every row. A superadmin that
    selected a tenant is scoped to it like any other user.
    """

    model: type

    def query(self) -> Query:
        return self.session.query(self.model)

    def scope(self, query: Query, context: TenantContext) -> Query:
        if context.requires_tenant_scope or context.customer_id is not None:
            query = query.filter(self.model.customer_id == context.customer_id)
        return query

    def scoped(self, context: TenantContext) -> Query:
        return self.scope(self.query(), context)

    def get(self, pk: int, context: TenantContext) -> Optional[TModel]:
        return self.scoped(context).filter(self.model.id == pk).first()

    def create(self, instance: TModel, context: TenantContext) -> TModel:
        """Attach ``instance`` to the caller's tenant unless one is already set."""
        customer_id = getattr(instance, "customer_id", None)
        if customer_id is None:
            instance.customer_id = context.customer_id
        elif not context.has_access(customer_id):
            raise CrossTenantAccess(context.customer_id, customer_id)
        return self.add(instance)
