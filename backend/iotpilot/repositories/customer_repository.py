"""Customer persistence helpers."""

from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from iotpilot.db import Customer, Device, User
from iotpilot.domain.customers import CustomerFilters
from iotpilot.repositories.base import SQLAlchemyRepository


class CustomerRepository(SQLAlchemyRepository[Customer]):
    """Customer rows are the tenants themselves, so scoping happens in handlers."""

    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def get_by_id(self, customer_id: int) -> Optional[Customer]:
        return self.session.query(Customer).filter(Customer.id == customer_id).first()

    def get_by_name(self, name: str) -> Optional[Customer]:
        return (
            self.session.query(Customer)
            .filter(func.lower(Customer.name) == name.strip().lower())
            .first()
        )

    def list_filtered(self, filters: CustomerFilters) -> Sequence[Customer]:
        query = self.session.query(Customer)
        if filters.ids is not None:
            query = query.filter(Customer.id.in_(filters.ids))
        if filters.status:
            query = query.filter(Customer.status == filters.status.value)
        if filters.name_contains:
            query = query.filter(Customer.name.ilike(f"%{filters.name_contains}%"))
        return (
            query.order_by(Customer.name.asc()).offset(filters.offset).limit(filters.limit).all()
        )

    def count_users(self, customer_id: int) -> int:
        return (
            self.session.query(User)
            .filter(User.customer_id == customer_id, User.deleted_at.is_(None))
            .count()
        )

    def count_devices(self, customer_id: int) -> int:
        return self.session.query(Device).filter(Device.customer_id == customer_id).count()

    def count_all(self) -> int:
        return self.session.query(Customer).count()
