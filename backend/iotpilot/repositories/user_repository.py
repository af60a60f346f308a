"""User and login session persistence helpers."""

from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from iotpilot.core.permissions import UserRole
from iotpilot.db import Session as LoginSession
from iotpilot.db import User
from iotpilot.domain.context import TenantContext
from iotpilot.domain.users import UserFilters
from iotpilot.repositories.base import SQLAlchemyRepository, TenantScopedRepository


class UserRepository(TenantScopedRepository[User]):
    """Encapsulates user-related queries."""

    model = User

    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def scope(self, query: Query, context: TenantContext) -> Query:
        query = super().scope(query, context)
        if not context.is_superadmin:
            query = query.filter(User.role != UserRole.SUPERADMIN.value)
        return query.filter(User.deleted_at.is_(None))

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.session.query(User).filter(User.id == user_id).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.session.query(User).filter(func.lower(User.email) == email.lower()).first()

    def get_by_username(self, username: str) -> Optional[User]:
        return self.session.query(User).filter(User.username == username).first()

    def list_for_admin(
        self, filters: UserFilters, context: TenantContext
    ) -> tuple[int, Sequence[User]]:
        query = self.scoped(context)
        if filters.status:
            query = query.filter(User.status == filters.status.value)
        total = query.count()
        users = (
            query.order_by(User.created_at.desc())
            .offset(filters.offset)
            .limit(filters.limit)
            .all()
        )
        return total, users

    def count(self, context: TenantContext) -> int:
        return self.scoped(context).count()

    def list_superadmins(self) -> Sequence[User]:
        return (
            self.session.query(User)
            .filter(User.role == UserRole.SUPERADMIN.value, User.deleted_at.is_(None))
            .order_by(User.email.asc())
            .all()
        )


class LoginSessionRepository(SQLAlchemyRepository[LoginSession]):
    def get_by_token(self, token: str) -> Optional[LoginSession]:
        return self.session.query(LoginSession).filter(LoginSession.token == token).first()
