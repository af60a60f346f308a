"""Tenant user administration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from iotpilot.core.logging import get_logger
from iotpilot.db import User
from iotpilot.domain.context import TenantContext
from iotpilot.domain.exceptions import NotFoundError
from iotpilot.domain.users import UserFilters, UserStatus
from iotpilot.repositories import UserRepository

logger = get_logger(__name__)

_APPROVAL_TARGETS = {
    "approve": (UserStatus.ACTIVE, "approved"),
    "reject": (UserStatus.INACTIVE, "rejected"),
}


@dataclass(slots=True)
class ApprovalResult:
    message: str
    user: Optional[User] = None
    changed: bool = False


class UserService:
    """Admin-only user management operations, confined to the caller's tenant."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.users = UserRepository(session)

    def list_users(
        self, filters: UserFilters, context: TenantContext
    ) -> tuple[int, Sequence[User]]:
        return self.users.list_for_admin(filters, context)

    def get_user(self, user_id: int, context: TenantContext) -> User:
        user = self.users.get(user_id, context)
        if not user:
            raise NotFoundError("User not found")
        return user

    def set_approval(
        self,
        user_id: int,
        action: str,
        context: TenantContext,
        reason: Optional[str] = None,
    ) -> ApprovalResult:
        """Approve (ACTIVE) or reject (INACTIVE) a user; repeated calls are no-ops."""
        target, verb = _APPROVAL_TARGETS[action]
        user = self.get_user(user_id, context)
        if user.status == target.value:
            return ApprovalResult(message=f"User is already {verb}")

        user.status = target.value
        self.users.commit()
        self.users.refresh(user)
        logger.info(
            "User %s",
            verb,
            extra={"user_id": user.id, "customer_id": user.customer_id, "reason": reason},
        )
        return ApprovalResult(message=f"User {verb} successfully", user=user, changed=True)
