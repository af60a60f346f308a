"""Registration, login and token resolution."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from iotpilot.application.bus import EventBus, get_event_bus
from iotpilot.core.logging import get_logger
from iotpilot.core.metrics import record_login_attempt
from iotpilot.core.permissions import UserRole
from iotpilot.core.security import (
    create_access_token,
    decode_token,
    get_password_hash,
    token_lifetime,
    verify_password,
)
from iotpilot.core.time import utcnow
from iotpilot.db import Session as LoginSession
from iotpilot.db import User
from iotpilot.db.utils import get_or_create_default_organization
from iotpilot.domain.events import UserLoggedIn, UserRegistered
from iotpilot.domain.exceptions import ConflictError, ForbiddenError, UnauthorizedError
from iotpilot.domain.users import Email, Password, UserStatus
from iotpilot.repositories import CustomerRepository, LoginSessionRepository, UserRepository
from iotpilot.services.customer_service import CustomerService

logger = get_logger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


@dataclass(slots=True)
class LoginResult:
    user: User
    token: str
    expires_at: datetime
    max_age: int


class AuthService:
    """Authentication flows backed by JWT-bound login sessions."""

    def __init__(self, session: Session, events: Optional[EventBus] = None) -> None:
        self.session = session
        self.events = events or get_event_bus()
        self.users = UserRepository(session)
        self.login_sessions = LoginSessionRepository(session)
        self.customers = CustomerRepository(session)
        self.customer_service = CustomerService(session, self.events)

    # -------------------------------------------------------------------------
    # Registration

    def register(
        self,
        *,
        email: str,
        username: str,
        password: str,
        customer_id: Optional[int] = None,
    ) -> User:
        """Create a USER; the first user of a tenant becomes its active ADMIN."""
        normalized = Email(email).value
        Password(password)
        username = username.strip()

        if self.users.get_by_email(normalized):
            raise ConflictError("User with this email already exists")
        if self.users.get_by_username(username):
            raise ConflictError("Username is already taken")

        if customer_id is not None:
            customer = self.customer_service.require_customer(customer_id)
        else:
            customer = get_or_create_default_organization(self.session)
        self.customer_service.ensure_active(customer)
        self.customer_service.ensure_user_quota(customer)

        first_user = self.customers.count_users(customer.id) == 0
        user = User(
            email=normalized,
            username=username,
            hashed_password=get_password_hash(password),
            role=UserRole.ADMIN.value if first_user else UserRole.USER.value,
            status=UserStatus.ACTIVE.value if first_user else UserStatus.PENDING.value,
            customer_id=customer.id,
        )
        self.users.add(user)
        self.users.commit()
        self.users.refresh(user)

        logger.info("User registered", extra={"user_id": user.id, "customer_id": customer.id})
        self.events.publish(
            UserRegistered(
                tenant_id=customer.id, user_id=user.id, email=user.email, status=user.status
            )
        )
        return user

    # -------------------------------------------------------------------------
    # Login / logout

    def authenticate(self, email: str, password: str) -> User:
        user = self.users.get_by_email((email or "").strip().lower())
        if not user or user.deleted_at is not None:
            raise UnauthorizedError(INVALID_CREDENTIALS)
        if not verify_password(password, user.hashed_password):
            raise UnauthorizedError(INVALID_CREDENTIALS)
        if user.status == UserStatus.PENDING.value:
            raise ForbiddenError("Account pending approval")
        if user.status != UserStatus.ACTIVE.value:
            raise ForbiddenError("Account is not active")
        return user

    def login(
        self,
        email: str,
        password: str,
        *,
        remember: bool = False,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> LoginResult:
        try:
            user = self.authenticate(email, password)
        except (UnauthorizedError, ForbiddenError):
            record_login_attempt(success=False)
            raise

        lifetime = token_lifetime(remember)
        token, expires_at = create_access_token(
            {
                "sub": str(user.id),
                "email": user.email,
                "role": user.role,
                "customer_id": user.customer_id,
            },
            lifetime,
        )
        self.login_sessions.add(
            LoginSession(
                user_id=user.id,
                token=token,
                expires_at=expires_at,
                ip_address=ip_address,
                user_agent=(user_agent or "")[:255] or None,
            )
        )
        user.last_login_at = utcnow()
        self.users.commit()
        self.users.refresh(user)

        record_login_attempt(success=True)
        self.events.publish(
            UserLoggedIn(
                tenant_id=user.customer_id, user_id=user.id, email=user.email, remember=remember
            )
        )
        return LoginResult(
            user=user,
            token=token,
            expires_at=expires_at,
            max_age=int(lifetime.total_seconds()),
        )

    def logout(self, token: Optional[str]) -> bool:
        """Revoke the login session bound to ``token``; False if none matched."""
        if not token:
            return False
        login_session = self.login_sessions.get_by_token(token)
        if login_session is None:
            return False
        login_session.revoke()
        self.login_sessions.commit()
        return True

    # -------------------------------------------------------------------------
    # Resolution

    def resolve_token(self, token: str) -> User:
        payload = decode_token(token)
        login_session = self.login_sessions.get_by_token(token)
        if login_session is None or not login_session.is_valid:
            raise UnauthorizedError("Session expired or revoked")
        user = self.users.get_by_id(login_session.user_id)
        if user is None or str(user.id) != str(payload.get("sub")):
            raise UnauthorizedError("User not found")
        if not user.is_active:
            raise UnauthorizedError("User is not active")
        return user

    def reset_password(self, user: User, new_password: str) -> User:
        Password(new_password)
        user.hashed_password = get_password_hash(new_password)
        self.users.commit()
        return user
