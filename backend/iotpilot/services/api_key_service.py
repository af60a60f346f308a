"""API key service for managing API keys."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from iotpilot.core.crypto import digest_api_key, generate_api_key
from iotpilot.core.permissions import is_superadmin
from iotpilot.core.time import utcnow
from iotpilot.db import APIKey, User
from iotpilot.domain.exceptions import NotFoundError, UnauthorizedError, ValidationError
from iotpilot.repositories import APIKeyRepository, UserRepository

API_KEY_NAME_MAX_LENGTH = 100


class APIKeyService:
    """Service for API key management operations.

    Keys look like ``iot_<64 hex chars>``. Only the SHA-256 digest and the
    last four characters are stored.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self.repo = APIKeyRepository(session)
        self.users = UserRepository(session)

    def create_api_key(
        self,
        user: User,
        name: str,
        expires_at: Optional[datetime] = None,
    ) -> tuple[APIKey, str]:
        """Create a key for ``user``; the plain key is only available here."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("API key name is required")
        if len(name) > API_KEY_NAME_MAX_LENGTH:
            raise ValidationError("API key name must be 100 characters or less")
        if expires_at is not None and expires_at.tzinfo is not None:
            expires_at = expires_at.astimezone(timezone.utc).replace(tzinfo=None)

        plain_key = generate_api_key()
        api_key = APIKey(
            user_id=user.id,
            customer_id=user.customer_id,
            name=name,
            key_hash=digest_api_key(plain_key),
            key_suffix=plain_key[-4:],
            expires_at=expires_at,
        )
        self.repo.add(api_key)
        self.repo.commit()
        self.repo.refresh(api_key)
        return api_key, plain_key

    def list_user_api_keys(self, user: User) -> Sequence[APIKey]:
        return self.repo.list_for_user(user.id)

    def revoke_api_key(self, key_id: int, user: User) -> APIKey:
        api_key = self.repo.get_for_user(key_id, user.id)
        if api_key is None:
            raise NotFoundError("API key not found")
        api_key.deleted_at = utcnow()
        self.repo.commit()
        return api_key

    def authenticate(self, plain_key: str) -> User:
        """Resolve the owner of ``plain_key`` and stamp ``last_used_at``."""
        api_key = self.repo.get_by_hash(digest_api_key(plain_key))
        if api_key is None or not api_key.is_usable:
            raise UnauthorizedError("Invalid API key")
        user = self.users.get_by_id(api_key.user_id)
        if user is None or not user.is_active:
            raise UnauthorizedError("Invalid API key")
        if not is_superadmin(user.role) and api_key.customer_id != user.customer_id:
            raise UnauthorizedError("API key does not belong to this organization")
        api_key.last_used_at = utcnow()
        self.repo.commit()
        return user
