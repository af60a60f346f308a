"""API key persistence helpers."""

from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy.orm import Session

from iotpilot.db import APIKey
from iotpilot.repositories.base import SQLAlchemyRepository


class APIKeyRepository(SQLAlchemyRepository[APIKey]):
    """Repository for API key operations."""

    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def get_by_hash(self, key_hash: str) -> Optional[APIKey]:
        return self.session.query(APIKey).filter(APIKey.key_hash == key_hash).first()

    def get_for_user(self, key_id: int, user_id: int) -> Optional[APIKey]:
        return (
            self.session.query(APIKey)
            .filter(
                APIKey.id == key_id,
                APIKey.user_id == user_id,
                APIKey.deleted_at.is_(None),
            )
            .first()
        )

    def list_for_user(self, user_id: int) -> Sequence[APIKey]:
        return (
            self.session.query(APIKey)
            .filter(APIKey.user_id == user_id, APIKey.deleted_at.is_(None))
            .order_by(APIKey.created_at.desc())
            .all()
        )
