"""User preference and tenant system config persistence."""

from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy.orm import Session

from iotpilot.db import SystemConfig, UserPreference
from iotpilot.repositories.base import SQLAlchemyRepository


class PreferenceRepository(SQLAlchemyRepository[UserPreference]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def list_for_user(
        self, user_id: int, category: Optional[str] = None
    ) -> Sequence[UserPreference]:
        query = self.session.query(UserPreference).filter(UserPreference.user_id == user_id)
        if category is not None:
            query = query.filter(UserPreference.category == category)
        return query.order_by(UserPreference.category.asc(), UserPreference.key.asc()).all()

    def upsert(self, user_id: int, category: str, key: str, value: str) -> UserPreference:
        preference = (
            self.session.query(UserPreference)
            .filter(
                UserPreference.user_id == user_id,
                UserPreference.category == category,
                UserPreference.key == key,
            )
            .first()
        )
        if preference is None:
            preference = UserPreference(user_id=user_id, category=category, key=key, value=value)
            self.session.add(preference)
        else:
            preference.value = value
        return preference


class SystemConfigRepository(SQLAlchemyRepository[SystemConfig]):
    def values_for(
        self, customer_id: Optional[int], category: str = "system"
    ) -> dict[str, str]:
        rows = (
            self.session.query(SystemConfig)
            .filter(SystemConfig.customer_id == customer_id, SystemConfig.category == category)
            .all()
        )
        return {row.key: row.value for row in rows}

    def upsert(
        self, customer_id: Optional[int], key: str, value: str, category: str = "system"
    ) -> SystemConfig:
        config = (
            self.session.query(SystemConfig)
            .filter(
                SystemConfig.customer_id == customer_id,
                SystemConfig.category == category,
                SystemConfig.key == key,
            )
            .first()
        )
        if config is None:
            config = SystemConfig(customer_id=customer_id, category=category, key=key, value=value)
            self.session.add(config)
        else:
            config.value = value
        return config
