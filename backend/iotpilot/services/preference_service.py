"""User preferences and tenant system configuration."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from sqlalchemy.orm import Session

from iotpilot.core.permissions import is_admin
from iotpilot.db import User
from iotpilot.domain.exceptions import BadRequestError
from iotpilot.repositories import PreferenceRepository, SystemConfigRepository


class PreferenceCategory(str, Enum):
    PROFILE = "PROFILE"
    NOTIFICATIONS = "NOTIFICATIONS"
    SECURITY = "SECURITY"
    SYSTEM = "SYSTEM"
    APPEARANCE = "APPEARANCE"
    ACCESSIBILITY = "ACCESSIBILITY"


DEFAULT_PREFERENCES: dict[PreferenceCategory, dict[str, str]] = {
    PreferenceCategory.PROFILE: {
        "language": "en",
        "timezone": "UTC",
        "dateFormat": "MM/DD/YYYY",
    },
    PreferenceCategory.NOTIFICATIONS: {
        "emailNotifications": "true",
        "pushNotifications": "false",
        "alertNotifications": "true",
        "deviceOfflineNotifications": "true",
    },
    PreferenceCategory.SECURITY: {
        "twoFactorAuth": "false",
        "sessionTimeout": "30",
        "loginNotifications": "true",
    },
    PreferenceCategory.SYSTEM: {
        "theme": "light",
        "dashboardLayout": "default",
        "itemsPerPage": "10",
    },
    PreferenceCategory.APPEARANCE: {
        "theme": "light",
        "fontSize": "medium",
        "colorScheme": "default",
    },
    PreferenceCategory.ACCESSIBILITY: {
        "highContrast": "false",
        "reducedMotion": "false",
        "largeText": "false",
    },
}

ADMIN_SYSTEM_DEFAULTS: dict[str, str] = {
    "enableAdvancedMetrics": "false",
    "enableBetaFeatures": "false",
    "logLevel": "info",
}

SESSION_TIMEOUT_RANGE = (5, 1440)
ITEMS_PER_PAGE_RANGE = (5, 100)


def _check_range(raw: str, bounds: tuple[int, int], message: str) -> None:
    low, high = bounds
    if not raw.isdigit() or not low <= int(raw) <= high:
        raise BadRequestError(message)


class PreferenceService:
    def __init__(self, session: Session) -> None:
        self.session = session
        self.preferences = PreferenceRepository(session)
        self.system_configs = SystemConfigRepository(session)

    # -------------------------------------------------------------------------
    # Queries

    def get_all(self, user: User) -> dict[str, dict[str, str]]:
        """Stored preferences grouped by category."""
        grouped: dict[str, dict[str, str]] = {}
        for preference in self.preferences.list_for_user(user.id):
            grouped.setdefault(preference.category, {})[preference.key] = preference.value
        return grouped

    def get_user_preferences(self, user: User, category: PreferenceCategory) -> dict[str, str]:
        """Defaults overlaid with stored values; missing defaults are persisted."""
        stored = {
            p.key: p.value for p in self.preferences.list_for_user(user.id, category.value)
        }
        merged = dict(DEFAULT_PREFERENCES[category])
        merged.update(stored)

        missing = {k: v for k, v in DEFAULT_PREFERENCES[category].items() if k not in stored}
        if missing:
            for key, value in missing.items():
                self.preferences.upsert(user.id, category.value, key, value)
            self.preferences.commit()
        return merged

    def get_system_settings(self, user: User) -> dict[str, str]:
        result = self.get_user_preferences(user, PreferenceCategory.SYSTEM)
        if is_admin(user.role):
            admin_settings = dict(ADMIN_SYSTEM_DEFAULTS)
            admin_settings.update(
                {
                    k: v
                    for k, v in self.system_configs.values_for(user.customer_id).items()
                    if v
                }
            )
            result.update(admin_settings)
            result["isAdmin"] = "true"
        return result

    # -------------------------------------------------------------------------
    # Mutations

    def update_user_preferences(
        self, user: User, category: PreferenceCategory, values: dict[str, str]
    ) -> dict[str, str]:
        for key, value in values.items():
            self.preferences.upsert(user.id, category.value, key, str(value))
        self.preferences.commit()
        return values

    def update_security(self, user: User, values: dict[str, str]) -> dict[str, str]:
        _check_range(
            values["sessionTimeout"],
            SESSION_TIMEOUT_RANGE,
            "Session timeout must be between 5 and 1440 minutes",
        )
        return self.update_user_preferences(user, PreferenceCategory.SECURITY, values)

    def update_system(self, user: User, values: dict[str, Optional[str]]) -> dict[str, str]:
        """Update SYSTEM preferences; admin-only keys go to the tenant's config."""
        values = {k: v for k, v in values.items() if v is not None}
        _check_range(
            values["itemsPerPage"],
            ITEMS_PER_PAGE_RANGE,
            "Items per page must be between 5 and 100",
        )
        admin = is_admin(user.role)
        user_values: dict[str, str] = {}
        config_values: dict[str, str] = {}
        for key, value in values.items():
            if key in ADMIN_SYSTEM_DEFAULTS:
                if admin:
                    config_values[key] = value
            else:
                user_values[key] = value

        for key, value in user_values.items():
            self.preferences.upsert(user.id, PreferenceCategory.SYSTEM.value, key, value)
        for key, value in config_values.items():
            self.system_configs.upsert(user.customer_id, key, value)
        self.preferences.commit()
        return {**user_values, **config_values}
