"""User preference and system settings endpoints."""

from fastapi import APIRouter, Depends

from iotpilot.core.auth import get_current_user
from iotpilot.db import User
from iotpilot.dependencies import get_preference_service
from iotpilot.schemas.settings import (
    NotificationSettings,
    ProfileSettings,
    SecuritySettings,
    SettingsUpdateResponse,
    SystemSettings,
)
from iotpilot.services.preference_service import PreferenceCategory, PreferenceService

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("")
def get_all_settings(
    service: PreferenceService = Depends(get_preference_service),
    current_user: User = Depends(get_current_user),
) -> dict[str, dict[str, str]]:
    """All stored preferences grouped by category."""
    return service.get_all(current_user)


@router.get("/profile")
def get_profile_settings(
    service: PreferenceService = Depends(get_preference_service),
    current_user: User = Depends(get_current_user),
) -> dict[str, str]:
    return service.get_user_preferences(current_user, PreferenceCategory.PROFILE)


@router.put("/profile", response_model=SettingsUpdateResponse)
def update_profile_settings(
    payload: ProfileSettings,
    service: PreferenceService = Depends(get_preference_service),
    current_user: User = Depends(get_current_user),
) -> SettingsUpdateResponse:
    updated = service.update_user_preferences(
        current_user, PreferenceCategory.PROFILE, payload.model_dump()
    )
    return SettingsUpdateResponse(message="Profile settings updated successfully", settings=updated)


@router.get("/notifications")
def get_notification_settings(
    service: PreferenceService = Depends(get_preference_service),
    current_user: User = Depends(get_current_user),
) -> dict[str, str]:
    return service.get_user_preferences(current_user, PreferenceCategory.NOTIFICATIONS)


@router.put("/notifications", response_model=SettingsUpdateResponse)
def update_notification_settings(
    payload: NotificationSettings,
    service: PreferenceService = Depends(get_preference_service),
    current_user: User = Depends(get_current_user),
) -> SettingsUpdateResponse:
    updated = service.update_user_preferences(
        current_user, PreferenceCategory.NOTIFICATIONS, payload.model_dump()
    )
    return SettingsUpdateResponse(
        message="Notification settings updated successfully", settings=updated
    )


@router.get("/security")
def get_security_settings(
    service: PreferenceService = Depends(get_preference_service),
    current_user: User = Depends(get_current_user),
) -> dict[str, str]:
    return service.get_user_preferences(current_user, PreferenceCategory.SECURITY)


@router.put("/security", response_model=SettingsUpdateResponse)
def update_security_settings(
    payload: SecuritySettings,
    service: PreferenceService = Depends(get_preference_service),
    current_user: User = Depends(get_current_user),
) -> SettingsUpdateResponse:
    updated = service.update_security(current_user, payload.model_dump())
    return SettingsUpdateResponse(
        message="Security settings updated successfully", settings=updated
    )


@router.get("/system")
def get_system_settings(
    service: PreferenceService = Depends(get_preference_service),
    current_user: User = Depends(get_current_user),
) -> dict[str, str]:
    """System preferences; admins also get the tenant's system config."""
    return service.get_system_settings(current_user)


@router.put("/system", response_model=SettingsUpdateResponse)
def update_system_settings(
    payload: SystemSettings,
    service: PreferenceService = Depends(get_preference_service),
    current_user: User = Depends(get_current_user),
) -> SettingsUpdateResponse:
    updated = service.update_system(current_user, payload.model_dump())
    return SettingsUpdateResponse(message="System settings updated successfully", settings=updated)
