"""User preference and system settings schemas.

Preference values are stored as strings, so booleans travel as
``"true"``/``"false"``.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

BoolString = Literal["true", "false"]


class ProfileSettings(BaseModel):
    language: str = Field(..., min_length=2, max_length=5)
    timezone: str = Field(..., min_length=1)
    dateFormat: str = Field(..., min_length=1)


class NotificationSettings(BaseModel):
    emailNotifications: BoolString
    pushNotifications: BoolString
    alertNotifications: BoolString
    deviceOfflineNotifications: BoolString


class SecuritySettings(BaseModel):
    twoFactorAuth: BoolString
    sessionTimeout: str = Field(..., min_length=1)
    loginNotifications: BoolString


class SystemSettings(BaseModel):
    theme: Literal["light", "dark", "system"]
    dashboardLayout: Literal["default", "compact", "expanded"]
    itemsPerPage: str = Field(..., min_length=1)
    enableAdvancedMetrics: Optional[BoolString] = None
    enableBetaFeatures: Optional[BoolString] = None
    logLevel: Optional[Literal["debug", "info", "warn", "error"]] = None


class SettingsUpdateResponse(BaseModel):
    message: str
    settings: dict[str, str]
