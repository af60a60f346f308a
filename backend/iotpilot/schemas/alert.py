"""Alert schemas."""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from iotpilot.domain.devices import AlertSeverity, AlertType


class AlertResponse(BaseModel):
    id: int
    device_id: int
    type: str
    severity: str
    title: str
    message: str
    source: Optional[str]
    resolved: bool
    resolved_at: Optional[datetime]
    resolved_by: Optional[str]
    resolve_note: Optional[str]
    acknowledged_at: Optional[datetime]
    metadata: Optional[dict[str, Any]] = Field(None, validation_alias="details")
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AlertCreate(BaseModel):
    type: AlertType
    severity: AlertSeverity
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    source: Optional[str] = Field(None, max_length=50)
    metadata: Optional[dict[str, Any]] = None


class AlertAction(BaseModel):
    """PATCH payload; ``action`` is validated by the service."""

    action: str
    resolved_by: Optional[str] = Field(None, max_length=255)
    note: Optional[str] = None
    severity: Optional[AlertSeverity] = None
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    message: Optional[str] = Field(None, min_length=1)
    metadata: Optional[dict[str, Any]] = None


class AlertStats(BaseModel):
    total: int
    active: int
    resolved: int
    critical: int
    by_severity: dict[str, int]


class AlertListResponse(BaseModel):
    alerts: list[AlertResponse]
    stats: AlertStats


AlertStatusFilter = Literal["active", "resolved"]
