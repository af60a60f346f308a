"""Device alert endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from iotpilot.core.audit import AuditAction, AuditOutcome, audit_log
from iotpilot.core.auth import get_current_user
from iotpilot.db import User
from iotpilot.dependencies import (
    get_alert_service,
    get_device_service,
    get_tenant_context,
    get_user_context,
)
from iotpilot.domain.context import TenantContext
from iotpilot.domain.devices import AlertFilters, AlertSeverity, AlertType
from iotpilot.schemas.alert import (
    AlertAction,
    AlertCreate,
    AlertListResponse,
    AlertResponse,
    AlertStats,
    AlertStatusFilter,
)
from iotpilot.services.alert_service import AlertService
from iotpilot.services.device_service import DeviceService

router = APIRouter(prefix="/devices/{device_pk}/alerts", tags=["alerts"])


@router.get("", response_model=AlertListResponse)
def list_alerts(
    device_pk: int,
    severity: Optional[AlertSeverity] = None,
    status_filter: Optional[AlertStatusFilter] = Query(default=None, alias="status"),
    alert_type: Optional[AlertType] = Query(default=None, alias="type"),
    devices: DeviceService = Depends(get_device_service),
    service: AlertService = Depends(get_alert_service),
    context: TenantContext = Depends(get_tenant_context),
) -> AlertListResponse:
    device = devices.get_device(device_pk, context)
    alerts, stats = service.list_alerts(
        device, AlertFilters(severity=severity, status=status_filter, alert_type=alert_type)
    )
    return AlertListResponse(
        alerts=[AlertResponse.model_validate(alert) for alert in alerts],
        stats=AlertStats(**stats),
    )


@router.post("", response_model=AlertResponse, status_code=status.HTTP_201_CREATED)
def create_alert(
    device_pk: int,
    payload: AlertCreate,
    devices: DeviceService = Depends(get_device_service),
    service: AlertService = Depends(get_alert_service),
    context: TenantContext = Depends(get_user_context),
) -> AlertResponse:
    """Raise a manual alert against a device."""
    device = devices.get_device(device_pk, context)
    alert = service.raise_alert(
        device,
        payload.type,
        payload.severity,
        payload.title,
        payload.message,
        source=payload.source or "manual",
        details=payload.metadata,
    )
    return AlertResponse.model_validate(alert)


@router.get("/{alert_id}", response_model=AlertResponse)
def get_alert(
    device_pk: int,
    alert_id: int,
    devices: DeviceService = Depends(get_device_service),
    service: AlertService = Depends(get_alert_service),
    context: TenantContext = Depends(get_tenant_context),
) -> AlertResponse:
    device = devices.get_device(device_pk, context)
    return AlertResponse.model_validate(service.get_alert(device, alert_id))


@router.patch("/{alert_id}", response_model=AlertResponse)
def update_alert(
    device_pk: int,
    alert_id: int,
    payload: AlertAction,
    devices: DeviceService = Depends(get_device_service),
    service: AlertService = Depends(get_alert_service),
    context: TenantContext = Depends(get_user_context),
    current_user: User = Depends(get_current_user),
) -> AlertResponse:
    """Acknowledge, resolve or edit an alert."""
    device = devices.get_device(device_pk, context)
    alert = service.apply_action(
        device,
        alert_id,
        payload.action,
        payload.model_dump(exclude={"action"}, exclude_none=True),
        current_user,
    )
    return AlertResponse.model_validate(alert)


@router.delete("/{alert_id}")
def delete_alert(
    device_pk: int,
    alert_id: int,
    request: Request,
    devices: DeviceService = Depends(get_device_service),
    service: AlertService = Depends(get_alert_service),
    context: TenantContext = Depends(get_user_context),
    current_user: User = Depends(get_current_user),
) -> dict:
    device = devices.get_device(device_pk, context)
    service.delete_alert(device, alert_id)

    audit_log(
        AuditAction.ALERT_DELETE,
        AuditOutcome.SUCCESS,
        user=current_user,
        customer_id=device.customer_id,
        request=request,
        resource_type="alert",
        resource_id=alert_id,
        details={"device_id": device.device_id},
    )
    return {"message": "Alert deleted successfully"}
