"""Device registration and management endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status

from iotpilot.core.audit import AuditAction, AuditOutcome, audit_log, get_client_ip
from iotpilot.core.auth import get_current_user, require_admin
from iotpilot.db import Device, User
from iotpilot.dependencies import (
    get_admin_context,
    get_device_service,
    get_tenant_context,
    get_user_context,
)
from iotpilot.domain.context import TenantContext
from iotpilot.domain.devices import DeviceFilters, DeviceStatus, HardwareType, IpAddress
from iotpilot.domain.exceptions import InvalidDeviceData
from iotpilot.schemas.alert import AlertResponse
from iotpilot.schemas.command import CommandResponse
from iotpilot.schemas.device import (
    DeviceDetailResponse,
    DeviceListResponse,
    DeviceRegisterRequest,
    DeviceRegistrationResponse,
    DeviceResponse,
    DeviceSettingsResponse,
    DeviceSettingsUpdate,
    DeviceStats,
    DeviceUpdate,
)
from iotpilot.services.device_service import DeviceRegistration, DeviceService

router = APIRouter(prefix="/devices", tags=["devices"])

TAILSCALE_HEADERS = {
    "tailscale_user": "x-tailscale-user",
    "tailscale_name": "x-tailscale-name",
    "tailscale_login": "x-tailscale-login",
    "tailscale_tailnet": "x-tailscale-tailnet",
}


def device_response(device: Device, alert_count: int = 0) -> DeviceResponse:
    return DeviceResponse.model_validate(device).model_copy(update={"alert_count": alert_count})


def _register(
    payload: DeviceRegisterRequest,
    request: Request,
    response: Response,
    service: DeviceService,
    context: TenantContext,
    current_user: User,
) -> DeviceRegistrationResponse:
    registration = DeviceRegistration(**payload.model_dump())
    device, created = service.register_device(registration, context)

    audit_log(
        AuditAction.DEVICE_REGISTER if created else AuditAction.DEVICE_UPDATE,
        AuditOutcome.SUCCESS,
        user=current_user,
        customer_id=device.customer_id,
        request=request,
        resource_type="device",
        resource_id=device.id,
        resource_name=device.hostname,
        details={"device_id": device.device_id, "auto_registered": device.auto_registered},
    )
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return DeviceRegistrationResponse(
        device=device_response(device),
        message="Device registered successfully" if created else "Device updated successfully",
    )


@router.get("", response_model=DeviceListResponse)
def list_devices(
    status_filter: Optional[DeviceStatus] = Query(default=None, alias="status"),
    device_type: Optional[HardwareType] = Query(default=None, alias="type"),
    location: Optional[str] = Query(default=None, max_length=200),
    service: DeviceService = Depends(get_device_service),
    context: TenantContext = Depends(get_tenant_context),
) -> DeviceListResponse:
    """Devices of the tenant with unresolved alert counts and fleet stats."""
    listing = service.list_devices(
        DeviceFilters(status=status_filter, device_type=device_type, location=location), context
    )
    return DeviceListResponse(
        devices=[
            device_response(device, listing.alert_counts.get(device.id, 0))
            for device in listing.devices
        ],
        stats=DeviceStats(**listing.stats),
    )


@router.post("", response_model=DeviceRegistrationResponse)
def register_device(
    payload: DeviceRegisterRequest,
    request: Request,
    response: Response,
    service: DeviceService = Depends(get_device_service),
    context: TenantContext = Depends(get_user_context),
    current_user: User = Depends(get_current_user),
) -> DeviceRegistrationResponse:
    """Register a device, or refresh it when the agent id is already known."""
    return _register(payload, request, response, service, context, current_user)


@router.post("/register", response_model=DeviceRegistrationResponse)
def register_device_alias(
    payload: DeviceRegisterRequest,
    request: Request,
    response: Response,
    service: DeviceService = Depends(get_device_service),
    context: TenantContext = Depends(get_user_context),
    current_user: User = Depends(get_current_user),
) -> DeviceRegistrationResponse:
    return _register(payload, request, response, service, context, current_user)


@router.post("/tailscale-register")
def tailscale_register(
    payload: DeviceRegisterRequest,
    request: Request,
    response: Response,
    service: DeviceService = Depends(get_device_service),
    context: TenantContext = Depends(get_user_context),
    current_user: User = Depends(get_current_user),
) -> dict:
    """Register a device reaching the API over Tailscale.

    The caller's address becomes the device's Tailscale IP and the
    ``X-Tailscale-*`` identity headers are kept in the device settings.
    """
    client_ip = get_client_ip(request)
    try:
        tailscale_ip = IpAddress(client_ip).value if client_ip else None
    except InvalidDeviceData:
        tailscale_ip = None
    identity = {key: request.headers.get(header) for key, header in TAILSCALE_HEADERS.items()}

    registration = DeviceRegistration(
        **payload.model_dump(exclude={"tailscale_ip", "auto_registered"}),
        tailscale_ip=tailscale_ip or payload.tailscale_ip,
        auto_registered=True,
    )
    device, created = service.register_device(
        registration,
        context,
        extra_settings={k: v for k, v in identity.items() if v is not None},
    )

    audit_log(
        AuditAction.DEVICE_REGISTER if created else AuditAction.DEVICE_UPDATE,
        AuditOutcome.SUCCESS,
        user=current_user,
        customer_id=device.customer_id,
        request=request,
        resource_type="device",
        resource_id=device.id,
        resource_name=device.hostname,
        details={"device_id": device.device_id, "tailscale": True},
    )
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return {
        "success": True,
        "device": device_response(device).model_dump(mode="json"),
        "tailscale": {
            "user": identity["tailscale_user"],
            "name": identity["tailscale_name"],
            "ip": tailscale_ip,
        },
    }


@router.get("/{device_pk}", response_model=DeviceDetailResponse)
def get_device(
    device_pk: int,
    service: DeviceService = Depends(get_device_service),
    context: TenantContext = Depends(get_tenant_context),
) -> DeviceDetailResponse:
    """Device with latest metrics, open alerts and recent commands."""
    detail = service.get_device_detail(device_pk, context)
    return DeviceDetailResponse(
        device=device_response(detail["device"], detail["alert_count"]),
        metrics=detail["metrics"],
        alerts=[AlertResponse.model_validate(alert) for alert in detail["alerts"]],
        commands=[CommandResponse.model_validate(command) for command in detail["commands"]],
    )


@router.put("/{device_pk}", response_model=DeviceResponse)
def update_device(
    device_pk: int,
    payload: DeviceUpdate,
    request: Request,
    service: DeviceService = Depends(get_device_service),
    context: TenantContext = Depends(get_user_context),
    current_user: User = Depends(get_current_user),
) -> DeviceResponse:
    changes = payload.model_dump(exclude_unset=True)
    device = service.update_device(device_pk, changes, context)

    audit_log(
        AuditAction.DEVICE_UPDATE,
        AuditOutcome.SUCCESS,
        user=current_user,
        customer_id=device.customer_id,
        request=request,
        resource_type="device",
        resource_id=device.id,
        resource_name=device.hostname,
        details=payload.model_dump(mode="json", exclude_unset=True),
    )
    return device_response(device)


@router.delete("/{device_pk}")
def delete_device(
    device_pk: int,
    request: Request,
    service: DeviceService = Depends(get_device_service),
    context: TenantContext = Depends(get_admin_context),
    current_user: User = Depends(require_admin),
) -> dict:
    device = service.delete_device(device_pk, context)

    audit_log(
        AuditAction.DEVICE_DELETE,
        AuditOutcome.SUCCESS,
        user=current_user,
        customer_id=device.customer_id,
        request=request,
        resource_type="device",
        resource_id=device_pk,
        resource_name=device.hostname,
    )
    return {"message": "Device deleted successfully"}


@router.get("/{device_pk}/settings", response_model=DeviceSettingsResponse)
def get_device_settings(
    device_pk: int,
    service: DeviceService = Depends(get_device_service),
    context: TenantContext = Depends(get_tenant_context),
) -> DeviceSettingsResponse:
    return DeviceSettingsResponse(**service.get_settings(device_pk, context))


@router.put("/{device_pk}/settings", response_model=DeviceSettingsResponse)
def update_device_settings(
    device_pk: int,
    payload: DeviceSettingsUpdate,
    request: Request,
    service: DeviceService = Depends(get_device_service),
    context: TenantContext = Depends(get_user_context),
    current_user: User = Depends(get_current_user),
) -> DeviceSettingsResponse:
    """Update device settings; SSH secrets are stored encrypted and never returned."""
    values = payload.model_dump(exclude_unset=True)
    device = service.update_settings(device_pk, values, context)

    audit_log(
        AuditAction.DEVICE_SETTINGS_UPDATE,
        AuditOutcome.SUCCESS,
        user=current_user,
        customer_id=device.customer_id,
        request=request,
        resource_type="device",
        resource_id=device_pk,
        resource_name=device.hostname,
        details={"fields": sorted(values)},
    )
    return DeviceSettingsResponse(**service.settings_view(device))
