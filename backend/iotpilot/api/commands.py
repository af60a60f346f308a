"""Device command endpoints."""

from fastapi import APIRouter, Depends, Query, Request, status

from iotpilot.celery_app import celery_app
from iotpilot.core.audit import AuditAction, AuditOutcome, audit_log
from iotpilot.core.auth import require_user
from iotpilot.db import User
from iotpilot.dependencies import (
    get_command_service,
    get_device_service,
    get_tenant_context,
    get_user_context,
)
from iotpilot.domain.context import TenantContext
from iotpilot.schemas.command import CommandCreate, CommandResponse
from iotpilot.services.command_service import CommandService
from iotpilot.services.device_service import DeviceService

router = APIRouter(prefix="/devices/{device_pk}/commands", tags=["commands"])


@router.post("", response_model=CommandResponse, status_code=status.HTTP_201_CREATED)
def create_command(
    device_pk: int,
    payload: CommandCreate,
    request: Request,
    devices: DeviceService = Depends(get_device_service),
    service: CommandService = Depends(get_command_service),
    context: TenantContext = Depends(get_user_context),
    current_user: User = Depends(require_user),
) -> CommandResponse:
    """Queue a command and hand it to the worker for SSH execution."""
    device = devices.get_device(device_pk, context)
    command = service.create_command(
        device, payload.command, payload.arguments, current_user, context
    )
    celery_app.send_task("execute_device_command", args=[command.id])

    audit_log(
        AuditAction.COMMAND_EXECUTE,
        AuditOutcome.SUCCESS,
        user=current_user,
        customer_id=device.customer_id,
        request=request,
        resource_type="device",
        resource_id=device.id,
        resource_name=device.hostname,
        details={"command_id": command.id, "command": command.command},
    )
    return CommandResponse.model_validate(command)


@router.get("", response_model=list[CommandResponse])
def list_commands(
    device_pk: int,
    limit: int = Query(default=10, ge=1, le=100),
    devices: DeviceService = Depends(get_device_service),
    service: CommandService = Depends(get_command_service),
    context: TenantContext = Depends(get_tenant_context),
) -> list[CommandResponse]:
    device = devices.get_device(device_pk, context)
    return [CommandResponse.model_validate(c) for c in service.list_commands(device, limit)]


@router.get("/{command_id}", response_model=CommandResponse)
def get_command(
    device_pk: int,
    command_id: int,
    devices: DeviceService = Depends(get_device_service),
    service: CommandService = Depends(get_command_service),
    context: TenantContext = Depends(get_tenant_context),
) -> CommandResponse:
    device = devices.get_device(device_pk, context)
    return CommandResponse.model_validate(service.get_command(device, command_id))
