"""Interactive SSH session endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Request, status

from iotpilot.core.audit import AuditAction, AuditOutcome, audit_log
from iotpilot.core.auth import require_user
from iotpilot.db import User
from iotpilot.dependencies import get_ssh_service, get_tenant_context, get_user_context
from iotpilot.domain.context import TenantContext
from iotpilot.schemas.ssh import SSHCommandRequest, SSHCommandResponse, SSHSessionResponse
from iotpilot.services.ssh_service import SSHService

router = APIRouter(prefix="/devices/{device_pk}/ssh/sessions", tags=["ssh"])


@router.get("", response_model=list[SSHSessionResponse])
def list_sessions(
    device_pk: int,
    active: Optional[bool] = None,
    service: SSHService = Depends(get_ssh_service),
    context: TenantContext = Depends(get_tenant_context),
) -> list[SSHSessionResponse]:
    return [
        SSHSessionResponse.model_validate(record)
        for record in service.list_sessions(device_pk, context, active=active)
    ]


@router.post("", response_model=SSHSessionResponse, status_code=status.HTTP_201_CREATED)
async def open_session(
    device_pk: int,
    request: Request,
    service: SSHService = Depends(get_ssh_service),
    context: TenantContext = Depends(get_user_context),
    current_user: User = Depends(require_user),
) -> SSHSessionResponse:
    """Open an SSH connection to the device and track it as a session."""
    record = await service.open_session(device_pk, context)

    audit_log(
        AuditAction.SSH_SESSION_OPEN,
        AuditOutcome.SUCCESS,
        user=current_user,
        customer_id=record.customer_id,
        request=request,
        resource_type="ssh_session",
        resource_id=record.id,
        details={"device_pk": device_pk, "host": record.ip_address},
    )
    return SSHSessionResponse.model_validate(record)


@router.get("/{session_id}", response_model=SSHSessionResponse)
def get_session(
    device_pk: int,
    session_id: str,
    service: SSHService = Depends(get_ssh_service),
    context: TenantContext = Depends(get_tenant_context),
) -> SSHSessionResponse:
    return SSHSessionResponse.model_validate(service.get_session(device_pk, session_id, context))


@router.post("/{session_id}/commands", response_model=SSHCommandResponse)
async def run_command(
    device_pk: int,
    session_id: str,
    payload: SSHCommandRequest,
    service: SSHService = Depends(get_ssh_service),
    context: TenantContext = Depends(get_user_context),
) -> SSHCommandResponse:
    result = await service.run_command(device_pk, session_id, payload.command, context)
    return SSHCommandResponse(
        command=result.command,
        stdout=result.stdout,
        stderr=result.stderr,
        exit_status=result.exit_status,
    )


@router.delete("/{session_id}", response_model=SSHSessionResponse)
async def close_session(
    device_pk: int,
    session_id: str,
    request: Request,
    service: SSHService = Depends(get_ssh_service),
    context: TenantContext = Depends(get_user_context),
    current_user: User = Depends(require_user),
) -> SSHSessionResponse:
    record = await service.close_session(device_pk, session_id, context)

    audit_log(
        AuditAction.SSH_SESSION_CLOSE,
        AuditOutcome.SUCCESS,
        user=current_user,
        customer_id=record.customer_id,
        request=request,
        resource_type="ssh_session",
        resource_id=record.id,
        details={"device_pk": device_pk, "command_count": len(record.commands)},
    )
    return SSHSessionResponse.model_validate(record)
