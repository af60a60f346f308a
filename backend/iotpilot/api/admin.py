"""Tenant administration endpoints."""

import math
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from iotpilot.core.audit import AuditAction, AuditOutcome, audit_log
from iotpilot.core.auth import require_admin
from iotpilot.db import User
from iotpilot.dependencies import get_admin_context, get_system_service, get_user_service
from iotpilot.domain.context import TenantContext
from iotpilot.domain.users import UserFilters, UserStatus
from iotpilot.schemas.auth import UserResponse
from iotpilot.schemas.user import (
    Pagination,
    UserApprovalRequest,
    UserApprovalResponse,
    UserListResponse,
)
from iotpilot.services.system_service import SystemService
from iotpilot.services.user_service import UserService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=UserListResponse)
def list_users(
    status: Optional[UserStatus] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    service: UserService = Depends(get_user_service),
    context: TenantContext = Depends(get_admin_context),
) -> UserListResponse:
    """Users of the caller's tenant, newest first."""
    total, users = service.list_users(UserFilters(status=status, page=page, limit=limit), context)
    return UserListResponse(
        users=[UserResponse.model_validate(user) for user in users],
        pagination=Pagination(
            total=total, page=page, limit=limit, pages=math.ceil(total / limit) if total else 0
        ),
    )


@router.post("/users/{user_id}/approve", response_model=UserApprovalResponse)
def approve_user(
    user_id: int,
    payload: UserApprovalRequest,
    request: Request,
    service: UserService = Depends(get_user_service),
    context: TenantContext = Depends(get_admin_context),
    current_user: User = Depends(require_admin),
) -> UserApprovalResponse:
    """Approve or reject a pending registration."""
    result = service.set_approval(user_id, payload.action, context, payload.reason)
    if result.changed:
        audit_log(
            AuditAction.USER_APPROVE if payload.action == "approve" else AuditAction.USER_REJECT,
            AuditOutcome.SUCCESS,
            user=current_user,
            request=request,
            resource_type="user",
            resource_id=user_id,
            resource_name=result.user.email,
            details={"reason": payload.reason},
        )
    return UserApprovalResponse(
        message=result.message,
        user=UserResponse.model_validate(result.user) if result.user else None,
    )


@router.get("/system")
def system_overview(
    service: SystemService = Depends(get_system_service),
    context: TenantContext = Depends(get_admin_context),
) -> dict:
    """Host, database and application metrics."""
    return service.overview(context)
