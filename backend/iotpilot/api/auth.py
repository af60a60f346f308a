"""Authentication API endpoints."""

from fastapi import APIRouter, Depends, Request, Response, status
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.orm import Session

from iotpilot.core import settings
from iotpilot.core.audit import AuditAction, AuditOutcome, audit_log, get_client_ip
from iotpilot.core.auth import get_current_user, get_request_token
from iotpilot.db import User
from iotpilot.dependencies import get_auth_service, get_session, get_tenant_context
from iotpilot.domain.context import TenantContext
from iotpilot.domain.exceptions import DomainError, ForbiddenError, UnauthorizedError
from iotpilot.domain.users import UserStatus
from iotpilot.repositories import AlertRepository, DeviceRepository
from iotpilot.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    RegisterRequest,
    RegisterResponse,
    UserResponse,
)
from iotpilot.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])

# Rate limiter for auth endpoints - disabled during testing
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.redis_url,
    enabled=not settings.testing,
)


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    request: Request,
    payload: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> RegisterResponse:
    """Self-service registration; accounts other than a tenant's first await approval."""
    try:
        user = service.register(
            email=payload.email,
            username=payload.username,
            password=payload.password,
            customer_id=payload.customer_id,
        )
    except DomainError as exc:
        audit_log(
            AuditAction.REGISTER,
            AuditOutcome.FAILURE,
            request=request,
            email=payload.email,
            error_message=exc.message,
        )
        raise

    audit_log(
        AuditAction.REGISTER,
        AuditOutcome.SUCCESS,
        user=user,
        request=request,
        resource_type="user",
        resource_id=user.id,
        details={"status": user.status, "role": user.role},
    )
    message = (
        "Registration successful"
        if user.status == UserStatus.ACTIVE.value
        else "Registration successful. Your account is pending approval."
    )
    return RegisterResponse(user=UserResponse.model_validate(user), message=message)


@router.post("/login", response_model=LoginResponse)
@limiter.limit("10/minute")
def login(
    request: Request,
    response: Response,
    payload: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    """Login with email and password.

    Sets the ``auth-token`` cookie and also returns the token for API clients.
    Rate limited to 10 attempts per minute per IP.
    """
    try:
        result = service.login(
            payload.email,
            payload.password,
            remember=payload.remember,
            ip_address=get_client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
    except (UnauthorizedError, ForbiddenError) as exc:
        audit_log(
            AuditAction.LOGIN_FAILURE,
            AuditOutcome.FAILURE if isinstance(exc, UnauthorizedError) else AuditOutcome.DENIED,
            request=request,
            email=payload.email,
            details={"reason": exc.message},
        )
        raise

    response.set_cookie(
        key=settings.auth_cookie_name,
        value=result.token,
        max_age=result.max_age,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
    )
    audit_log(
        AuditAction.LOGIN_SUCCESS,
        AuditOutcome.SUCCESS,
        user=result.user,
        request=request,
        details={"remember": payload.remember},
    )
    return LoginResponse(
        user=UserResponse.model_validate(result.user),
        token=result.token,
        expires_at=result.expires_at,
    )


@router.post("/logout")
def logout(
    request: Request,
    response: Response,
    token: str | None = Depends(get_request_token),
    service: AuthService = Depends(get_auth_service),
) -> dict:
    """Revoke the current session and clear the auth cookie."""
    service.logout(token)
    response.delete_cookie(settings.auth_cookie_name, path="/")
    audit_log(AuditAction.LOGOUT, AuditOutcome.SUCCESS, request=request)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=MeResponse)
def get_me(
    current_user: User = Depends(get_current_user),
    context: TenantContext = Depends(get_tenant_context),
    session: Session = Depends(get_session),
) -> MeResponse:
    """Current user with device and alert counts for their tenant."""
    return MeResponse.model_validate(current_user).model_copy(
        update={
            "device_count": DeviceRepository(session).count(context),
            "alert_count": AlertRepository(session).count(context, resolved=False),
        }
    )
