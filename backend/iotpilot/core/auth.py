"""Request authentication dependencies.

Credentials are resolved in order: the ``auth-token`` cookie, an
``Authorization: Bearer`` header, then an ``X-API-Key`` header.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from iotpilot.core.audit import AuditAction, AuditOutcome, audit_log
from iotpilot.core.config import settings
from iotpilot.core.permissions import UserRole, has_role
from iotpilot.db import User, get_db
from iotpilot.domain.exceptions import UnauthorizedError
from iotpilot.services.api_key_service import APIKeyService
from iotpilot.services.auth_service import AuthService

security = HTTPBearer(auto_error=False)


def get_request_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """JWT from the auth cookie or the bearer header, if any."""
    cookie = request.cookies.get(settings.auth_cookie_name)
    if cookie:
        return cookie
    if credentials is not None:
        return credentials.credentials
    return None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    token: Optional[str] = Depends(get_request_token),
    x_api_key: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> User:
    """Authenticated user for the request."""
    try:
        if token:
            return AuthService(db).resolve_token(token)
        if x_api_key:
            return APIKeyService(db).authenticate(x_api_key)
    except UnauthorizedError as exc:
        raise _unauthorized(exc.message) from exc
    raise _unauthorized("Not authenticated")


def require_role(min_role: UserRole):
    """Dependency factory enforcing ``min_role`` or any role above it."""

    def role_checker(request: Request, current_user: User = Depends(get_current_user)) -> User:
        if not has_role(current_user.role, min_role):
            audit_log(
                AuditAction.ACCESS_DENIED,
                AuditOutcome.DENIED,
                user=current_user,
                request=request,
                details={"required_role": min_role.value, "path": request.url.path},
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Required role: {min_role.value}",
            )
        return current_user

    return role_checker


# Common role dependencies
require_user = require_role(UserRole.USER)
require_admin = require_role(UserRole.ADMIN)
require_superadmin = require_role(UserRole.SUPERADMIN)
