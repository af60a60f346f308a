"""Shared FastAPI dependency factories."""

from typing import AsyncIterator, Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from iotpilot.application import CommandBus, QueryBus
from iotpilot.application.registry import build_buses
from iotpilot.core.auth import get_current_user, require_admin, require_user
from iotpilot.core.permissions import is_superadmin
from iotpilot.db import User, get_db
from iotpilot.domain.context import TenantContext, TenantContextProvider
from iotpilot.repositories import CustomerRepository
from iotpilot.services import (
    AlertService,
    APIKeyService,
    AuthService,
    CommandService,
    CustomerService,
    DeviceService,
    HealthService,
    HeartbeatService,
    MetricService,
    PreferenceService,
    SSHService,
    SSHSessionManager,
    SystemService,
    UserService,
    get_ssh_session_manager,
)


def get_session(db: Session = Depends(get_db)) -> Session:
    """Expose the SQLAlchemy session (alias for clarity)."""
    return db


def _build_context(
    user: User, x_customer_id: Optional[int], session: Session
) -> TenantContext:
    if x_customer_id and is_superadmin(user.role):
        if CustomerRepository(session).get_by_id(x_customer_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    return TenantContextProvider.create_context(user, x_customer_id)


async def get_tenant_context(
    current_user: User = Depends(get_current_user),
    x_customer_id: Optional[int] = Header(None),
    session: Session = Depends(get_session),
) -> AsyncIterator[TenantContext]:
    """Tenant scope of the request; superadmins may pick one via X-Customer-ID."""
    context = _build_context(current_user, x_customer_id, session)
    TenantContextProvider.set_context(context)
    try:
        yield context
    finally:
        TenantContextProvider.clear_context()


async def get_user_context(
    current_user: User = Depends(require_user),
    context: TenantContext = Depends(get_tenant_context),
) -> TenantContext:
    return context


async def get_admin_context(
    current_user: User = Depends(require_admin),
    context: TenantContext = Depends(get_tenant_context),
) -> TenantContext:
    return context


def get_buses(session: Session = Depends(get_session)) -> tuple[CommandBus, QueryBus]:
    return build_buses(session)


def get_ssh_manager() -> SSHSessionManager:
    """Provide the shared SSH session manager."""
    return get_ssh_session_manager()


def get_auth_service(session: Session = Depends(get_session)) -> AuthService:
    return AuthService(session)


def get_api_key_service(session: Session = Depends(get_session)) -> APIKeyService:
    return APIKeyService(session)


def get_customer_service(session: Session = Depends(get_session)) -> CustomerService:
    return CustomerService(session)


def get_user_service(session: Session = Depends(get_session)) -> UserService:
    return UserService(session)


def get_system_service(session: Session = Depends(get_session)) -> SystemService:
    return SystemService(session)


def get_preference_service(session: Session = Depends(get_session)) -> PreferenceService:
    return PreferenceService(session)


def get_device_service(session: Session = Depends(get_session)) -> DeviceService:
    return DeviceService(session)


def get_alert_service(session: Session = Depends(get_session)) -> AlertService:
    return AlertService(session)


def get_heartbeat_service(session: Session = Depends(get_session)) -> HeartbeatService:
    return HeartbeatService(session)


def get_metric_service(session: Session = Depends(get_session)) -> MetricService:
    return MetricService(session)


def get_command_service(session: Session = Depends(get_session)) -> CommandService:
    return CommandService(session)


def get_ssh_service(
    session: Session = Depends(get_session),
    ssh_manager: SSHSessionManager = Depends(get_ssh_manager),
) -> SSHService:
    return SSHService(session, ssh_manager=ssh_manager)


def get_health_service(session: Session = Depends(get_session)) -> HealthService:
    return HealthService(session)
