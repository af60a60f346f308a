"""Customer management API endpoints.

Every route dispatches through the command and query buses.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from iotpilot.application import CommandBus, QueryBus
from iotpilot.application.commands import (
    CreateCustomer,
    DeactivateCustomer,
    ReactivateCustomer,
    SuspendCustomer,
    UpdateCustomer,
)
from iotpilot.application.queries import GetCustomer, GetCustomerSettings, ListCustomers
from iotpilot.core.audit import AuditAction, AuditOutcome, audit_log
from iotpilot.core.auth import get_current_user, require_admin
from iotpilot.db import User
from iotpilot.dependencies import get_admin_context, get_buses, get_tenant_context
from iotpilot.domain.context import TenantContext
from iotpilot.domain.customers import CustomerStatus
from iotpilot.domain.exceptions import TenantNotFound
from iotpilot.schemas.customer import (
    CustomerCreate,
    CustomerResponse,
    CustomerStatusChange,
    CustomerUpdate,
)

router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("", response_model=list[CustomerResponse])
def list_customers(
    status_filter: Optional[CustomerStatus] = Query(default=None, alias="status"),
    name: Optional[str] = Query(default=None, max_length=100),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    buses: tuple[CommandBus, QueryBus] = Depends(get_buses),
    context: TenantContext = Depends(get_tenant_context),
) -> list[CustomerResponse]:
    """List customers. Superadmins see all, others only their own."""
    _, queries = buses
    customers = queries.execute(
        ListCustomers(
            context=context, status=status_filter, name_contains=name, limit=limit, offset=offset
        )
    )
    return [CustomerResponse.model_validate(customer) for customer in customers]


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
def create_customer(
    request: Request,
    payload: CustomerCreate,
    buses: tuple[CommandBus, QueryBus] = Depends(get_buses),
    context: TenantContext = Depends(get_tenant_context),
    current_user: User = Depends(get_current_user),
) -> CustomerResponse:
    """Create a new customer (superadmin only)."""
    commands, _ = buses
    customer = commands.execute(
        CreateCustomer(context=context, name=payload.name, settings=payload.settings)
    )

    audit_log(
        AuditAction.CUSTOMER_CREATE,
        AuditOutcome.SUCCESS,
        user=current_user,
        customer_id=customer.id,
        request=request,
        resource_type="customer",
        resource_id=customer.id,
        resource_name=customer.name,
    )
    return CustomerResponse.model_validate(customer)


@router.get("/{customer_id}", response_model=CustomerResponse)
def get_customer(
    customer_id: int,
    buses: tuple[CommandBus, QueryBus] = Depends(get_buses),
    context: TenantContext = Depends(get_tenant_context),
) -> CustomerResponse:
    _, queries = buses
    customer = queries.execute(GetCustomer(context=context, customer_id=customer_id))
    if customer is None:
        raise TenantNotFound(customer_id)
    return CustomerResponse.model_validate(customer)


@router.patch("/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    payload: CustomerUpdate,
    request: Request,
    buses: tuple[CommandBus, QueryBus] = Depends(get_buses),
    context: TenantContext = Depends(get_admin_context),
    current_user: User = Depends(require_admin),
) -> CustomerResponse:
    commands, _ = buses
    customer = commands.execute(
        UpdateCustomer(
            context=context,
            customer_id=customer_id,
            name=payload.name,
            settings=payload.settings,
        )
    )

    audit_log(
        AuditAction.CUSTOMER_UPDATE,
        AuditOutcome.SUCCESS,
        user=current_user,
        customer_id=customer.id,
        request=request,
        resource_type="customer",
        resource_id=customer.id,
        resource_name=customer.name,
        details=payload.model_dump(exclude_none=True),
    )
    return CustomerResponse.model_validate(customer)


@router.get("/{customer_id}/settings")
def get_customer_settings(
    customer_id: int,
    buses: tuple[CommandBus, QueryBus] = Depends(get_buses),
    context: TenantContext = Depends(get_tenant_context),
) -> dict:
    _, queries = buses
    settings = queries.execute(GetCustomerSettings(context=context, customer_id=customer_id))
    if settings is None:
        raise TenantNotFound(customer_id)
    return settings


def _change_status(
    command_cls: type,
    customer_id: int,
    payload: Optional[CustomerStatusChange],
    request: Request,
    buses: tuple[CommandBus, QueryBus],
    context: TenantContext,
    current_user: User,
) -> CustomerResponse:
    commands, _ = buses
    reason = payload.reason if payload else None
    customer = commands.execute(
        command_cls(context=context, customer_id=customer_id, reason=reason)
    )
    audit_log(
        AuditAction.CUSTOMER_STATUS_CHANGE,
        AuditOutcome.SUCCESS,
        user=current_user,
        customer_id=customer.id,
        request=request,
        resource_type="customer",
        resource_id=customer.id,
        resource_name=customer.name,
        details={"status": customer.status, "reason": reason},
    )
    return CustomerResponse.model_validate(customer)


@router.post("/{customer_id}/deactivate", response_model=CustomerResponse)
def deactivate_customer(
    customer_id: int,
    request: Request,
    payload: Optional[CustomerStatusChange] = None,
    buses: tuple[CommandBus, QueryBus] = Depends(get_buses),
    context: TenantContext = Depends(get_tenant_context),
    current_user: User = Depends(get_current_user),
) -> CustomerResponse:
    return _change_status(
        DeactivateCustomer, customer_id, payload, request, buses, context, current_user
    )


@router.post("/{customer_id}/suspend", response_model=CustomerResponse)
def suspend_customer(
    customer_id: int,
    request: Request,
    payload: Optional[CustomerStatusChange] = None,
    buses: tuple[CommandBus, QueryBus] = Depends(get_buses),
    context: TenantContext = Depends(get_tenant_context),
    current_user: User = Depends(get_current_user),
) -> CustomerResponse:
    return _change_status(
        SuspendCustomer, customer_id, payload, request, buses, context, current_user
    )


@router.post("/{customer_id}/reactivate", response_model=CustomerResponse)
def reactivate_customer(
    customer_id: int,
    request: Request,
    payload: Optional[CustomerStatusChange] = None,
    buses: tuple[CommandBus, QueryBus] = Depends(get_buses),
    context: TenantContext = Depends(get_tenant_context),
    current_user: User = Depends(get_current_user),
) -> CustomerResponse:
    return _change_status(
        ReactivateCustomer, customer_id, payload, request, buses, context, current_user
    )
