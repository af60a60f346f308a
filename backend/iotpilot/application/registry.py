"""Wiring of handlers onto per-session buses."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from iotpilot.application.bus import CommandBus, EventBus, QueryBus, get_event_bus
from iotpilot.application.commands import (
    CreateCustomer,
    DeactivateCustomer,
    ReactivateCustomer,
    SuspendCustomer,
    UpdateCustomer,
)
from iotpilot.application.customers import (
    CreateCustomerHandler,
    CustomerStatusHandler,
    GetCustomerHandler,
    GetCustomerSettingsHandler,
    ListCustomersHandler,
    UpdateCustomerHandler,
)
from iotpilot.application.queries import GetCustomer, GetCustomerSettings, ListCustomers
from iotpilot.services.customer_service import CustomerService


def build_buses(
    session: Session, events: Optional[EventBus] = None
) -> tuple[CommandBus, QueryBus]:
    """Command and query buses bound to ``session``."""
    service = CustomerService(session, events or get_event_bus())

    commands = CommandBus()
    commands.register(CreateCustomer, CreateCustomerHandler(service))
    commands.register(UpdateCustomer, UpdateCustomerHandler(service))
    status_handler = CustomerStatusHandler(service)
    for command_cls in (DeactivateCustomer, SuspendCustomer, ReactivateCustomer):
        commands.register(command_cls, status_handler)

    queries = QueryBus()
    queries.register(GetCustomer, GetCustomerHandler(service))
    queries.register(GetCustomerSettings, GetCustomerSettingsHandler(service))
    queries.register(ListCustomers, ListCustomersHandler(service))
    return commands, queries
