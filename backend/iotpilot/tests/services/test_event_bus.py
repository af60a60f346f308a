"""Tests for the command, query and event buses."""

import pytest

from iotpilot.application.bus import ALL_EVENTS, CommandBus, EventBus, HandlerNotFoundError
from iotpilot.application.commands import CreateCustomer, UpdateCustomer
from iotpilot.application.queries import GetCustomer
from iotpilot.application.registry import build_buses
from iotpilot.domain.context import TenantContext, TenantContextProvider
from iotpilot.domain.events import CustomerCreated, CustomerSettingsUpdated, DeviceRemoved
from iotpilot.domain.exceptions import TenantAccessDenied


class EchoHandler:
    def __init__(self):
        self.seen = []

    def handle(self, message):
        self.seen.append(message)
        return message.name


def admin_context(customer_id):
    return TenantContext(customer_id=customer_id, user_id=7, role="ADMIN")


class TestCommandBus:
    def test_routes_to_registered_handler(self):
        bus = CommandBus()
        handler = EchoHandler()
        bus.register(CreateCustomer, handler)

        command = CreateCustomer(context=admin_context(1), name="Acme")
        assert bus.execute(command) == "Acme"
        assert handler.seen == [command]
        assert bus.is_registered(CreateCustomer)

    def test_unregistered_message(self):
        with pytest.raises(HandlerNotFoundError, match="UpdateCustomer"):
            CommandBus().execute(
                UpdateCustomer(context=admin_context(1), customer_id=1, name="Acme")
            )

    def test_later_registration_replaces(self):
        bus = CommandBus()
        first, second = EchoHandler(), EchoHandler()
        bus.register(CreateCustomer, first)
        bus.register(CreateCustomer, second)
        bus.execute(CreateCustomer(context=admin_context(1), name="Acme"))
        assert first.seen == []
        assert len(second.seen) == 1


class TestEventBus:
    def test_specific_subscribers_run_before_wildcard(self):
        bus = EventBus()
        order = []
        bus.subscribe(ALL_EVENTS, lambda event: order.append("all"))
        bus.subscribe(CustomerCreated, lambda event: order.append("created"))

        bus.publish(CustomerCreated(tenant_id=1, name="Acme"))
        assert order == ["created", "all"]

    def test_failing_subscriber_does_not_stop_others(self):
        bus = EventBus()
        seen = []

        def broken(event):
            raise RuntimeError("boom")

        bus.subscribe(DeviceRemoved, broken)
        bus.subscribe(DeviceRemoved, seen.append)
        event = DeviceRemoved(tenant_id=1, device_pk=3, device_id="pi-003")
        bus.publish(event)
        assert seen == [event]

    def test_unsubscribe(self):
        bus = EventBus()
        seen = []
        bus.subscribe("CustomerCreated", seen.append)
        assert bus.unsubscribe(CustomerCreated, seen.append) is True
        assert bus.unsubscribe(CustomerCreated, seen.append) is False
        bus.publish(CustomerCreated(tenant_id=1, name="Acme"))
        assert seen == []

    def test_publish_all_keeps_order(self):
        bus = EventBus()
        seen = []
        bus.subscribe(ALL_EVENTS, seen.append)
        events = [
            CustomerCreated(tenant_id=1, name="Acme"),
            DeviceRemoved(tenant_id=1, device_pk=3, device_id="pi-003"),
            CustomerSettingsUpdated(tenant_id=1, settings={"max_devices": 5}),
        ]
        bus.publish_all(iter(events))
        assert seen == events

    def test_event_serialisation(self):
        event = CustomerSettingsUpdated(tenant_id=4, settings={"max_users": 3})
        data = event.to_dict()
        assert data["event_type"] == "CustomerSettingsUpdated"
        assert data["tenant_id"] == 4
        assert isinstance(data["occurred_on"], str)

    def test_tenant_visibility(self):
        event = CustomerCreated(tenant_id=1, name="Acme")
        assert event.belongs_to(admin_context(1))
        assert not event.belongs_to(admin_context(2))
        assert event.belongs_to(TenantContextProvider.create_superadmin_context())


class TestCustomerBuses:
    def test_get_customer_checks_tenant(self, db_session, test_customer, second_customer):
        _, queries = build_buses(db_session, EventBus())
        context = admin_context(test_customer.id)

        customer = queries.execute(GetCustomer(context=context, customer_id=test_customer.id))
        assert customer.name == "Acme Farms"
        with pytest.raises(TenantAccessDenied):
            queries.execute(GetCustomer(context=context, customer_id=second_customer.id))

    def test_create_publishes_event(self, db_session):
        events = EventBus()
        published = []
        events.subscribe(CustomerCreated, published.append)
        commands, _ = build_buses(db_session, events)

        customer = commands.execute(
            CreateCustomer(
                context=TenantContextProvider.create_superadmin_context(), name="  Initech  "
            )
        )
        assert customer.name == "Initech"
        assert [e.tenant_id for e in published] == [customer.id]
