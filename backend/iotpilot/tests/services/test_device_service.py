"""Tests for device lifecycle services."""

from datetime import timedelta

import pytest

from iotpilot.application.bus import ALL_EVENTS, EventBus
from iotpilot.core.time import utcnow
from iotpilot.db.models import Alert
from iotpilot.domain.context import TenantContext, TenantContextProvider
from iotpilot.domain.devices import HardwareType
from iotpilot.domain.events import DeviceRegistered, DeviceStatusChanged, DeviceUpdated
from iotpilot.domain.exceptions import TenantSuspended, ValidationError
from iotpilot.services.device_service import DeviceRegistration, DeviceService


@pytest.fixture
def events():
    bus = EventBus()
    bus.published = []
    bus.subscribe(ALL_EVENTS, bus.published.append)
    return bus


@pytest.fixture
def service(db_session, events):
    return DeviceService(db_session, events)


def tenant(customer):
    return TenantContext(customer_id=customer.id, user_id=1, role="USER")


class TestRegistration:
    def test_new_device_publishes_registered(self, service, events, test_customer):
        registration = DeviceRegistration(
            device_id=" pi-100 ", hostname="pi-shed", device_type=HardwareType.PI_ZERO
        )
        device, created = service.register_device(registration, tenant(test_customer))
        assert created is True
        assert device.device_id == "pi-100"
        assert device.device_type == "PI_ZERO"
        assert [type(e) for e in events.published] == [DeviceRegistered]

    def test_reregistration_reports_changes(
        self, service, events, device_factory, test_customer
    ):
        device_factory(test_customer, "pi-100", "pi-shed", status="OFFLINE", location="Shed")
        registration = DeviceRegistration(
            device_id="pi-100", hostname="pi-shed", location="Barn"
        )
        device, created = service.register_device(registration, tenant(test_customer))
        assert created is False
        assert device.status == "ONLINE"
        assert device.location == "Barn"

        updated = next(e for e in events.published if isinstance(e, DeviceUpdated))
        assert updated.changes["location"] == "Barn"
        assert any(isinstance(e, DeviceStatusChanged) for e in events.published)

    def test_same_device_id_in_other_tenant_is_separate(
        self, service, test_device, second_customer
    ):
        registration = DeviceRegistration(device_id="pi-001", hostname="pi-kitchen")
        device, created = service.register_device(registration, tenant(second_customer))
        assert created is True
        assert device.id != test_device.id

    def test_suspended_customer(self, service, test_customer, db_session):
        test_customer.status = "SUSPENDED"
        db_session.commit()
        with pytest.raises(TenantSuspended):
            service.register_device(
                DeviceRegistration(device_id="pi-100", hostname="pi-shed"), tenant(test_customer)
            )

    def test_requires_customer(self, service):
        context = TenantContextProvider.create_superadmin_context()
        with pytest.raises(ValidationError, match="customer must be selected"):
            service.register_device(
                DeviceRegistration(device_id="pi-100", hostname="pi-shed"), context
            )

    def test_blank_hostname(self, service, test_customer):
        with pytest.raises(ValidationError, match="Hostname"):
            service.register_device(
                DeviceRegistration(device_id="pi-100", hostname="  "), tenant(test_customer)
            )


class TestMarkStaleOffline:
    def test_marks_and_alerts_once(
        self, service, events, device_factory, test_customer, second_customer, db_session
    ):
        old = utcnow() - timedelta(minutes=10)
        stale = device_factory(test_customer, "pi-100", "pi-shed", last_seen=old)
        other = device_factory(second_customer, "gx-100", "gx-shed", last_seen=old)
        fresh = device_factory(test_customer, "pi-101", "pi-barn", last_seen=utcnow())

        flagged = service.mark_stale_offline(timedelta(minutes=5))
        assert {d.id for d in flagged} == {stale.id, other.id}
        db_session.refresh(fresh)
        assert fresh.status == "ONLINE"

        changes = [e for e in events.published if isinstance(e, DeviceStatusChanged)]
        assert {e.tenant_id for e in changes} == {test_customer.id, second_customer.id}

        assert service.mark_stale_offline(timedelta(minutes=5)) == []
        assert db_session.query(Alert).filter(Alert.type == "DEVICE_OFFLINE").count() == 2

    def test_offline_alert_is_not_duplicated(
        self, service, device_factory, test_customer, db_session
    ):
        old = utcnow() - timedelta(minutes=10)
        device = device_factory(test_customer, "pi-100", "pi-shed", last_seen=old)
        service.mark_stale_offline(timedelta(minutes=5))

        device.status = "ONLINE"
        db_session.commit()
        service.mark_stale_offline(timedelta(minutes=5))
        assert db_session.query(Alert).filter(Alert.type == "DEVICE_OFFLINE").count() == 1
