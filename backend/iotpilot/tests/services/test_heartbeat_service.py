"""Tests for heartbeat ingestion below the HTTP layer."""

import pytest

from iotpilot.application.bus import ALL_EVENTS, EventBus
from iotpilot.domain.context import TenantContext
from iotpilot.domain.events import DeviceStatusChanged, MetricsCollected
from iotpilot.domain.exceptions import DeviceNotFound, InvalidDeviceData
from iotpilot.services.heartbeat_service import Heartbeat, HeartbeatService


class RecordingInflux:
    def __init__(self):
        self.writes = []

    def send(self, device_id, metrics, timestamp=None):
        self.writes.append((device_id, metrics, timestamp))
        return True


@pytest.fixture
def events():
    bus = EventBus()
    bus.published = []
    bus.subscribe(ALL_EVENTS, bus.published.append)
    return bus


@pytest.fixture
def influx():
    return RecordingInflux()


@pytest.fixture
def service(db_session, events, influx):
    return HeartbeatService(db_session, events, influx)


def tenant(customer):
    return TenantContext(customer_id=customer.id, user_id=1, role="USER")


def test_status_change_and_metrics_events(
    service, events, influx, device_factory, test_customer
):
    device_factory(test_customer, "pi-002", "pi-garage", status="OFFLINE")
    heartbeat = Heartbeat(device_id="pi-002", hostname="pi-garage", cpu_usage=12.0)

    device = service.process(heartbeat, tenant(test_customer))
    assert device.status == "ONLINE"

    changed = [e for e in events.published if isinstance(e, DeviceStatusChanged)]
    assert [(e.old_status, e.new_status) for e in changed] == [("OFFLINE", "ONLINE")]
    collected = [e for e in events.published if isinstance(e, MetricsCollected)]
    assert collected[0].metrics["cpu_usage"] == 12.0

    device_id, metrics, _ = influx.writes[0]
    assert device_id == "pi-002"
    assert metrics["cpu_usage"] == 12.0
    assert metrics["app_status"] == "UNKNOWN"


def test_online_device_publishes_no_status_change(service, events, test_device, test_customer):
    service.process(Heartbeat(device_id="pi-001", hostname="pi-kitchen"), tenant(test_customer))
    assert not [e for e in events.published if isinstance(e, DeviceStatusChanged)]


def test_addresses_are_updated(service, test_device, test_customer):
    heartbeat = Heartbeat(
        device_id="pi-001",
        hostname="pi-kitchen",
        ip_address="192.168.1.99",
        tailscale_ip="100.64.0.9",
    )
    device = service.process(heartbeat, tenant(test_customer))
    assert device.ip_address == "192.168.1.99"
    assert device.tailscale_ip == "100.64.0.9"
    assert device.ssh_host == "100.64.0.9"


def test_unknown_device(service, test_customer):
    with pytest.raises(DeviceNotFound):
        service.process(Heartbeat(device_id="ghost", hostname="ghost"), tenant(test_customer))


def test_invalid_usage_is_not_written(service, influx, events, test_device, test_customer):
    heartbeat = Heartbeat(device_id="pi-001", hostname="pi-kitchen", disk_usage_percent=-5)
    with pytest.raises(InvalidDeviceData):
        service.process(heartbeat, tenant(test_customer))
    assert influx.writes == []
    assert events.published == []
