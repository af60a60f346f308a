"""Tests for device value objects and business policies."""

from types import SimpleNamespace

import pytest

from iotpilot.domain.context import TenantContext, TenantContextProvider
from iotpilot.domain.devices import (
    CommandType,
    DeviceId,
    DeviceMetrics,
    DeviceType,
    IpAddress,
    MacAddress,
    Port,
    SshCredentials,
)
from iotpilot.domain.exceptions import (
    DeviceAccessDenied,
    DeviceAlreadyExists,
    DeviceNotFound,
    InvalidDeviceData,
    SSHConnectionFailed,
)
from iotpilot.domain.policies import (
    DeviceAccessiblePolicy,
    DeviceNamingPolicy,
    MetricCollectionPolicy,
    SSHAllowedPolicy,
)


def context(role="USER", customer_id=1):
    return TenantContext(customer_id=customer_id, user_id=1, role=role)


def device(**fields):
    values = {"id": 10, "customer_id": 1, "status": "ONLINE", "settings": {}}
    values.update(fields)
    return SimpleNamespace(**values)


class TestValueObjects:
    def test_device_id_is_trimmed(self):
        assert DeviceId("  pi-001 ").value == "pi-001"
        with pytest.raises(InvalidDeviceData):
            DeviceId("   ")

    def test_generated_device_ids_are_unique(self):
        assert DeviceId.generate() != DeviceId.generate()

    @pytest.mark.parametrize("value", ["10.0.0", "1.2.3.4.5", "a.b.c.d", "256.1.1.1"])
    def test_invalid_ip(self, value):
        with pytest.raises(InvalidDeviceData):
            IpAddress(value)

    def test_mac_formats(self):
        assert MacAddress("DC:A6:32:01:02:03")
        assert MacAddress("dc-a6-32-01-02-03")
        assert not MacAddress.is_valid("dca632010203")

    def test_ssh_credentials_need_a_secret(self):
        with pytest.raises(InvalidDeviceData, match="password or private key"):
            SshCredentials(username="pi")
        creds = SshCredentials(username="pi", password="raspberry")
        assert creds.has_password and not creds.has_private_key
        assert "raspberry" not in repr(creds)

    @pytest.mark.parametrize("port", [0, 65536, -22])
    def test_ssh_credentials_port_range(self, port):
        with pytest.raises(InvalidDeviceData, match="between 1 and 65535"):
            SshCredentials(username="pi", password="raspberry", port=port)
        with pytest.raises(InvalidDeviceData):
            Port(port)

    def test_port_bounds_are_inclusive(self):
        assert Port(1).value == 1
        assert SshCredentials(username="pi", private_key="key", port=65535).port == 65535

    def test_device_type_values(self):
        assert DeviceType("gateway") is DeviceType.GATEWAY
        assert [t.value for t in DeviceType] == [
            "router",
            "switch",
            "server",
            "gateway",
            "sensor",
            "camera",
            "other",
        ]
        with pytest.raises(ValueError):
            DeviceType("PI_4")

    def test_command_parse(self):
        assert CommandType.parse(" reboot ") is CommandType.REBOOT
        with pytest.raises(InvalidDeviceData):
            CommandType.parse("format")


class TestDeviceAccessiblePolicy:
    def test_missing_device(self):
        with pytest.raises(DeviceNotFound):
            DeviceAccessiblePolicy(context()).check(None)

    def test_cross_tenant(self):
        with pytest.raises(DeviceAccessDenied):
            DeviceAccessiblePolicy(context(customer_id=2)).check(device())

    def test_superadmin_bypasses(self):
        superadmin = TenantContextProvider.create_superadmin_context()
        assert DeviceAccessiblePolicy(superadmin).check(device(customer_id=99))


class TestSSHAllowedPolicy:
    def test_allows_online_device(self):
        target = device()
        assert SSHAllowedPolicy(context()).check(target) is target

    def test_readonly_refused(self):
        with pytest.raises(SSHConnectionFailed, match="Insufficient permissions"):
            SSHAllowedPolicy(context(role="READONLY")).check(device())

    def test_disabled_refused(self):
        with pytest.raises(SSHConnectionFailed, match="disabled"):
            SSHAllowedPolicy(context()).check(device(settings={"ssh_enabled": False}))

    def test_offline_refused(self):
        with pytest.raises(SSHConnectionFailed, match="not online"):
            SSHAllowedPolicy(context()).check(device(status="OFFLINE"))


class TestDeviceNamingPolicy:
    def test_accepts_free_name(self):
        assert DeviceNamingPolicy(lambda name: False).check("  greenhouse-pi ") == "greenhouse-pi"

    @pytest.mark.parametrize("name", ["pi", "x" * 51, "Localhost"])
    def test_rejects_invalid_or_reserved(self, name):
        with pytest.raises(InvalidDeviceData):
            DeviceNamingPolicy(lambda n: False).check(name)

    def test_rejects_taken_name(self):
        with pytest.raises(DeviceAlreadyExists):
            DeviceNamingPolicy(lambda name: True).check("greenhouse-pi")


class TestMetricCollectionPolicy:
    def test_accepts_partial_metrics(self):
        metrics = DeviceMetrics(cpu_usage=12.5)
        assert MetricCollectionPolicy().check(device(), metrics) is metrics

    def test_offline_device(self):
        with pytest.raises(InvalidDeviceData, match="offline"):
            MetricCollectionPolicy().check(device(status="OFFLINE"), DeviceMetrics())

    @pytest.mark.parametrize("field", ["cpu_usage", "memory_usage", "disk_usage"])
    def test_percentages_bounded(self, field):
        with pytest.raises(InvalidDeviceData, match=field):
            MetricCollectionPolicy().check(device(), DeviceMetrics(**{field: 101}))

    def test_negative_network(self):
        with pytest.raises(InvalidDeviceData, match="Network"):
            MetricCollectionPolicy().check(device(), DeviceMetrics(network_upload=-1))

    def test_network_usage_and_dict(self):
        metrics = DeviceMetrics(cpu_usage=5, network_upload=2, network_download=3)
        assert metrics.network_usage == 5
        assert metrics.as_dict() == {
            "cpu_usage": 5,
            "network_upload": 2,
            "network_download": 3,
        }
