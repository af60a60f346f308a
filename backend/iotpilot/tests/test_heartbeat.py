"""Tests for the heartbeat endpoint."""

from conftest import API

from iotpilot.db.models import Alert, DeviceMetric

HEARTBEAT = {
    "device_id": "pi-001",
    "hostname": "pi-kitchen",
    "uptime": "3 days, 4:05",
    "load_average": "0.15, 0.10, 0.05",
    "cpu_usage": 23.5,
    "cpu_temperature": 48.2,
    "memory_usage_percent": 41.0,
    "memory_used_mb": 1620,
    "memory_total_mb": 3906,
    "disk_usage_percent": 37.0,
    "disk_used": "11G",
    "disk_total": "29G",
    "app_status": "RUNNING",
    "agent_version": "1.4.2",
}


class TestHeartbeat:
    def test_updates_device_and_records_samples(
        self, client, api_key_headers, test_device, db_session
    ):
        response = client.post(f"{API}/heartbeat", json=HEARTBEAT, headers=api_key_headers)
        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Heartbeat received",
            "device_id": "pi-001",
            "status": "ONLINE",
        }

        db_session.refresh(test_device)
        assert test_device.cpu_usage == 23.5
        assert test_device.app_status == "RUNNING"
        assert test_device.agent_version == "1.4.2"
        assert test_device.last_seen is not None

        metrics = {m.metric: m for m in db_session.query(DeviceMetric).all()}
        assert set(metrics) == {"cpu_usage", "cpu_temperature", "memory_usage", "disk_usage"}
        assert metrics["cpu_temperature"].unit == "°C"
        assert db_session.query(Alert).count() == 0

    def test_offline_device_comes_back_online(
        self, client, user_headers, device_factory, test_customer, db_session
    ):
        device = device_factory(test_customer, "pi-002", "pi-garage", status="OFFLINE")
        payload = {**HEARTBEAT, "device_id": "pi-002", "hostname": "pi-garage"}

        response = client.post(f"{API}/heartbeat", json=payload, headers=user_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "ONLINE"
        db_session.refresh(device)
        assert device.status == "ONLINE"

    def test_unregistered_device(self, client, user_headers, test_customer):
        payload = {**HEARTBEAT, "device_id": "ghost"}
        response = client.post(f"{API}/heartbeat", json=payload, headers=user_headers)
        assert response.status_code == 404
        assert "register the device first" in response.json()["detail"]

    def test_other_tenant_device_is_invisible(self, client, user_headers, other_device):
        payload = {**HEARTBEAT, "device_id": "gx-001"}
        response = client.post(f"{API}/heartbeat", json=payload, headers=user_headers)
        assert response.status_code == 404

    def test_out_of_range_usage_rejected(self, client, user_headers, test_device, db_session):
        payload = {**HEARTBEAT, "cpu_usage": 140}
        response = client.post(f"{API}/heartbeat", json=payload, headers=user_headers)
        assert response.status_code == 422
        assert "cpu_usage" in response.json()["detail"]
        assert db_session.query(DeviceMetric).count() == 0

    def test_invalid_ip_rejected(self, client, user_headers, test_device):
        payload = {**HEARTBEAT, "ip_address": "10.0.0"}
        response = client.post(f"{API}/heartbeat", json=payload, headers=user_headers)
        assert response.status_code == 422

    def test_threshold_alerts_are_deduplicated(
        self, client, user_headers, test_device, db_session
    ):
        payload = {**HEARTBEAT, "cpu_usage": 97.0, "cpu_temperature": 72.0}
        client.post(f"{API}/heartbeat", json=payload, headers=user_headers)
        client.post(f"{API}/heartbeat", json=payload, headers=user_headers)

        alerts = {a.type: a for a in db_session.query(Alert).all()}
        assert set(alerts) == {"HIGH_CPU", "HIGH_TEMPERATURE"}
        assert alerts["HIGH_CPU"].severity == "CRITICAL"
        assert alerts["HIGH_TEMPERATURE"].severity == "WARNING"
        assert alerts["HIGH_CPU"].source == "heartbeat"

    def test_application_error_alert(self, client, user_headers, test_device, db_session):
        payload = {**HEARTBEAT, "app_status": "ERROR"}
        client.post(f"{API}/heartbeat", json=payload, headers=user_headers)
        alert = db_session.query(Alert).one()
        assert alert.type == "APPLICATION_ERROR"
        assert alert.severity == "ERROR"

    def test_requires_authentication(self, client, test_device):
        response = client.post(f"{API}/heartbeat", json=HEARTBEAT)
        assert response.status_code == 401
