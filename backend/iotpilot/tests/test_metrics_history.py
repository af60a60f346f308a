"""Tests for the metric history endpoint."""

from datetime import timedelta

from conftest import API

from iotpilot.core.time import utcnow
from iotpilot.db.models import DeviceMetric


def add_samples(db_session, device, metric, values, start, step=timedelta(minutes=1), unit="%"):
    for index, value in enumerate(values):
        db_session.add(
            DeviceMetric(
                device_id=device.id,
                customer_id=device.customer_id,
                metric=metric,
                value=value,
                unit=unit,
                timestamp=start + index * step,
            )
        )
    db_session.commit()


class TestMetricHistory:
    def test_raw_history(self, client, user_headers, test_device, db_session):
        start = utcnow() - timedelta(minutes=30)
        add_samples(db_session, test_device, "cpu_usage", [10, 20, 30], start)
        add_samples(db_session, test_device, "memory_usage", [50], start)

        response = client.get(f"{API}/devices/{test_device.id}/metrics", headers=user_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["period"] == "24h"
        assert data["resolution"] == "auto"
        assert data["total_points"] == 4
        assert data["processed_points"] == 4
        assert [p["value"] for p in data["metrics"]["cpu_usage"]] == [10, 20, 30]

    def test_metric_selection(self, client, user_headers, test_device, db_session):
        start = utcnow() - timedelta(minutes=30)
        add_samples(db_session, test_device, "cpu_usage", [10], start)
        add_samples(db_session, test_device, "memory_usage", [50], start)
        add_samples(db_session, test_device, "disk_usage", [70], start)

        response = client.get(
            f"{API}/devices/{test_device.id}/metrics?metric=cpu_usage,disk_usage",
            headers=user_headers,
        )
        assert set(response.json()["metrics"]) == {"cpu_usage", "disk_usage"}

    def test_period_excludes_old_samples(self, client, user_headers, test_device, db_session):
        add_samples(db_session, test_device, "cpu_usage", [10], utcnow() - timedelta(hours=3))
        add_samples(db_session, test_device, "cpu_usage", [20], utcnow() - timedelta(minutes=5))

        response = client.get(
            f"{API}/devices/{test_device.id}/metrics?period=1h", headers=user_headers
        )
        assert response.json()["total_points"] == 1

    def test_hourly_aggregation(self, client, user_headers, test_device, db_session):
        start = (utcnow() - timedelta(hours=3)).replace(minute=0, second=0, microsecond=0)
        add_samples(db_session, test_device, "cpu_usage", [10, 20, 30], start)

        response = client.get(
            f"{API}/devices/{test_device.id}/metrics?resolution=hour", headers=user_headers
        )
        data = response.json()
        assert data["resolution"] == "hour"
        assert data["total_points"] == 3
        assert data["processed_points"] == 1
        assert data["metrics"]["cpu_usage"][0]["value"] == 20

    def test_invalid_period(self, client, user_headers, test_device):
        response = client.get(
            f"{API}/devices/{test_device.id}/metrics?period=2y", headers=user_headers
        )
        assert response.status_code == 400
        assert "Supported periods" in response.json()["detail"]

    def test_invalid_resolution(self, client, user_headers, test_device):
        response = client.get(
            f"{API}/devices/{test_device.id}/metrics?resolution=second", headers=user_headers
        )
        assert response.status_code == 400

    def test_other_tenant_device(self, client, user_headers, other_device):
        response = client.get(f"{API}/devices/{other_device.id}/metrics", headers=user_headers)
        assert response.status_code == 403
