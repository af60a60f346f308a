"""Tests for device command endpoints."""

from unittest.mock import patch

from conftest import API

from iotpilot.db.models import DeviceCommand


def make_command(db_session, device, command="UPDATE", status="PENDING"):
    record = DeviceCommand(
        device_id=device.id,
        customer_id=device.customer_id,
        command=command,
        arguments={},
        status=status,
    )
    db_session.add(record)
    db_session.commit()
    db_session.refresh(record)
    return record


class TestCreateCommand:
    @patch("iotpilot.api.commands.celery_app.send_task")
    def test_queues_and_dispatches(self, mock_send, client, user_headers, test_device):
        response = client.post(
            f"{API}/devices/{test_device.id}/commands",
            json={"command": "reboot"},
            headers=user_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["command"] == "REBOOT"
        assert data["status"] == "PENDING"
        mock_send.assert_called_once_with("execute_device_command", args=[data["id"]])

    @patch("iotpilot.api.commands.celery_app.send_task")
    def test_install_requires_package(self, mock_send, client, user_headers, test_device):
        url = f"{API}/devices/{test_device.id}/commands"
        response = client.post(url, json={"command": "INSTALL"}, headers=user_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "INSTALL requires arguments.package"

        response = client.post(
            url,
            json={"command": "INSTALL", "arguments": {"package": "htop; rm -rf /"}},
            headers=user_headers,
        )
        assert response.status_code == 400
        assert "Invalid package name" in response.json()["detail"]
        mock_send.assert_not_called()

    @patch("iotpilot.api.commands.celery_app.send_task")
    def test_custom_requires_command(self, mock_send, client, user_headers, test_device):
        response = client.post(
            f"{API}/devices/{test_device.id}/commands",
            json={"command": "CUSTOM", "arguments": {}},
            headers=user_headers,
        )
        assert response.status_code == 400
        mock_send.assert_not_called()

    @patch("iotpilot.api.commands.celery_app.send_task")
    def test_unknown_command(self, mock_send, client, user_headers, test_device):
        response = client.post(
            f"{API}/devices/{test_device.id}/commands",
            json={"command": "explode"},
            headers=user_headers,
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Unsupported command: explode"

    @patch("iotpilot.api.commands.celery_app.send_task")
    def test_readonly_forbidden(self, mock_send, client, readonly_headers, test_device):
        response = client.post(
            f"{API}/devices/{test_device.id}/commands",
            json={"command": "UPDATE"},
            headers=readonly_headers,
        )
        assert response.status_code == 403
        mock_send.assert_not_called()

    @patch("iotpilot.api.commands.celery_app.send_task")
    def test_other_tenant_device(self, mock_send, client, user_headers, other_device):
        response = client.post(
            f"{API}/devices/{other_device.id}/commands",
            json={"command": "UPDATE"},
            headers=user_headers,
        )
        assert response.status_code == 403


class TestCommandQueries:
    def test_list_newest_first(self, client, user_headers, test_device, db_session):
        first = make_command(db_session, test_device, "UPDATE", "COMPLETED")
        second = make_command(db_session, test_device, "REBOOT")

        response = client.get(f"{API}/devices/{test_device.id}/commands", headers=user_headers)
        assert response.status_code == 200
        assert [c["id"] for c in response.json()] == [second.id, first.id]

        response = client.get(
            f"{API}/devices/{test_device.id}/commands?limit=1", headers=user_headers
        )
        assert len(response.json()) == 1

    def test_get_command(self, client, user_headers, test_device, db_session):
        record = make_command(db_session, test_device)
        response = client.get(
            f"{API}/devices/{test_device.id}/commands/{record.id}", headers=user_headers
        )
        assert response.status_code == 200
        assert response.json()["command"] == "UPDATE"

    def test_missing_command(self, client, user_headers, test_device):
        response = client.get(
            f"{API}/devices/{test_device.id}/commands/9999", headers=user_headers
        )
        assert response.status_code == 404
        assert response.json()["detail"] == "Command not found"
