"""Tests for interactive SSH session endpoints."""

from types import SimpleNamespace

import pytest
from conftest import API

from iotpilot.db.models import SSHSession
from iotpilot.dependencies import get_ssh_manager
from iotpilot.main import app
from iotpilot.services.ssh import SSHSessionConfig, SSHSessionManager


class DummyConnection:
    def __init__(self):
        self.commands = []
        self.closed = False

    async def run(self, command, check=False):
        self.commands.append(command)
        if command == "false":
            return SimpleNamespace(stdout="", stderr="boom", exit_status=1)
        return SimpleNamespace(stdout=f"ran {command}\n", stderr="", exit_status=0)

    def close(self):
        self.closed = True

    async def wait_closed(self):
        return None


@pytest.fixture
def ssh_manager(monkeypatch):
    connections = []

    async def fake_connect(**options):
        connection = DummyConnection()
        connection.options = options
        connections.append(connection)
        return connection

    monkeypatch.setattr("iotpilot.services.ssh.manager.asyncssh.connect", fake_connect)
    manager = SSHSessionManager(SSHSessionConfig(max_sessions=2))
    manager.connections = connections
    app.dependency_overrides[get_ssh_manager] = lambda: manager
    yield manager
    app.dependency_overrides.pop(get_ssh_manager, None)


@pytest.fixture
def ssh_device(db_session, test_device):
    test_device.ssh_password = "raspberry"
    test_device.settings = {"ssh_username": "pi"}
    db_session.commit()
    return test_device


def sessions_url(device):
    return f"{API}/devices/{device.id}/ssh/sessions"


class TestSSHSessions:
    def test_open_run_close(self, client, user_headers, ssh_device, ssh_manager):
        response = client.post(sessions_url(ssh_device), headers=user_headers)
        assert response.status_code == 201
        session = response.json()
        assert session["is_active"] is True
        assert session["username"] == "pi"
        assert session["ip_address"] == "192.168.1.50"
        assert ssh_manager.connections[0].options["password"] == "raspberry"

        url = f"{sessions_url(ssh_device)}/{session['id']}"
        response = client.post(f"{url}/commands", json={"command": "uptime"}, headers=user_headers)
        assert response.status_code == 200
        assert response.json() == {
            "command": "uptime",
            "stdout": "ran uptime\n",
            "stderr": "",
            "exit_status": 0,
        }

        response = client.delete(url, headers=user_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["is_active"] is False
        assert data["end_time"] is not None
        assert data["commands"] == ["uptime"]
        assert ssh_manager.connections[0].closed is True
        assert ssh_manager.active_count == 0

    def test_failed_command_is_logged(self, client, user_headers, ssh_device, ssh_manager):
        session = client.post(sessions_url(ssh_device), headers=user_headers).json()
        url = f"{sessions_url(ssh_device)}/{session['id']}"

        response = client.post(f"{url}/commands", json={"command": "false"}, headers=user_headers)
        assert response.json()["exit_status"] == 1
        assert response.json()["stderr"] == "boom"

        response = client.get(url, headers=user_headers)
        assert response.json()["command_log"][0]["exit_status"] == 1

    def test_list_sessions(self, client, user_headers, ssh_device, ssh_manager):
        first = client.post(sessions_url(ssh_device), headers=user_headers).json()
        client.post(sessions_url(ssh_device), headers=user_headers)
        client.delete(f"{sessions_url(ssh_device)}/{first['id']}", headers=user_headers)

        response = client.get(sessions_url(ssh_device), headers=user_headers)
        assert len(response.json()) == 2
        response = client.get(f"{sessions_url(ssh_device)}?active=true", headers=user_headers)
        assert len(response.json()) == 1

    def test_session_cap(self, client, user_headers, ssh_device, ssh_manager):
        client.post(sessions_url(ssh_device), headers=user_headers)
        client.post(sessions_url(ssh_device), headers=user_headers)

        response = client.post(sessions_url(ssh_device), headers=user_headers)
        assert response.status_code == 502
        assert "Maximum number of SSH sessions" in response.json()["detail"]

    def test_unreadable_private_key(
        self, client, user_headers, ssh_device, ssh_manager, db_session
    ):
        ssh_device.ssh_private_key = "not a key"
        db_session.commit()

        response = client.post(sessions_url(ssh_device), headers=user_headers)
        assert response.status_code == 502
        assert "Invalid SSH private key" in response.json()["detail"]
        assert db_session.query(SSHSession).count() == 0

    def test_command_on_closed_session(self, client, user_headers, ssh_device, ssh_manager):
        session = client.post(sessions_url(ssh_device), headers=user_headers).json()
        url = f"{sessions_url(ssh_device)}/{session['id']}"
        client.delete(url, headers=user_headers)

        response = client.post(f"{url}/commands", json={"command": "ls"}, headers=user_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "SSH session is closed"

    def test_offline_device_refused(
        self, client, user_headers, ssh_device, ssh_manager, db_session
    ):
        ssh_device.status = "OFFLINE"
        db_session.commit()
        response = client.post(sessions_url(ssh_device), headers=user_headers)
        assert response.status_code == 403

    def test_ssh_disabled_refused(self, client, user_headers, ssh_device, ssh_manager, db_session):
        ssh_device.settings = {"ssh_username": "pi", "ssh_enabled": False}
        db_session.commit()
        response = client.post(sessions_url(ssh_device), headers=user_headers)
        assert response.status_code == 403

    def test_readonly_refused(self, client, readonly_headers, ssh_device, ssh_manager):
        response = client.post(sessions_url(ssh_device), headers=readonly_headers)
        assert response.status_code == 403

    def test_missing_credentials(self, client, user_headers, test_device, ssh_manager):
        response = client.post(sessions_url(test_device), headers=user_headers)
        assert response.status_code == 400
        assert "password or private key" in response.json()["detail"]

    def test_unknown_session(self, client, user_headers, ssh_device, ssh_manager):
        response = client.get(f"{sessions_url(ssh_device)}/nope", headers=user_headers)
        assert response.status_code == 404
