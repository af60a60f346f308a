"""Tests for API key endpoints."""

from datetime import timedelta

from iotpilot.core.time import utcnow
from iotpilot.db.models import APIKey

API = "/api/v1"


class TestAPIKeyAPI:
    def test_create_returns_plain_key_once(self, client, user_headers, db_session):
        response = client.post(
            f"{API}/auth/api-keys", json={"name": "garden-agent"}, headers=user_headers
        )
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "garden-agent"
        assert data["key"].startswith("iot_")

        stored = db_session.query(APIKey).filter(APIKey.id == data["id"]).one()
        assert stored.key_suffix == data["key"][-4:]
        assert data["key"] not in stored.key_hash

    def test_list_is_masked(self, client, user_headers):
        created = client.post(
            f"{API}/auth/api-keys", json={"name": "masked"}, headers=user_headers
        ).json()

        response = client.get(f"{API}/auth/api-keys", headers=user_headers)
        assert response.status_code == 200
        keys = response.json()
        assert len(keys) == 1
        assert keys[0]["key"] == f"****{created['key'][-4:]}"

    def test_name_required(self, client, user_headers):
        response = client.post(f"{API}/auth/api-keys", json={"name": ""}, headers=user_headers)
        assert response.status_code == 422

    def test_api_key_authenticates_and_stamps_last_used(
        self, client, api_key_headers, db_session
    ):
        response = client.get(f"{API}/devices", headers=api_key_headers)
        assert response.status_code == 200
        api_key = db_session.query(APIKey).one()
        assert api_key.last_used_at is not None

    def test_revoked_key_is_rejected(self, client, user_headers):
        created = client.post(
            f"{API}/auth/api-keys", json={"name": "temp"}, headers=user_headers
        ).json()

        response = client.delete(f"{API}/auth/api-keys/{created['id']}", headers=user_headers)
        assert response.status_code == 200
        assert response.json() == {"message": "API key revoked successfully"}

        response = client.get(f"{API}/devices", headers={"X-API-Key": created["key"]})
        assert response.status_code == 401
        assert client.get(f"{API}/auth/api-keys", headers=user_headers).json() == []

    def test_expired_key_is_rejected(self, client, api_key_headers, db_session):
        api_key = db_session.query(APIKey).one()
        api_key.expires_at = utcnow() - timedelta(minutes=1)
        db_session.commit()

        response = client.get(f"{API}/devices", headers=api_key_headers)
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid API key"

    def test_cannot_revoke_another_users_key(self, client, api_key_headers, admin_headers):
        response = client.get(f"{API}/auth/api-keys", headers=api_key_headers)
        key_id = response.json()[0]["id"]

        response = client.delete(f"{API}/auth/api-keys/{key_id}", headers=admin_headers)
        assert response.status_code == 404

    def test_unknown_key(self, client):
        response = client.get(f"{API}/devices", headers={"X-API-Key": "iot_" + "0" * 64})
        assert response.status_code == 401
