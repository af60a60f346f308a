"""Tests for customer management endpoints."""

import pytest

from conftest import API


class TestCustomerAPI:
    def test_superadmin_creates_customer(self, client, superadmin_headers):
        response = client.post(
            f"{API}/customers",
            json={"name": "Initech", "settings": {"max_devices": 5}},
            headers=superadmin_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Initech"
        assert data["status"] == "ACTIVE"
        assert data["settings"]["max_devices"] == 5
        assert data["settings"]["max_users"] == 10

    def test_admin_cannot_create_customer(self, client, admin_headers):
        response = client.post(f"{API}/customers", json={"name": "Nope"}, headers=admin_headers)
        assert response.status_code == 403

    def test_duplicate_name_rejected(self, client, superadmin_headers, test_customer):
        response = client.post(
            f"{API}/customers", json={"name": "Acme Farms"}, headers=superadmin_headers
        )
        assert response.status_code == 400
        assert "already exists" in response.json()["detail"]

    def test_unknown_setting_rejected(self, client, superadmin_headers):
        response = client.post(
            f"{API}/customers",
            json={"name": "Umbrella", "settings": {"max_robots": 3}},
            headers=superadmin_headers,
        )
        assert response.status_code == 422
        assert "max_robots" in response.json()["detail"]

    def test_list_is_tenant_scoped(
        self, client, admin_headers, superadmin_headers, test_customer, second_customer
    ):
        response = client.get(f"{API}/customers", headers=admin_headers)
        assert response.status_code == 200
        assert [c["name"] for c in response.json()] == ["Acme Farms"]

        response = client.get(f"{API}/customers", headers=superadmin_headers)
        names = {c["name"] for c in response.json()}
        assert {"Acme Farms", "Globex Labs"} <= names

    def test_get_other_customer_denied(self, client, admin_headers, second_customer):
        response = client.get(f"{API}/customers/{second_customer.id}", headers=admin_headers)
        assert response.status_code == 403

    def test_get_missing_customer(self, client, superadmin_headers):
        response = client.get(f"{API}/customers/9999", headers=superadmin_headers)
        assert response.status_code == 404

    def test_admin_updates_own_customer(self, client, admin_headers, test_customer):
        response = client.patch(
            f"{API}/customers/{test_customer.id}",
            json={"settings": {"primary_color": "#112233"}},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["settings"]["primary_color"] == "#112233"

        response = client.get(
            f"{API}/customers/{test_customer.id}/settings", headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["primary_color"] == "#112233"

    def test_settings_cache_refreshes_after_update(
        self, client, admin_headers, superadmin_headers, test_customer
    ):
        url = f"{API}/customers/{test_customer.id}/settings"
        assert client.get(url, headers=admin_headers).json()["max_devices"] == 50

        response = client.patch(
            f"{API}/customers/{test_customer.id}",
            json={"settings": {"max_devices": 75}},
            headers=superadmin_headers,
        )
        assert response.status_code == 200
        assert client.get(url, headers=admin_headers).json()["max_devices"] == 75

    @pytest.mark.parametrize("headers_fixture", ["readonly_headers", "user_headers"])
    def test_non_admin_cannot_update_customer(
        self, client, request, headers_fixture, test_customer, db_session
    ):
        response = client.patch(
            f"{API}/customers/{test_customer.id}",
            json={"settings": {"max_devices": 100000}},
            headers=request.getfixturevalue(headers_fixture),
        )
        assert response.status_code == 403
        db_session.refresh(test_customer)
        assert test_customer.settings["max_devices"] == 50

    def test_admin_cannot_raise_quotas(self, client, admin_headers, test_customer):
        response = client.patch(
            f"{API}/customers/{test_customer.id}",
            json={"settings": {"max_users": 500, "primary_color": "#000000"}},
            headers=admin_headers,
        )
        assert response.status_code == 403
        assert "max_users" in response.json()["detail"]

    @pytest.mark.parametrize(
        "settings",
        [
            {"max_users": "lots"},
            {"max_devices": None},
            {"max_devices": True},
            {"allowed_features": 5},
            {"allowed_features": ["basic", 3]},
            {"logo_url": 42},
        ],
    )
    def test_mistyped_settings_rejected(
        self, client, superadmin_headers, test_customer, settings
    ):
        response = client.patch(
            f"{API}/customers/{test_customer.id}",
            json={"settings": settings},
            headers=superadmin_headers,
        )
        assert response.status_code == 422

    def test_mistyped_settings_rejected_on_create(self, client, superadmin_headers):
        response = client.post(
            f"{API}/customers",
            json={"name": "Initech", "settings": {"max_users": "lots"}},
            headers=superadmin_headers,
        )
        assert response.status_code == 422

    def test_suspend_and_reactivate(self, client, superadmin_headers, test_customer):
        url = f"{API}/customers/{test_customer.id}"
        response = client.post(
            f"{url}/suspend", json={"reason": "Unpaid invoice"}, headers=superadmin_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "SUSPENDED"

        response = client.post(f"{url}/suspend", headers=superadmin_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Customer is already suspended"

        response = client.post(f"{url}/reactivate", headers=superadmin_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "ACTIVE"

    def test_admin_cannot_change_status(self, client, admin_headers, test_customer):
        response = client.post(
            f"{API}/customers/{test_customer.id}/deactivate", headers=admin_headers
        )
        assert response.status_code == 403

    def test_update_inactive_customer_rejected(
        self, client, superadmin_headers, test_customer
    ):
        client.post(f"{API}/customers/{test_customer.id}/deactivate", headers=superadmin_headers)
        response = client.patch(
            f"{API}/customers/{test_customer.id}",
            json={"name": "Acme Renamed"},
            headers=superadmin_headers,
        )
        assert response.status_code == 400
        assert "inactive" in response.json()["detail"]
