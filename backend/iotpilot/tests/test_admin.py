"""Tests for tenant administration endpoints."""

from conftest import API, USER_PASSWORD


class TestAdminUsers:
    def test_list_users_scoped_to_tenant(
        self, client, admin_headers, regular_user, other_admin
    ):
        response = client.get(f"{API}/admin/users", headers=admin_headers)
        assert response.status_code == 200
        data = response.json()
        emails = {u["email"] for u in data["users"]}
        assert emails == {"admin@acme.test", "user@acme.test"}
        assert data["pagination"] == {"total": 2, "page": 1, "limit": 10, "pages": 1}

    def test_status_filter(self, client, admin_headers, user_factory, test_customer):
        user_factory(
            "new@acme.test", "newbie", USER_PASSWORD, "USER", test_customer, status="PENDING"
        )
        response = client.get(f"{API}/admin/users?status=PENDING", headers=admin_headers)
        assert [u["username"] for u in response.json()["users"]] == ["newbie"]

    def test_regular_user_forbidden(self, client, user_headers):
        response = client.get(f"{API}/admin/users", headers=user_headers)
        assert response.status_code == 403

    def test_approve_pending_user(
        self, client, admin_headers, user_factory, test_customer, login_as
    ):
        pending = user_factory(
            "new@acme.test", "newbie", USER_PASSWORD, "USER", test_customer, status="PENDING"
        )
        url = f"{API}/admin/users/{pending.id}/approve"

        response = client.post(url, json={"action": "approve"}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["message"] == "User approved successfully"
        assert response.json()["user"]["status"] == "ACTIVE"

        response = client.post(url, json={"action": "approve"}, headers=admin_headers)
        assert response.json() == {"message": "User is already approved", "user": None}

        login_as("new@acme.test", USER_PASSWORD)

    def test_reject_user(self, client, admin_headers, user_factory, test_customer):
        pending = user_factory(
            "new@acme.test", "newbie", USER_PASSWORD, "USER", test_customer, status="PENDING"
        )
        response = client.post(
            f"{API}/admin/users/{pending.id}/approve",
            json={"action": "reject", "reason": "Unknown person"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["user"]["status"] == "INACTIVE"

    def test_invalid_action(self, client, admin_headers, regular_user):
        response = client.post(
            f"{API}/admin/users/{regular_user.id}/approve",
            json={"action": "promote"},
            headers=admin_headers,
        )
        assert response.status_code == 422

    def test_cannot_approve_other_tenant_user(self, client, admin_headers, other_admin):
        response = client.post(
            f"{API}/admin/users/{other_admin.id}/approve",
            json={"action": "reject"},
            headers=admin_headers,
        )
        assert response.status_code == 404

    def test_superadmins_hidden_from_tenant_admin(
        self, client, admin_headers, regular_user, user_factory, test_customer
    ):
        root = user_factory(
            "ops@acme.test", "acme-ops", "OpsRoot123!", "SUPERADMIN", test_customer
        )
        response = client.get(f"{API}/admin/users", headers=admin_headers)
        emails = {u["email"] for u in response.json()["users"]}
        assert "ops@acme.test" not in emails
        assert response.json()["pagination"]["total"] == 2

        response = client.post(
            f"{API}/admin/users/{root.id}/approve",
            json={"action": "reject"},
            headers=admin_headers,
        )
        assert response.status_code == 404


class TestSystemOverview:
    def test_overview_shape(self, client, admin_headers, test_device):
        response = client.get(f"{API}/admin/system", headers=admin_headers)
        assert response.status_code == 200
        data = response.json()
        assert set(data) == {"system", "database", "application"}
        assert data["database"]["counts"]["devices"] == 1
        assert "customers" not in data["database"]["counts"]
        assert data["application"]["devices_by_status"] == {"ONLINE": 1}
        assert data["system"]["cpu"]["cores"] >= 1

    def test_superadmin_sees_customer_count(self, client, superadmin_headers, test_customer):
        response = client.get(f"{API}/admin/system", headers=superadmin_headers)
        assert response.status_code == 200
        assert response.json()["database"]["counts"]["customers"] == 1

    def test_requires_admin(self, client, user_headers):
        response = client.get(f"{API}/admin/system", headers=user_headers)
        assert response.status_code == 403
