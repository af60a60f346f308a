"""Tests for authentication endpoints."""

from iotpilot.db.models import Session as LoginSession
from iotpilot.db.models import User

API = "/api/v1"


def test_root_endpoint(client):
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "IoT Pilot API"
    assert "version" in data


def test_first_registration_becomes_active_admin(client, test_customer):
    response = client.post(
        f"{API}/auth/register",
        json={
            "email": "Founder@Acme.test",
            "username": "founder",
            "password": "Founder123!",
            "customer_id": test_customer.id,
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Registration successful"
    assert data["user"]["email"] == "founder@acme.test"
    assert data["user"]["role"] == "ADMIN"
    assert data["user"]["status"] == "ACTIVE"


def test_later_registration_is_pending(client, admin_user, test_customer):
    response = client.post(
        f"{API}/auth/register",
        json={
            "email": "second@acme.test",
            "username": "second",
            "password": "Second123!",
            "customer_id": test_customer.id,
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Registration successful. Your account is pending approval."
    assert data["user"]["role"] == "USER"
    assert data["user"]["status"] == "PENDING"


def test_registration_without_customer_uses_default_organization(client, db_session):
    response = client.post(
        f"{API}/auth/register",
        json={"email": "solo@example.test", "username": "solo", "password": "Solo1234!"},
    )
    assert response.status_code == 201
    user = db_session.query(User).filter(User.email == "solo@example.test").one()
    assert user.customer.name == "Default Organization"


def test_register_duplicate_email(client, admin_user, test_customer):
    response = client.post(
        f"{API}/auth/register",
        json={
            "email": admin_user.email,
            "username": "someone-else",
            "password": "Another123!",
            "customer_id": test_customer.id,
        },
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "User with this email already exists"


def test_register_weak_password(client, test_customer):
    response = client.post(
        f"{API}/auth/register",
        json={
            "email": "weak@acme.test",
            "username": "weakling",
            "password": "password",
            "customer_id": test_customer.id,
        },
    )
    assert response.status_code == 422
    assert "uppercase" in response.json()["detail"]


def test_register_into_suspended_customer(client, db_session, test_customer):
    test_customer.status = "SUSPENDED"
    db_session.commit()

    response = client.post(
        f"{API}/auth/register",
        json={
            "email": "late@acme.test",
            "username": "latecomer",
            "password": "Latecomer1!",
            "customer_id": test_customer.id,
        },
    )
    assert response.status_code == 400
    assert "suspended" in response.json()["detail"]


def test_register_over_user_quota(client, db_session, admin_user, test_customer):
    test_customer.settings = {**test_customer.settings, "max_users": 1}
    db_session.commit()

    response = client.post(
        f"{API}/auth/register",
        json={
            "email": "extra@acme.test",
            "username": "extra",
            "password": "Extra1234!",
            "customer_id": test_customer.id,
        },
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Quota exceeded for users: limit is 1"
    assert db_session.query(User).filter(User.email == "extra@acme.test").count() == 0


def test_login_success_sets_cookie(client, admin_user, db_session):
    response = client.post(
        f"{API}/auth/login",
        json={"email": admin_user.email, "password": "Admin123!"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["token"]
    assert data["user"]["email"] == admin_user.email
    assert "auth-token" in response.cookies
    set_cookie = response.headers["set-cookie"].lower()
    assert "httponly" in set_cookie
    assert "samesite=lax" in set_cookie

    login_session = db_session.query(LoginSession).filter_by(user_id=admin_user.id).one()
    assert login_session.token == data["token"]
    db_session.refresh(admin_user)
    assert admin_user.last_login_at is not None


def test_login_invalid_credentials(client, admin_user):
    response = client.post(
        f"{API}/auth/login",
        json={"email": admin_user.email, "password": "wrongpassword"},
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid credentials"


def test_login_nonexistent_user(client):
    response = client.post(
        f"{API}/auth/login",
        json={"email": "nobody@acme.test", "password": "Whatever1!"},
    )
    assert response.status_code == 401


def test_login_pending_user_is_forbidden(client, user_factory, test_customer):
    user_factory(
        "pending@acme.test", "pending", "Pending123!", "USER", test_customer, status="PENDING"
    )
    response = client.post(
        f"{API}/auth/login",
        json={"email": "pending@acme.test", "password": "Pending123!"},
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "Account pending approval"


def test_me_with_bearer(client, admin_headers, admin_user, test_device):
    response = client.get(f"{API}/auth/me", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["email"] == admin_user.email
    assert data["device_count"] == 1
    assert data["alert_count"] == 0


def test_me_with_cookie(client, regular_user):
    client.post(f"{API}/auth/login", json={"email": regular_user.email, "password": "User1234!"})
    response = client.get(f"{API}/auth/me")
    assert response.status_code == 200
    assert response.json()["email"] == regular_user.email


def test_me_with_api_key(client, api_key_headers, regular_user):
    response = client.get(f"{API}/auth/me", headers=api_key_headers)
    assert response.status_code == 200
    assert response.json()["email"] == regular_user.email


def test_me_requires_auth(client):
    response = client.get(f"{API}/auth/me")
    assert response.status_code == 401
    assert response.json()["detail"] == "Not authenticated"


def test_invalid_token(client):
    response = client.get(f"{API}/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_logout_revokes_session(client, admin_headers):
    response = client.post(f"{API}/auth/logout", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Logged out successfully"}

    response = client.get(f"{API}/auth/me", headers=admin_headers)
    assert response.status_code == 401
    assert response.json()["detail"] == "Session expired or revoked"


def test_inactive_user_token_rejected(client, admin_headers, admin_user, db_session):
    admin_user.status = "SUSPENDED"
    db_session.commit()

    response = client.get(f"{API}/auth/me", headers=admin_headers)
    assert response.status_code == 401
