"""Test configuration and fixtures."""

import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Use a fixed, valid Fernet key for test reproducibility
# Generated via: Fernet.generate_key().decode()
TEST_ENCRYPTION_KEY = "6zcciVWk9pw0xGyzngHL5zpIYNF7ryit-8IOGo8RwuU="
os.environ.setdefault("ENCRYPTION_KEY", TEST_ENCRYPTION_KEY)
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ["TESTING"] = "true"  # Disable rate limiting in tests

from iotpilot.core.cache import get_tenant_cache  # noqa: E402
from iotpilot.core.security import get_password_hash  # noqa: E402
from iotpilot.db import Base, get_db  # noqa: E402
from iotpilot.db.models import Customer, Device, User  # noqa: E402
from iotpilot.domain.customers import OrganizationSettings  # noqa: E402
from iotpilot.main import app  # noqa: E402 - must set env vars before importing
from iotpilot.services.api_key_service import APIKeyService  # noqa: E402

API = "/api/v1"

SUPERADMIN_PASSWORD = "SuperAdmin123!"
ADMIN_PASSWORD = "Admin123!"
USER_PASSWORD = "User1234!"
READONLY_PASSWORD = "Readonly123!"

# Use in-memory SQLite for tests
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def reset_tenant_cache():
    """Customer ids repeat across tests, so cached settings must not leak."""
    get_tenant_cache().clear_all()
    yield
    get_tenant_cache().clear_all()


@pytest.fixture
def db_session():
    """Create a fresh database session for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    """Create a test client with overridden database dependency."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_customer(db_session, name, **settings):
    customer = Customer(
        name=name,
        status="ACTIVE",
        settings=OrganizationSettings().merge(settings).to_dict(),
    )
    db_session.add(customer)
    db_session.commit()
    db_session.refresh(customer)
    return customer


def make_user(db_session, email, username, password, role, customer=None, status="ACTIVE"):
    user = User(
        email=email,
        username=username,
        hashed_password=get_password_hash(password),
        role=role,
        status=status,
        customer_id=customer.id if customer else None,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def make_device(db_session, customer, device_id="pi-001", hostname="pi-kitchen", **fields):
    values = {
        "status": "ONLINE",
        "device_type": "PI_4",
        "ip_address": "192.168.1.50",
    }
    values.update(fields)
    device = Device(customer_id=customer.id, device_id=device_id, hostname=hostname, **values)
    db_session.add(device)
    db_session.commit()
    db_session.refresh(device)
    return device


def login(client, email, password):
    """Bearer headers for ``email``; the auth cookie is dropped so headers decide."""
    response = client.post(f"{API}/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def test_customer(db_session):
    return make_customer(db_session, "Acme Farms")


@pytest.fixture
def second_customer(db_session):
    """Create a second customer for multi-tenancy tests."""
    return make_customer(db_session, "Globex Labs")


@pytest.fixture
def superadmin_user(db_session):
    return make_user(
        db_session, "root@iotpilot.test", "root", SUPERADMIN_PASSWORD, "SUPERADMIN"
    )


@pytest.fixture
def admin_user(db_session, test_customer):
    return make_user(
        db_session, "admin@acme.test", "acme-admin", ADMIN_PASSWORD, "ADMIN", test_customer
    )


@pytest.fixture
def regular_user(db_session, test_customer):
    return make_user(
        db_session, "user@acme.test", "acme-user", USER_PASSWORD, "USER", test_customer
    )


@pytest.fixture
def readonly_user(db_session, test_customer):
    return make_user(
        db_session,
        "viewer@acme.test",
        "acme-viewer",
        READONLY_PASSWORD,
        "READONLY",
        test_customer,
    )


@pytest.fixture
def other_admin(db_session, second_customer):
    return make_user(
        db_session, "admin@globex.test", "globex-admin", ADMIN_PASSWORD, "ADMIN", second_customer
    )


@pytest.fixture
def superadmin_headers(client, superadmin_user):
    return login(client, superadmin_user.email, SUPERADMIN_PASSWORD)


@pytest.fixture
def admin_headers(client, admin_user):
    return login(client, admin_user.email, ADMIN_PASSWORD)


@pytest.fixture
def user_headers(client, regular_user):
    return login(client, regular_user.email, USER_PASSWORD)


@pytest.fixture
def readonly_headers(client, readonly_user):
    return login(client, readonly_user.email, READONLY_PASSWORD)


@pytest.fixture
def other_admin_headers(client, other_admin):
    return login(client, other_admin.email, ADMIN_PASSWORD)


@pytest.fixture
def api_key_headers(db_session, regular_user):
    """X-API-Key headers for the regular user, as a device agent would send."""
    _, plain_key = APIKeyService(db_session).create_api_key(regular_user, "agent")
    return {"X-API-Key": plain_key}


@pytest.fixture
def test_device(db_session, test_customer):
    return make_device(db_session, test_customer)


@pytest.fixture
def other_device(db_session, second_customer):
    return make_device(db_session, second_customer, device_id="gx-001", hostname="globex-pi")


@pytest.fixture
def device_factory(db_session):
    def factory(customer, device_id, hostname, **fields):
        return make_device(db_session, customer, device_id, hostname, **fields)

    return factory


@pytest.fixture
def user_factory(db_session):
    def factory(email, username, password, role, customer=None, status="ACTIVE"):
        return make_user(db_session, email, username, password, role, customer, status)

    return factory


@pytest.fixture
def login_as(client):
    def factory(email, password):
        return login(client, email, password)

    return factory
