"""Database utility helpers."""

from __future__ import annotations

from iotpilot.core.config import settings
from iotpilot.core.logging import get_logger
from iotpilot.core.permissions import UserRole
from iotpilot.core.security import get_password_hash
from iotpilot.db.models import Base, Customer, User
from iotpilot.db.session import SessionLocal
from iotpilot.domain.customers import CustomerStatus, OrganizationSettings
from iotpilot.domain.users import UserStatus

logger = get_logger(__name__)

DEFAULT_ORGANIZATION_NAME = "Default Organization"


def get_or_create_default_organization(db_session) -> Customer:
    default_org = (
        db_session.query(Customer).filter(Customer.name == DEFAULT_ORGANIZATION_NAME).first()
    )
    if not default_org:
        default_org = Customer(
            name=DEFAULT_ORGANIZATION_NAME,
            status=CustomerStatus.ACTIVE.value,
            settings=OrganizationSettings().to_dict(),
        )
        db_session.add(default_org)
        db_session.commit()
        db_session.refresh(default_org)
        logger.info("Created %s", DEFAULT_ORGANIZATION_NAME)
    return default_org


def seed_default_data(db_session) -> None:
    """Create the default organization and superadmin (idempotent)."""
    if settings.is_production:
        logger.info("Skipping default seed in production environment")
        return
    Base.metadata.create_all(bind=db_session.get_bind())

    get_or_create_default_organization(db_session)

    superadmin = db_session.query(User).filter(User.email == settings.superadmin_email).first()
    if not superadmin:
        superadmin = User(
            email=settings.superadmin_email,
            username="superadmin",
            hashed_password=get_password_hash(settings.superadmin_password),
            role=UserRole.SUPERADMIN.value,
            status=UserStatus.ACTIVE.value,
            customer_id=None,
        )
        db_session.add(superadmin)
        db_session.commit()
        logger.info("Created superadmin user", extra={"email": settings.superadmin_email})


def seed_with_new_session() -> None:
    """Helper used by scripts to seed using a fresh session."""
    db = SessionLocal()
    try:
        seed_default_data(db)
    finally:
        db.close()
