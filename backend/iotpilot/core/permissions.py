"""Role hierarchy helpers."""

from enum import Enum


class UserRole(str, Enum):
    READONLY = "READONLY"
    USER = "USER"
    ADMIN = "ADMIN"
    SUPERADMIN = "SUPERADMIN"


ROLE_HIERARCHY: dict[str, int] = {
    UserRole.READONLY.value: 0,
    UserRole.USER.value: 1,
    UserRole.ADMIN.value: 2,
    UserRole.SUPERADMIN.value: 3,
}


def _rank(role: str | UserRole | None) -> int:
    if role is None:
        return -1
    value = role.value if isinstance(role, UserRole) else str(role)
    return ROLE_HIERARCHY.get(value, -1)


def has_role(user_role: str | UserRole | None, required_role: str | UserRole) -> bool:
    """True if ``user_role`` is ``required_role`` or ranks above it."""
    return _rank(user_role) >= _rank(required_role)


def is_admin(user_role: str | UserRole | None) -> bool:
    return has_role(user_role, UserRole.ADMIN)


def is_superadmin(user_role: str | UserRole | None) -> bool:
    return _rank(user_role) == ROLE_HIERARCHY[UserRole.SUPERADMIN.value]
