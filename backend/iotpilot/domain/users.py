"""User value objects and filters."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from iotpilot.domain.exceptions import ValidationError

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_SPECIAL_CHARS = re.compile(r"[^A-Za-z0-9]")

PASSWORD_MIN_LENGTH = 8


class UserStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PENDING = "PENDING"
    SUSPENDED = "SUSPENDED"
    INACTIVE = "INACTIVE"


@dataclass(slots=True, frozen=True)
class Email:
    value: str

    def __post_init__(self) -> None:
        normalized = (self.value or "").strip().lower()
        if not _EMAIL_PATTERN.match(normalized):
            raise ValidationError("Invalid email address")
        object.__setattr__(self, "value", normalized)

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True, frozen=True)
class Password:
    """Plain password that satisfies the complexity rules.

    Never persisted; callers hash ``value`` immediately.
    """

    value: str

    def __post_init__(self) -> None:
        password = self.value or ""
        problems = []
        if len(password) < PASSWORD_MIN_LENGTH:
            problems.append(f"at least {PASSWORD_MIN_LENGTH} characters")
        if not re.search(r"[A-Z]", password):
            problems.append("an uppercase letter")
        if not re.search(r"[a-z]", password):
            problems.append("a lowercase letter")
        if not re.search(r"\d", password):
            problems.append("a digit")
        if not _SPECIAL_CHARS.search(password):
            problems.append("a special character")
        if problems:
            raise ValidationError("Password must contain " + ", ".join(problems))

    def __repr__(self) -> str:
        return "Password(***)"


@dataclass(slots=True)
class UserFilters:
    status: Optional[UserStatus] = None
    page: int = 1
    limit: int = 10

    @property
    def offset(self) -> int:
        return (max(self.page, 1) - 1) * self.limit
