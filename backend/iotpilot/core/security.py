"""Password hashing and JWT helpers."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from iotpilot.core.config import settings
from iotpilot.domain.exceptions import UnauthorizedError

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def token_lifetime(remember: bool) -> timedelta:
    """Remembered logins last days, regular ones hours."""
    if remember:
        return timedelta(days=settings.remember_me_expire_days)
    return timedelta(hours=settings.token_expire_hours)


def create_access_token(claims: dict[str, Any], expires_delta: timedelta) -> tuple[str, datetime]:
    """Encode ``claims`` and return the token with its naive UTC expiry."""
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = claims.copy()
    # jti keeps tokens unique when the same user logs in twice within a second
    to_encode.update({"exp": expire, "jti": uuid.uuid4().hex})
    token = jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)
    return token, expire.replace(tzinfo=None)


def decode_token(token: str) -> dict[str, Any]:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as exc:
        raise UnauthorizedError("Invalid or expired token") from exc
