"""Secret handling: Fernet encryption for SSH credentials and key digests."""

from __future__ import annotations

import hashlib
import logging
import secrets
from functools import lru_cache
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from iotpilot.core.config import settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _fernet() -> Fernet:
    try:
        return Fernet(settings.encryption_key)
    except (TypeError, ValueError) as exc:  # pragma: no cover - rejected at settings load
        raise RuntimeError("ENCRYPTION_KEY is invalid; expected base64 Fernet key") from exc


def encrypt_text(plaintext: Optional[str]) -> Optional[str]:
    """Encrypt a device secret (SSH password or private key)."""
    if plaintext is None:
        return None
    return _fernet().encrypt(plaintext.encode()).decode()


def decrypt_text(ciphertext: Optional[str]) -> Optional[str]:
    """Reverse encrypt_text. Raises InvalidToken for foreign or corrupted data."""
    if ciphertext is None:
        return None
    try:
        return _fernet().decrypt(ciphertext.encode()).decode()
    except InvalidToken:
        logger.error("Stored device secret could not be decrypted; was ENCRYPTION_KEY rotated?")
        raise


def generate_api_key(prefix: str = "iot_") -> str:
    """``iot_`` followed by 64 hex characters."""
    return f"{prefix}{secrets.token_hex(32)}"


def digest_api_key(key: str) -> str:
    """SHA-256 hex digest stored in place of the plain key."""
    return hashlib.sha256(key.encode()).hexdigest()


def mask_key(key_suffix: str) -> str:
    return f"****{key_suffix[-4:]}"
