"""Security utilities for password hashing and session tokens."""

import base64
import hashlib
import secrets
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import bcrypt
from jose import JWTError, jwt

from captains_log.config import settings
from captains_log.utils.time import utcnow


def _bcrypt_input(password: str) -> bytes:
    """SHA-256 digest, base64 encoded: 44 bytes, under bcrypt's 72-byte limit for any password."""
    return base64.b64encode(hashlib.sha256(password.encode("utf-8")).digest())


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    The password is pre-hashed so that every length is accepted and every
    character counts.

    Args:
        password: Plain text password to hash

    Returns:
        Hashed password string
    """
    hashed = bcrypt.hashpw(_bcrypt_input(password), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verify a password against its hash.

    Args:
        plain_password: Plain text password to verify
        hashed_password: Hashed password to compare against

    Returns:
        True if password matches, False otherwise
    """
    try:
        return bcrypt.checkpw(_bcrypt_input(plain_password), hashed_password.encode("utf-8"))
    except (ValueError, AttributeError):
        return False


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
    issued_at: Optional[datetime] = None,
) -> str:
    """
    Create a signed session token.

    The ``exp`` claim is ``issued_at`` (default now) plus ``expires_delta``
    (default ``settings.session_expire_days``).
    """
    to_encode = data.copy()
    start = issued_at or utcnow()
    expire = start + (expires_delta or timedelta(days=settings.session_expire_days))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate a session token.

    Returns:
        Decoded token payload as dictionary, or None if invalid/expired
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None


def generate_reset_token() -> str:
    """Random single-use token for password resets."""
    return secrets.token_hex(32)
