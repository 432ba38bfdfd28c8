"""Validation helpers for account emails and passwords."""

from __future__ import annotations

import re

from captains_log.exceptions import ValidationError

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PASSWORD_MIN_LENGTH = 8


def validate_email(email: str | None) -> str:
    """Return the stripped email, raising ``ValidationError`` when malformed."""
    candidate = (email or "").strip()
    if not _EMAIL_PATTERN.fullmatch(candidate):
        raise ValidationError("Please enter a valid email address")
    return candidate


def validate_password(password: str | None) -> str:
    if not password or len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"
        )
    return password
