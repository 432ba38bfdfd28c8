"""Tests for security utilities (password hashing and session tokens)."""

import calendar
from datetime import datetime, timedelta

from jose import jwt

from captains_log.config import settings
from captains_log.utils.security import (
    create_access_token,
    decode_access_token,
    generate_reset_token,
    hash_password,
    verify_password,
)
from captains_log.utils.time import utcnow


class TestPasswordHashing:
    """Test password hashing and verification."""

    def test_hash_password(self):
        password = "mysecurepassword123"
        hashed = hash_password(password)

        assert hashed != password
        assert hashed.startswith("$2b$")  # bcrypt hash prefix
        assert len(hashed) == 60

    def test_hash_password_different_hashes(self):
        """Same password produces different hashes (salt)."""
        assert hash_password("samepassword") != hash_password("samepassword")

    def test_verify_password(self):
        hashed = hash_password("correctpassword")

        assert verify_password("correctpassword", hashed) is True
        assert verify_password("wrongpassword", hashed) is False
        assert verify_password("", hashed) is False

    def test_verify_password_malformed_hash(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False
        assert verify_password("anything", None) is False

    def test_passwords_past_bcrypt_limit(self):
        """Only the first 72 bytes reach bcrypt unless the password is digested first."""
        long_password = "x" * 80
        hashed = hash_password(long_password)

        assert verify_password(long_password, hashed) is True
        assert verify_password("x" * 79 + "y", hashed) is False
        assert verify_password("x" * 72, hashed) is False

    def test_multibyte_password(self):
        password = "ünïcödé-" * 12
        assert verify_password(password, hash_password(password)) is True


class TestSessionTokens:
    """Test token creation and validation."""

    def test_token_round_trip(self):
        token = create_access_token({"sub": "picard@enterprise.example", "user_id": "u-1"})
        payload = decode_access_token(token)

        assert payload["sub"] == "picard@enterprise.example"
        assert payload["user_id"] == "u-1"

    def test_default_expiry_is_session_lifetime(self):
        token = create_access_token({"user_id": "u-1"})
        payload = jwt.get_unverified_claims(token)

        expected = utcnow() + timedelta(days=settings.session_expire_days)
        assert abs(payload["exp"] - calendar.timegm(expected.utctimetuple())) < 60

    def test_expiry_counts_from_issue_time(self):
        issued = datetime(2025, 1, 1, 12, 0, 0)
        token = create_access_token(
            {"user_id": "u-1"}, expires_delta=timedelta(hours=2), issued_at=issued
        )
        payload = jwt.get_unverified_claims(token)

        assert payload["exp"] == calendar.timegm(datetime(2025, 1, 1, 14, 0, 0).utctimetuple())

    def test_expired_token_rejected(self):
        token = create_access_token({"user_id": "u-1"}, expires_delta=timedelta(seconds=-10))
        assert decode_access_token(token) is None

    def test_tampered_token_rejected(self):
        token = create_access_token({"user_id": "u-1"})
        assert decode_access_token(token[:-2] + "xx") is None
        assert decode_access_token("not.a.token") is None

    def test_wrong_secret_rejected(self):
        token = jwt.encode({"user_id": "u-1"}, "some-other-secret", algorithm=settings.algorithm)
        assert decode_access_token(token) is None


def test_reset_tokens_are_random():
    first, second = generate_reset_token(), generate_reset_token()
    assert first != second
    assert len(first) == 64
