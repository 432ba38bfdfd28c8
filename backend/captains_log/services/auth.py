"""Authentication service.

Session state lives in an explicit :class:`AuthSession` that callers pass in;
the HTTP layer builds one per request from the bearer token.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from captains_log.config import settings
from captains_log.exceptions import (
    DuplicateKeyError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    TokenExpiredError,
    ValidationError,
)
from captains_log.logging_config import get_logger
from captains_log.models.user import DEFAULT_USER_SETTINGS, User
from captains_log.repositories.base import Repository, normalize_email
from captains_log.schemas.auth import TokenResponse, UserPreferences, UserResponse
from captains_log.utils.security import (
    create_access_token,
    decode_access_token,
    generate_reset_token,
    hash_password,
    verify_password,
)
from captains_log.utils.time import utcnow
from captains_log.utils.validation import validate_email, validate_password

logger = get_logger(__name__)

PROFILE_FIELDS = frozenset({"name", "email", "password", "settings"})


@dataclass
class AuthSession:
    """Token, user and expiry of one signed-in client; empty when anonymous."""

    token: Optional[str] = None
    user_id: Optional[str] = None
    expires_at: Optional[datetime] = None

    @property
    def is_anonymous(self) -> bool:
        return self.token is None

    def clear(self) -> None:
        self.token = None
        self.user_id = None
        self.expires_at = None


class AuthService:
    """Account registration, login and profile management."""

    def __init__(self, repository: Repository, clock: Callable[[], datetime] = utcnow) -> None:
        self.repository = repository
        self._clock = clock

    async def register(
        self, session: AuthSession, email: str, password: str, name: Optional[str] = None
    ) -> AuthSession:
        """
        Create an account and sign it in.

        Raises:
            ValidationError: Malformed email or password shorter than 8 characters
            DuplicateKeyError: Email already registered
        """
        email = normalize_email(validate_email(email))
        validate_password(password)
        if await self.repository.users.get_by_email(email):
            raise DuplicateKeyError("Email already registered")

        attributes: dict[str, Any] = {
            "email": email,
            "password_hash": hash_password(password),
            "settings": dict(DEFAULT_USER_SETTINGS),
        }
        if name and name.strip():
            attributes["name"] = name.strip()
        user_id = await self.repository.users.create(attributes)
        logger.info(f"Registered user {user_id}")
        return await self.login(session, email, password)

    async def login(self, session: AuthSession, email: str, password: str) -> AuthSession:
        """
        Verify credentials and populate the session with a fresh token.

        Raises:
            NotFoundError: No account for the email
            InvalidCredentialsError: Password does not match
        """
        user = await self.repository.users.get_by_email(email or "")
        if user is None:
            raise NotFoundError("User not found")
        if not verify_password(password or "", user.password_hash):
            raise InvalidCredentialsError("Invalid password")

        now = self._clock()
        await self.repository.users.update(user.id, {"last_login_at": now})

        lifetime = timedelta(days=settings.session_expire_days)
        session.token = create_access_token(
            {"sub": user.email, "user_id": user.id}, lifetime, issued_at=now
        )
        session.user_id = user.id
        session.expires_at = now + lifetime
        logger.info(f"User {user.id} logged in")
        return session

    def is_authenticated(self, session: AuthSession) -> bool:
        """True when a token is held and unexpired; an expired session is cleared."""
        if session.is_anonymous:
            return False
        if session.expires_at is not None and session.expires_at <= self._clock():
            session.clear()
            return False
        return True

    def logout(self, session: AuthSession) -> None:
        session.clear()

    async def current_user(self, session: AuthSession) -> Optional[User]:
        if not self.is_authenticated(session):
            return None
        user = await self.repository.users.get_by_id(session.user_id)
        if user is None:
            session.clear()
        return user

    async def restore_session(self, session: AuthSession, token: str) -> AuthSession:
        """Populate ``session`` from a bearer token after checking signature and expiry."""
        payload = decode_access_token(token)
        if not payload or not payload.get("user_id"):
            session.clear()
            raise InvalidTokenError("Could not validate credentials")

        session.token = token
        session.user_id = payload["user_id"]
        exp = payload.get("exp")
        session.expires_at = (
            datetime.fromtimestamp(exp, timezone.utc).replace(tzinfo=None) if exp else None
        )
        return session

    async def request_password_reset(self, email: str) -> None:
        """Issue a reset token for an existing account; unknown emails are ignored."""
        user = await self.repository.users.get_by_email(email or "")
        if user is None:
            logger.info("Password reset requested for unknown email")
            return

        token = generate_reset_token()
        expiry = self._clock() + timedelta(hours=settings.reset_token_expire_hours)
        await self.repository.users.update(
            user.id, {"reset_token": token, "reset_token_expiry": expiry}
        )
        # Delivery is not wired up; the token goes to the log instead of an email.
        logger.info(f"Password reset token for {user.email}: {token} (expires {expiry.isoformat()})")

    async def reset_password(self, token: str, new_password: str) -> None:
        """
        Set a new password using a reset token; the token is single-use.

        Raises:
            ValidationError: Password shorter than 8 characters
            InvalidTokenError: No account holds the token
            TokenExpiredError: The token is past its expiry
        """
        validate_password(new_password)
        user = await self.repository.users.get_by_reset_token(token) if token else None
        if user is None:
            raise InvalidTokenError("Invalid or expired reset token")
        if user.reset_token_expiry is None or user.reset_token_expiry < self._clock():
            raise TokenExpiredError("Reset token has expired")

        await self.repository.users.update(
            user.id,
            {
                "password_hash": hash_password(new_password),
                "reset_token": None,
                "reset_token_expiry": None,
            },
        )
        logger.info(f"Password reset for user {user.id}")

    async def update_profile(self, user_id: str, updates: dict[str, Any]) -> User:
        """Apply a partial profile update and return the refreshed user."""
        user = await self.repository.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")

        unknown = set(updates) - PROFILE_FIELDS
        if unknown:
            raise ValidationError(f"Unsupported profile fields: {', '.join(sorted(unknown))}")

        attributes: dict[str, Any] = {}
        if updates.get("name") is not None:
            attributes["name"] = updates["name"].strip() or user.name
        if updates.get("email") is not None:
            email = normalize_email(validate_email(updates["email"]))
            existing = await self.repository.users.get_by_email(email)
            if existing and existing.id != user_id:
                raise DuplicateKeyError("Email already in use")
            attributes["email"] = email
        if updates.get("password") is not None:
            attributes["password_hash"] = hash_password(validate_password(updates["password"]))
        if updates.get("settings") is not None:
            attributes["settings"] = self._merge_settings(user, updates["settings"])

        if attributes:
            await self.repository.users.update(user_id, attributes)
        return await self.repository.users.get_by_id(user_id)

    async def update_settings(self, user_id: str, preferences: dict[str, Any]) -> dict[str, Any]:
        user = await self.repository.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        merged = self._merge_settings(user, preferences)
        await self.repository.users.update(user_id, {"settings": merged})
        return merged

    async def delete_account(self, user_id: str, session: Optional[AuthSession] = None) -> None:
        """Delete the user together with their recordings and transcriptions."""
        if not await self.repository.users.delete(user_id):
            raise NotFoundError("User not found")
        if session is not None and session.user_id == user_id:
            session.clear()
        logger.info(f"Deleted account {user_id}")

    @staticmethod
    def _merge_settings(user: User, preferences: dict[str, Any]) -> dict[str, Any]:
        current = {**DEFAULT_USER_SETTINGS, **(user.settings or {})}
        try:
            return UserPreferences(**{**current, **preferences}).model_dump()
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid settings: {exc.errors()[0]['msg']}") from exc


def create_token_response(session: AuthSession, user: User) -> TokenResponse:
    """
    Build the token response for a signed-in session.

    Args:
        session: Authenticated session
        user: The session's user

    Returns:
        TokenResponse with access token
    """
    return TokenResponse(
        access_token=session.token,
        token_type="bearer",
        expires_in=settings.session_expire_days * 24 * 60 * 60,
        expires_at=session.expires_at,
        user=UserResponse.model_validate(user),
    )
