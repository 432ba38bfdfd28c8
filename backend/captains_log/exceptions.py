"""Domain exceptions shared by repositories, services and routes."""

from __future__ import annotations


class CaptainsLogError(Exception):
    """Base class for all application errors."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message or self.__class__.__name__


class ValidationError(CaptainsLogError):
    """User input failed validation (malformed email, short password)."""


class DuplicateKeyError(CaptainsLogError):
    """A uniqueness constraint (email, tag name, identifier) was violated."""


class NotFoundError(CaptainsLogError):
    """A referenced user, recording or token does not exist."""


class InvalidCredentialsError(CaptainsLogError):
    """Login failed because the password does not match."""


class InvalidTokenError(CaptainsLogError):
    """No user holds the supplied password-reset token."""


class TokenExpiredError(CaptainsLogError):
    """The password-reset token is past its expiry."""


class StorageFailure(CaptainsLogError):
    """A repository call failed at the storage layer."""


class RecordingError(CaptainsLogError):
    """Capturing or assembling audio failed; nothing was persisted."""


class TranscriptionFailure(CaptainsLogError):
    """The speech-to-text call failed.

    ``kind`` is one of ``missing_credentials``, ``transport`` or ``service``.
    """

    def __init__(self, kind: str, message: str = "") -> None:
        super().__init__(message)
        self.kind = kind
