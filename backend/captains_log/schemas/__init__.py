"""Pydantic schemas package."""

from captains_log.schemas.auth import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from captains_log.schemas.recording import LogEntryResponse, SearchHit

__all__ = [
    "LoginRequest",
    "RegisterRequest",
    "TokenResponse",
    "UserResponse",
    "LogEntryResponse",
    "SearchHit",
]
