"""Pydantic schemas for authentication and profiles."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class UserPreferences(BaseModel):
    """Per-user recording preferences stored in ``users.settings``."""

    audio_quality: Literal["low", "medium", "high"] = "medium"
    silence_threshold: float = Field(30, ge=0, le=100)


class RegisterRequest(BaseModel):
    """Request schema for account registration."""

    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)
    name: Optional[str] = Field(default=None, max_length=255)


class LoginRequest(BaseModel):
    """Request schema for user login."""

    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class UserResponse(BaseModel):
    """Response schema for user information (never includes the password hash)."""

    model_config = {"from_attributes": True}

    id: str
    email: str
    name: str
    settings: UserPreferences
    last_login_at: Optional[datetime] = None
    created_at: datetime


class TokenResponse(BaseModel):
    """Response schema for successful authentication."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token expiration time in seconds")
    expires_at: datetime
    user: UserResponse


class ProfileUpdateRequest(BaseModel):
    """Partial profile update; omitted fields keep their values."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=128)
    settings: Optional[UserPreferences] = None


class PasswordResetRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=255)


class PasswordResetConfirm(BaseModel):
    token: str = Field(..., min_length=1, max_length=64)
    new_password: str = Field(..., min_length=1, max_length=128)


class MessageResponse(BaseModel):
    """Generic acknowledgement."""

    detail: str
