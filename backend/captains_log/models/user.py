"""User model."""

from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.orm import relationship

from captains_log.database import Base
from captains_log.utils.time import utcnow

DEFAULT_USER_SETTINGS = {"audio_quality": "medium", "silence_threshold": 30}


class User(Base):
    """User table for authentication and per-user recording preferences."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True)  # UUID
    email = Column(String(255), unique=True, nullable=False, index=True)  # stored lower-cased
    name = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    settings = Column(JSON, nullable=False, default=lambda: dict(DEFAULT_USER_SETTINGS))
    reset_token = Column(String(64), nullable=True, index=True)
    reset_token_expiry = Column(DateTime, nullable=True)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    recordings = relationship(
        "Recording", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<User(id='{self.id}', email='{self.email}')>"
