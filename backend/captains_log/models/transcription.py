"""Transcription model."""

import enum

from sqlalchemy import Column, String, DateTime, ForeignKey, JSON, Text
from sqlalchemy.orm import relationship

from captains_log.database import Base
from captains_log.utils.time import utcnow


class TranscriptionStatus(str, enum.Enum):
    """Lifecycle of a transcription.

    pending    - Provisional row written before the speech-to-text call
    completed  - Text returned by the transcription service
    error      - The call failed; content holds a placeholder message
    """

    PENDING = "pending"
    COMPLETED = "completed"
    ERROR = "error"


def status_from_metadata(metadata: dict | None) -> TranscriptionStatus:
    """Read the status recorded in a transcription's metadata; unknown values count as pending."""
    raw = (metadata or {}).get("status", TranscriptionStatus.PENDING.value)
    try:
        return TranscriptionStatus(raw)
    except ValueError:
        return TranscriptionStatus.PENDING


class Transcription(Base):
    """Transcription table; engine-specific fields live in ``metadata``."""

    __tablename__ = "transcriptions"

    id = Column(String(36), primary_key=True)  # UUID
    recording_id = Column(
        String(36), ForeignKey("recordings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content = Column(Text, nullable=False, default="")
    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    recording = relationship("Recording", back_populates="transcriptions")

    @property
    def status(self) -> TranscriptionStatus:
        return status_from_metadata(self.meta)

    def __repr__(self) -> str:
        return f"<Transcription(id='{self.id}', recording_id='{self.recording_id}')>"
