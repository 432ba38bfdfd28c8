"""Recording model."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, LargeBinary
from sqlalchemy.orm import relationship

from captains_log.database import Base
from captains_log.utils.time import utcnow


class Recording(Base):
    """Recording table for captured audio notes.

    Audio lives inline in ``audio_data`` until it is uploaded to disk, after
    which ``file_path`` points at the stored file. ``duration_ms`` is kept in
    milliseconds and only formatted for display.
    """

    __tablename__ = "recordings"

    id = Column(String(36), primary_key=True)  # UUID
    user_id = Column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    filename = Column(String(255), nullable=False)
    duration_ms = Column(Integer, nullable=False, default=0)
    audio_data = Column(LargeBinary, nullable=True)
    file_path = Column(String(512), nullable=True)
    recorded_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="recordings")
    transcriptions = relationship(
        "Transcription",
        back_populates="recording",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    tags = relationship("Tag", secondary="recording_tags", back_populates="recordings")

    @property
    def has_audio(self) -> bool:
        return bool(self.audio_data) or bool(self.file_path)

    def __repr__(self) -> str:
        return f"<Recording(id='{self.id}', filename='{self.filename}')>"
