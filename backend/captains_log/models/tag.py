"""Tag model and recording-tag association table."""

from sqlalchemy import Column, String, DateTime, ForeignKey, Table
from sqlalchemy.orm import relationship

from captains_log.database import Base
from captains_log.utils.time import utcnow

# Junction table for many-to-many relationship
recording_tags = Table(
    "recording_tags",
    Base.metadata,
    Column(
        "recording_id",
        String(36),
        ForeignKey("recordings.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("tag_id", String(36), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Tag(Base):
    """Tag table; names are unique and created on first use."""

    __tablename__ = "tags"

    id = Column(String(36), primary_key=True)  # UUID
    name = Column(String(50), unique=True, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    recordings = relationship("Recording", secondary=recording_tags, back_populates="tags")

    def __repr__(self) -> str:
        return f"<Tag(id='{self.id}', name='{self.name}')>"
