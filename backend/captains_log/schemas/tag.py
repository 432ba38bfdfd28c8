"""Tag schemas for request/response validation."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class TagCreate(BaseModel):
    """Schema for tagging a recording by name."""

    name: str = Field(..., min_length=1, max_length=50)


class TagResponse(BaseModel):
    """Schema for tag response."""

    id: str
    name: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TagListResponse(BaseModel):
    """Schema for list of tags."""

    total: int
    items: list[TagResponse]


class RecordingTagsResponse(BaseModel):
    recording_id: str
    tags: list[TagResponse]
