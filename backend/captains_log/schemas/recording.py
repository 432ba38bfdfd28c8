"""Pydantic schemas for recordings, log entries and search."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from captains_log.models.transcription import TranscriptionStatus


class SearchHit(BaseModel):
    """A transcription matching a search, joined with its recording."""

    model_config = ConfigDict(from_attributes=True)

    transcription_id: str
    recording_id: str
    content: str
    metadata: Optional[dict] = None
    filename: str
    duration_ms: int
    recorded_at: datetime


class LogEntryResponse(BaseModel):
    """A journal entry as presented to the client."""

    id: str
    recorded_at: datetime
    transcript: str
    duration_ms: int
    duration: str
    status: TranscriptionStatus
    audio_url: Optional[str] = None
    tags: list[str] = []


class LogEntryListResponse(BaseModel):
    total: int
    items: list[LogEntryResponse]


class SearchResponse(BaseModel):
    query: str
    total: int
    items: list[LogEntryResponse]


class UploadResponse(BaseModel):
    """Response for an audio upload."""

    success: bool = True
    file_path: str
    file_name: str
    size: int


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str
    database: str
    timestamp: datetime
