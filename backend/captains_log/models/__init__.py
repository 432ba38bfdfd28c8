"""Database models package."""

from captains_log.models.user import User, DEFAULT_USER_SETTINGS
from captains_log.models.recording import Recording
from captains_log.models.transcription import Transcription, TranscriptionStatus
from captains_log.models.tag import Tag, recording_tags

__all__ = [
    "User",
    "DEFAULT_USER_SETTINGS",
    "Recording",
    "Transcription",
    "TranscriptionStatus",
    "Tag",
    "recording_tags",
]
