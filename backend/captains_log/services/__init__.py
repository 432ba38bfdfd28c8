"""Services package."""

from captains_log.services.auth import AuthService, AuthSession, create_token_response
from captains_log.services.capture import AudioCapture, CapturedAudio
from captains_log.services.journal import Journal, load_entries
from captains_log.services.local_state import LocalStateStore
from captains_log.services.log_book import LogBook, LogEntry
from captains_log.services.recording_pipeline import RecordingPipeline
from captains_log.services.search import SearchController
from captains_log.services.transcription import TranscriptionClient, TranscriptionResult

__all__ = [
    "AuthService",
    "AuthSession",
    "create_token_response",
    "AudioCapture",
    "CapturedAudio",
    "Journal",
    "load_entries",
    "LocalStateStore",
    "LogBook",
    "LogEntry",
    "RecordingPipeline",
    "SearchController",
    "TranscriptionClient",
    "TranscriptionResult",
]
