"""The in-memory journal shown to the user, newest entry first."""

from dataclasses import dataclass, field, replace as dataclass_replace
from datetime import datetime
from typing import Any, Callable, Iterable, Optional

from captains_log.logging_config import get_logger
from captains_log.models import Recording, Tag, Transcription
from captains_log.models.transcription import TranscriptionStatus, status_from_metadata
from captains_log.schemas.recording import SearchHit
from captains_log.services.local_state import LocalStateStore
from captains_log.utils.time import format_duration

logger = get_logger(__name__)

NO_TRANSCRIPT = "No transcription available"

Listener = Callable[[list["LogEntry"]], None]


@dataclass
class LogEntry:
    id: str
    recorded_at: datetime
    transcript: str
    duration_ms: int = 0
    status: TranscriptionStatus = TranscriptionStatus.PENDING
    audio_url: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    audio: Optional[bytes] = field(default=None, repr=False, compare=False)

    @property
    def duration(self) -> str:
        return format_duration(self.duration_ms)

    def matches(self, text: str) -> bool:
        return text.lower() in (self.transcript or "").lower()

    def with_changes(self, **changes: Any) -> "LogEntry":
        return dataclass_replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "recorded_at": self.recorded_at.isoformat(),
            "transcript": self.transcript,
            "duration_ms": self.duration_ms,
            "status": self.status.value,
            "audio_url": self.audio_url,
            "tags": list(self.tags),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LogEntry":
        recorded_at = data.get("recorded_at")
        return cls(
            id=data["id"],
            recorded_at=(
                datetime.fromisoformat(recorded_at) if isinstance(recorded_at, str) else recorded_at
            ),
            transcript=data.get("transcript", ""),
            duration_ms=int(data.get("duration_ms") or 0),
            status=TranscriptionStatus(data.get("status", TranscriptionStatus.COMPLETED.value)),
            audio_url=data.get("audio_url"),
            tags=list(data.get("tags") or []),
        )

    @classmethod
    def from_recording(
        cls,
        recording: Recording,
        transcription: Optional[Transcription] = None,
        tags: Iterable[Tag] = (),
    ) -> "LogEntry":
        return cls(
            id=recording.id,
            recorded_at=recording.recorded_at,
            transcript=transcription.content if transcription else NO_TRANSCRIPT,
            duration_ms=recording.duration_ms or 0,
            status=transcription.status if transcription else TranscriptionStatus.COMPLETED,
            audio_url=audio_url_for(recording.id) if recording.has_audio else None,
            tags=[tag.name for tag in tags],
        )

    @classmethod
    def from_search_hit(cls, hit: SearchHit) -> "LogEntry":
        return cls(
            id=hit.recording_id,
            recorded_at=hit.recorded_at,
            transcript=hit.content,
            duration_ms=hit.duration_ms,
            status=status_from_metadata(hit.metadata),
            audio_url=audio_url_for(hit.recording_id),
        )


def audio_url_for(recording_id: str) -> str:
    return f"/api/recordings/{recording_id}"


class LogBook:
    """Ordered list of log entries with change listeners.

    When a ``cache`` is given every mutation is written through to it.
    """

    def __init__(self, cache: Optional[LocalStateStore] = None) -> None:
        self._entries: list[LogEntry] = []
        self._listeners: list[Listener] = []
        self.cache = cache

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(list(self._entries))

    @property
    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that unsubscribes it."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def get(self, entry_id: str) -> Optional[LogEntry]:
        return next((entry for entry in self._entries if entry.id == entry_id), None)

    def add(self, entry: LogEntry) -> None:
        """Insert at the top; an entry with the same id is replaced instead."""
        if self.get(entry.id) is not None:
            self.replace(entry)
            return
        self._entries.insert(0, entry)
        self._changed()

    def replace(self, entry: LogEntry) -> bool:
        """Swap the entry with the same id in place, keeping its position."""
        for index, existing in enumerate(self._entries):
            if existing.id == entry.id:
                self._entries[index] = entry
                self._changed()
                return True
        return False

    def remove(self, entry_id: str) -> bool:
        remaining = [entry for entry in self._entries if entry.id != entry_id]
        if len(remaining) == len(self._entries):
            return False
        self._entries = remaining
        self._changed()
        return True

    def clear(self) -> None:
        self._entries = []
        self._changed()

    def load(self, entries: Iterable[LogEntry]) -> None:
        """Replace the whole list, keeping the given order."""
        self._entries = list(entries)
        self._changed()

    def filter(self, text: str) -> list[LogEntry]:
        """Case-insensitive substring filter on transcripts; blank returns everything."""
        if not text or not text.strip():
            return self.entries
        return [entry for entry in self._entries if entry.matches(text)]

    def _changed(self) -> None:
        if self.cache is not None:
            self.cache.save_logs([entry.to_dict() for entry in self._entries])
        snapshot = self.entries
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Log book listener failed")
