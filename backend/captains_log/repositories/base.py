"""Repository contract shared by every storage backend.

Each entity family exposes the same async CRUD surface:

- ``create(attributes, id=None)`` returns the identifier, caller-supplied or
  newly generated, and raises ``DuplicateKeyError`` on a uniqueness violation.
- ``get_by_id`` returns the entity or ``None``.
- ``get_by_owner`` returns the owner's entities, most recent first.
- ``update(id, partial)`` changes only the supplied fields, always refreshes
  ``updated_at`` and returns ``False`` for a missing row.
- ``delete(id)`` cascades to dependent rows and returns ``False`` for a
  missing row.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from captains_log.exceptions import DuplicateKeyError
from captains_log.models import Recording, Tag, Transcription, User
from captains_log.schemas.recording import SearchHit

USER_FIELDS = frozenset(
    {
        "email",
        "name",
        "password_hash",
        "settings",
        "reset_token",
        "reset_token_expiry",
        "last_login_at",
    }
)
RECORDING_FIELDS = frozenset(
    {"user_id", "filename", "duration_ms", "audio_data", "file_path", "recorded_at"}
)
TRANSCRIPTION_FIELDS = frozenset({"recording_id", "content", "meta"})


def clean_attributes(attributes: dict[str, Any], allowed: frozenset[str]) -> dict[str, Any]:
    """Reject keys that are not writable columns of the entity."""
    unknown = set(attributes) - allowed
    if unknown:
        raise ValueError(f"Unknown fields: {', '.join(sorted(unknown))}")
    return dict(attributes)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserRepository(abc.ABC):
    @abc.abstractmethod
    async def create(self, attributes: dict[str, Any], id: Optional[str] = None) -> str: ...

    @abc.abstractmethod
    async def get_by_id(self, id: str) -> Optional[User]: ...

    @abc.abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]: ...

    @abc.abstractmethod
    async def get_by_reset_token(self, token: str) -> Optional[User]: ...

    @abc.abstractmethod
    async def update(self, id: str, attributes: dict[str, Any]) -> bool: ...

    @abc.abstractmethod
    async def delete(self, id: str) -> bool: ...


class RecordingRepository(abc.ABC):
    @abc.abstractmethod
    async def create(self, attributes: dict[str, Any], id: Optional[str] = None) -> str: ...

    @abc.abstractmethod
    async def get_by_id(self, id: str) -> Optional[Recording]: ...

    @abc.abstractmethod
    async def get_by_owner(self, user_id: str) -> list[Recording]: ...

    @abc.abstractmethod
    async def update(self, id: str, attributes: dict[str, Any]) -> bool: ...

    @abc.abstractmethod
    async def delete(self, id: str) -> bool: ...


class TranscriptionRepository(abc.ABC):
    @abc.abstractmethod
    async def create(self, attributes: dict[str, Any], id: Optional[str] = None) -> str: ...

    @abc.abstractmethod
    async def get_by_id(self, id: str) -> Optional[Transcription]: ...

    @abc.abstractmethod
    async def get_by_owner(self, recording_id: str) -> list[Transcription]: ...

    async def get_by_recording(self, recording_id: str) -> Optional[Transcription]:
        """Return the most recent transcription of a recording."""
        transcriptions = await self.get_by_owner(recording_id)
        return transcriptions[0] if transcriptions else None

    @abc.abstractmethod
    async def update(self, id: str, attributes: dict[str, Any]) -> bool: ...

    @abc.abstractmethod
    async def delete(self, id: str) -> bool: ...

    @abc.abstractmethod
    async def search(self, user_id: str, text: str) -> list[SearchHit]: ...


class TagRepository(abc.ABC):
    @abc.abstractmethod
    async def create(self, attributes: dict[str, Any], id: Optional[str] = None) -> str: ...

    @abc.abstractmethod
    async def get_by_id(self, id: str) -> Optional[Tag]: ...

    @abc.abstractmethod
    async def get_by_name(self, name: str) -> Optional[Tag]: ...

    @abc.abstractmethod
    async def list_all(self) -> list[Tag]: ...

    @abc.abstractmethod
    async def delete(self, id: str) -> bool: ...

    @abc.abstractmethod
    async def get_by_recording(self, recording_id: str) -> list[Tag]: ...

    @abc.abstractmethod
    async def get_recordings_by_tag(self, user_id: str, name: str) -> list[Recording]: ...

    @abc.abstractmethod
    async def link_recording(self, recording_id: str, tag_id: str) -> None: ...

    @abc.abstractmethod
    async def unlink_recording(self, recording_id: str, tag_id: str) -> bool: ...

    async def get_or_create(self, name: str) -> str:
        """Return the id of the tag called ``name``, creating it on first use."""
        existing = await self.get_by_name(name)
        if existing:
            return existing.id
        try:
            return await self.create({"name": name})
        except DuplicateKeyError:
            existing = await self.get_by_name(name)
            if existing is None:
                raise
            return existing.id

    async def tag_recording(self, recording_id: str, name: str) -> bool:
        """Attach a tag to a recording; tagging twice is a no-op."""
        tag_id = await self.get_or_create(name)
        await self.link_recording(recording_id, tag_id)
        return True

    async def untag_recording(self, recording_id: str, name: str) -> bool:
        tag = await self.get_by_name(name)
        if not tag:
            return False
        return await self.unlink_recording(recording_id, tag.id)


@dataclass
class Repository:
    """Bundle of the four entity repositories of one backend."""

    users: UserRepository
    recordings: RecordingRepository
    transcriptions: TranscriptionRepository
    tags: TagRepository
    backend: str = "memory"

    async def ping(self) -> bool:
        """Return True when the backing store is reachable."""
        return True

    async def close(self) -> None:
        return None


def most_recent_first(items: Sequence[Any], *keys: str) -> list[Any]:
    return sorted(items, key=lambda item: tuple(getattr(item, key) for key in keys), reverse=True)
