"""In-memory repository backend.

Entities are kept as transient ORM instances in plain dictionaries. Uniqueness
and cascade rules that a relational store enforces for free are applied by
hand here so both backends behave the same.
"""

from __future__ import annotations

from typing import Any, Optional

from captains_log.exceptions import DuplicateKeyError, NotFoundError
from captains_log.models import DEFAULT_USER_SETTINGS, Recording, Tag, Transcription, User
from captains_log.repositories.base import (
    RECORDING_FIELDS,
    TRANSCRIPTION_FIELDS,
    USER_FIELDS,
    RecordingRepository,
    Repository,
    TagRepository,
    TranscriptionRepository,
    UserRepository,
    clean_attributes,
    most_recent_first,
    normalize_email,
)
from captains_log.schemas.recording import SearchHit
from captains_log.utils.time import new_id, utcnow


class MemoryStore:
    """Shared tables for the in-memory repositories."""

    def __init__(self) -> None:
        self.users: dict[str, User] = {}
        self.recordings: dict[str, Recording] = {}
        self.transcriptions: dict[str, Transcription] = {}
        self.tags: dict[str, Tag] = {}
        self.recording_tags: set[tuple[str, str]] = set()

    def delete_recording(self, recording_id: str) -> bool:
        if self.recordings.pop(recording_id, None) is None:
            return False
        for transcription_id in [
            t.id for t in self.transcriptions.values() if t.recording_id == recording_id
        ]:
            del self.transcriptions[transcription_id]
        self.recording_tags = {pair for pair in self.recording_tags if pair[0] != recording_id}
        return True


class MemoryUserRepository(UserRepository):
    def __init__(self, store: MemoryStore) -> None:
        self._store = store

    def _email_taken(self, email: str, *, exclude_id: Optional[str] = None) -> bool:
        return any(
            user.email == email and user.id != exclude_id for user in self._store.users.values()
        )

    async def create(self, attributes: dict[str, Any], id: Optional[str] = None) -> str:
        values = clean_attributes(attributes, USER_FIELDS)
        user_id = id or new_id()
        if user_id in self._store.users:
            raise DuplicateKeyError(f"User id '{user_id}' already exists")
        values["email"] = normalize_email(values["email"])
        if self._email_taken(values["email"]):
            raise DuplicateKeyError("Email already in use")

        now = utcnow()
        values.setdefault("name", values["email"].split("@")[0])
        values.setdefault("settings", dict(DEFAULT_USER_SETTINGS))
        self._store.users[user_id] = User(id=user_id, created_at=now, updated_at=now, **values)
        return user_id

    async def get_by_id(self, id: str) -> Optional[User]:
        return self._store.users.get(id)

    async def get_by_email(self, email: str) -> Optional[User]:
        email = normalize_email(email)
        return next((u for u in self._store.users.values() if u.email == email), None)

    async def get_by_reset_token(self, token: str) -> Optional[User]:
        return next((u for u in self._store.users.values() if u.reset_token == token), None)

    async def update(self, id: str, attributes: dict[str, Any]) -> bool:
        values = clean_attributes(attributes, USER_FIELDS)
        user = self._store.users.get(id)
        if user is None:
            return False
        if "email" in values:
            values["email"] = normalize_email(values["email"])
            if self._email_taken(values["email"], exclude_id=id):
                raise DuplicateKeyError("Email already in use")
        for key, value in values.items():
            setattr(user, key, value)
        user.updated_at = utcnow()
        return True

    async def delete(self, id: str) -> bool:
        if self._store.users.pop(id, None) is None:
            return False
        for recording_id in [r.id for r in self._store.recordings.values() if r.user_id == id]:
            self._store.delete_recording(recording_id)
        return True


class MemoryRecordingRepository(RecordingRepository):
    def __init__(self, store: MemoryStore) -> None:
        self._store = store

    async def create(self, attributes: dict[str, Any], id: Optional[str] = None) -> str:
        values = clean_attributes(attributes, RECORDING_FIELDS)
        recording_id = id or new_id()
        if recording_id in self._store.recordings:
            raise DuplicateKeyError(f"Recording id '{recording_id}' already exists")
        if values.get("user_id") not in self._store.users:
            raise NotFoundError("User not found")

        now = utcnow()
        values.setdefault("recorded_at", now)
        values.setdefault("duration_ms", 0)
        self._store.recordings[recording_id] = Recording(
            id=recording_id, created_at=now, updated_at=now, **values
        )
        return recording_id

    async def get_by_id(self, id: str) -> Optional[Recording]:
        return self._store.recordings.get(id)

    async def get_by_owner(self, user_id: str) -> list[Recording]:
        owned = [r for r in self._store.recordings.values() if r.user_id == user_id]
        return most_recent_first(owned, "recorded_at", "created_at")

    async def update(self, id: str, attributes: dict[str, Any]) -> bool:
        values = clean_attributes(attributes, RECORDING_FIELDS)
        recording = self._store.recordings.get(id)
        if recording is None:
            return False
        for key, value in values.items():
            setattr(recording, key, value)
        recording.updated_at = utcnow()
        return True

    async def delete(self, id: str) -> bool:
        return self._store.delete_recording(id)


class MemoryTranscriptionRepository(TranscriptionRepository):
    def __init__(self, store: MemoryStore) -> None:
        self._store = store

    async def create(self, attributes: dict[str, Any], id: Optional[str] = None) -> str:
        values = clean_attributes(attributes, TRANSCRIPTION_FIELDS)
        transcription_id = id or new_id()
        if transcription_id in self._store.transcriptions:
            raise DuplicateKeyError(f"Transcription id '{transcription_id}' already exists")
        if values.get("recording_id") not in self._store.recordings:
            raise NotFoundError("Recording not found")

        now = utcnow()
        values.setdefault("content", "")
        self._store.transcriptions[transcription_id] = Transcription(
            id=transcription_id, created_at=now, updated_at=now, **values
        )
        return transcription_id

    async def get_by_id(self, id: str) -> Optional[Transcription]:
        return self._store.transcriptions.get(id)

    async def get_by_owner(self, recording_id: str) -> list[Transcription]:
        owned = [t for t in self._store.transcriptions.values() if t.recording_id == recording_id]
        return most_recent_first(owned, "created_at")

    async def update(self, id: str, attributes: dict[str, Any]) -> bool:
        values = clean_attributes(attributes, TRANSCRIPTION_FIELDS)
        transcription = self._store.transcriptions.get(id)
        if transcription is None:
            return False
        for key, value in values.items():
            setattr(transcription, key, value)
        transcription.updated_at = utcnow()
        return True

    async def delete(self, id: str) -> bool:
        return self._store.transcriptions.pop(id, None) is not None

    async def search(self, user_id: str, text: str) -> list[SearchHit]:
        needle = text.lower()
        hits = []
        for transcription in self._store.transcriptions.values():
            recording = self._store.recordings.get(transcription.recording_id)
            if recording is None or recording.user_id != user_id:
                continue
            if needle not in (transcription.content or "").lower():
                continue
            hits.append(
                SearchHit(
                    transcription_id=transcription.id,
                    recording_id=recording.id,
                    content=transcription.content,
                    metadata=transcription.meta,
                    filename=recording.filename,
                    duration_ms=recording.duration_ms,
                    recorded_at=recording.recorded_at,
                )
            )
        return sorted(hits, key=lambda hit: hit.recorded_at, reverse=True)


class MemoryTagRepository(TagRepository):
    def __init__(self, store: MemoryStore) -> None:
        self._store = store

    async def create(self, attributes: dict[str, Any], id: Optional[str] = None) -> str:
        values = clean_attributes(attributes, frozenset({"name"}))
        tag_id = id or new_id()
        if tag_id in self._store.tags:
            raise DuplicateKeyError(f"Tag id '{tag_id}' already exists")
        if await self.get_by_name(values["name"]):
            raise DuplicateKeyError(f"Tag with name '{values['name']}' already exists")
        self._store.tags[tag_id] = Tag(id=tag_id, name=values["name"], created_at=utcnow())
        return tag_id

    async def get_by_id(self, id: str) -> Optional[Tag]:
        return self._store.tags.get(id)

    async def get_by_name(self, name: str) -> Optional[Tag]:
        return next((t for t in self._store.tags.values() if t.name == name), None)

    async def list_all(self) -> list[Tag]:
        return sorted(self._store.tags.values(), key=lambda tag: tag.name)

    async def delete(self, id: str) -> bool:
        if self._store.tags.pop(id, None) is None:
            return False
        self._store.recording_tags = {
            pair for pair in self._store.recording_tags if pair[1] != id
        }
        return True

    async def link_recording(self, recording_id: str, tag_id: str) -> None:
        if recording_id not in self._store.recordings:
            raise NotFoundError("Recording not found")
        self._store.recording_tags.add((recording_id, tag_id))

    async def unlink_recording(self, recording_id: str, tag_id: str) -> bool:
        pair = (recording_id, tag_id)
        if pair not in self._store.recording_tags:
            return False
        self._store.recording_tags.discard(pair)
        return True

    async def get_by_recording(self, recording_id: str) -> list[Tag]:
        tags = [
            self._store.tags[tag_id]
            for rec_id, tag_id in self._store.recording_tags
            if rec_id == recording_id and tag_id in self._store.tags
        ]
        return sorted(tags, key=lambda tag: tag.name)

    async def get_recordings_by_tag(self, user_id: str, name: str) -> list[Recording]:
        tag = await self.get_by_name(name)
        if tag is None:
            return []
        tagged = [
            self._store.recordings[rec_id]
            for rec_id, tag_id in self._store.recording_tags
            if tag_id == tag.id and rec_id in self._store.recordings
        ]
        owned = [r for r in tagged if r.user_id == user_id]
        return most_recent_first(owned, "recorded_at", "created_at")


def build_memory_repository() -> Repository:
    store = MemoryStore()
    return Repository(
        users=MemoryUserRepository(store),
        recordings=MemoryRecordingRepository(store),
        transcriptions=MemoryTranscriptionRepository(store),
        tags=MemoryTagRepository(store),
        backend="memory",
    )
