"""Relational repository backend (SQLite via aiosqlite, PostgreSQL via asyncpg)."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional

from sqlalchemy import delete, insert, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from captains_log.exceptions import DuplicateKeyError, NotFoundError, StorageFailure
from captains_log.logging_config import get_logger
from captains_log.models import (
    DEFAULT_USER_SETTINGS,
    Recording,
    Tag,
    Transcription,
    User,
    recording_tags,
)
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
    normalize_email,
)
from captains_log.schemas.recording import SearchHit
from captains_log.utils.time import new_id, utcnow

logger = get_logger(__name__)


def like_pattern(term: str) -> str:
    """Build a LIKE pattern matching ``term`` literally anywhere in the column."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class _SqlBase:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        """Open a session and translate driver errors into domain errors."""
        async with self._session_factory() as session:
            try:
                yield session
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateKeyError(f"Constraint violated: {exc.orig}") from exc
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.error("Storage operation failed: %s", exc)
                raise StorageFailure(str(exc)) from exc
            except OSError as exc:
                logger.error("Storage connection failed: %s", exc)
                raise StorageFailure(str(exc)) from exc

    async def _update(self, model, id: str, values: dict[str, Any]) -> bool:
        async with self._session() as session:
            instance = await session.get(model, id)
            if instance is None:
                return False
            for key, value in values.items():
                setattr(instance, key, value)
            instance.updated_at = utcnow()
            await session.commit()
            return True


class SqlUserRepository(_SqlBase, UserRepository):
    async def create(self, attributes: dict[str, Any], id: Optional[str] = None) -> str:
        values = clean_attributes(attributes, USER_FIELDS)
        user_id = id or new_id()
        values["email"] = normalize_email(values["email"])
        values.setdefault("name", values["email"].split("@")[0])
        values.setdefault("settings", dict(DEFAULT_USER_SETTINGS))

        async with self._session() as session:
            if await session.get(User, user_id) is not None:
                raise DuplicateKeyError(f"User id '{user_id}' already exists")
            result = await session.execute(select(User.id).where(User.email == values["email"]))
            if result.scalar_one_or_none() is not None:
                raise DuplicateKeyError("Email already in use")
            session.add(User(id=user_id, **values))
            await session.commit()
        return user_id

    async def get_by_id(self, id: str) -> Optional[User]:
        async with self._session() as session:
            return await session.get(User, id)

    async def get_by_email(self, email: str) -> Optional[User]:
        async with self._session() as session:
            result = await session.execute(select(User).where(User.email == normalize_email(email)))
            return result.scalar_one_or_none()

    async def get_by_reset_token(self, token: str) -> Optional[User]:
        async with self._session() as session:
            result = await session.execute(select(User).where(User.reset_token == token))
            return result.scalars().first()

    async def update(self, id: str, attributes: dict[str, Any]) -> bool:
        values = clean_attributes(attributes, USER_FIELDS)
        if "email" in values:
            values["email"] = normalize_email(values["email"])
            async with self._session() as session:
                result = await session.execute(
                    select(User.id).where(User.email == values["email"], User.id != id)
                )
                if result.scalar_one_or_none() is not None:
                    raise DuplicateKeyError("Email already in use")
        return await self._update(User, id, values)

    async def delete(self, id: str) -> bool:
        owned = select(Recording.id).where(Recording.user_id == id)
        async with self._session() as session:
            await session.execute(delete(Transcription).where(Transcription.recording_id.in_(owned)))
            await session.execute(
                delete(recording_tags).where(recording_tags.c.recording_id.in_(owned))
            )
            await session.execute(delete(Recording).where(Recording.user_id == id))
            result = await session.execute(delete(User).where(User.id == id))
            await session.commit()
            return result.rowcount > 0


class SqlRecordingRepository(_SqlBase, RecordingRepository):
    async def create(self, attributes: dict[str, Any], id: Optional[str] = None) -> str:
        values = clean_attributes(attributes, RECORDING_FIELDS)
        recording_id = id or new_id()
        values.setdefault("recorded_at", utcnow())

        async with self._session() as session:
            if await session.get(Recording, recording_id) is not None:
                raise DuplicateKeyError(f"Recording id '{recording_id}' already exists")
            if await session.get(User, values.get("user_id")) is None:
                raise NotFoundError("User not found")
            session.add(Recording(id=recording_id, **values))
            await session.commit()
        return recording_id

    async def get_by_id(self, id: str) -> Optional[Recording]:
        async with self._session() as session:
            return await session.get(Recording, id)

    async def get_by_owner(self, user_id: str) -> list[Recording]:
        async with self._session() as session:
            result = await session.execute(
                select(Recording)
                .where(Recording.user_id == user_id)
                .order_by(Recording.recorded_at.desc(), Recording.created_at.desc())
            )
            return list(result.scalars().all())

    async def update(self, id: str, attributes: dict[str, Any]) -> bool:
        return await self._update(Recording, id, clean_attributes(attributes, RECORDING_FIELDS))

    async def delete(self, id: str) -> bool:
        async with self._session() as session:
            await session.execute(delete(Transcription).where(Transcription.recording_id == id))
            await session.execute(delete(recording_tags).where(recording_tags.c.recording_id == id))
            result = await session.execute(delete(Recording).where(Recording.id == id))
            await session.commit()
            return result.rowcount > 0


class SqlTranscriptionRepository(_SqlBase, TranscriptionRepository):
    async def create(self, attributes: dict[str, Any], id: Optional[str] = None) -> str:
        values = clean_attributes(attributes, TRANSCRIPTION_FIELDS)
        transcription_id = id or new_id()
        values.setdefault("content", "")

        async with self._session() as session:
            if await session.get(Transcription, transcription_id) is not None:
                raise DuplicateKeyError(f"Transcription id '{transcription_id}' already exists")
            if await session.get(Recording, values.get("recording_id")) is None:
                raise NotFoundError("Recording not found")
            session.add(Transcription(id=transcription_id, **values))
            await session.commit()
        return transcription_id

    async def get_by_id(self, id: str) -> Optional[Transcription]:
        async with self._session() as session:
            return await session.get(Transcription, id)

    async def get_by_owner(self, recording_id: str) -> list[Transcription]:
        async with self._session() as session:
            result = await session.execute(
                select(Transcription)
                .where(Transcription.recording_id == recording_id)
                .order_by(Transcription.created_at.desc())
            )
            return list(result.scalars().all())

    async def update(self, id: str, attributes: dict[str, Any]) -> bool:
        values = clean_attributes(attributes, TRANSCRIPTION_FIELDS)
        return await self._update(Transcription, id, values)

    async def delete(self, id: str) -> bool:
        async with self._session() as session:
            result = await session.execute(delete(Transcription).where(Transcription.id == id))
            await session.commit()
            return result.rowcount > 0

    async def search(self, user_id: str, text: str) -> list[SearchHit]:
        stmt = (
            select(Transcription, Recording)
            .join(Recording, Transcription.recording_id == Recording.id)
            .where(Recording.user_id == user_id)
            .where(Transcription.content.ilike(like_pattern(text), escape="\\"))
            .order_by(Recording.recorded_at.desc(), Recording.created_at.desc())
        )
        async with self._session() as session:
            rows = (await session.execute(stmt)).all()
        return [
            SearchHit(
                transcription_id=transcription.id,
                recording_id=recording.id,
                content=transcription.content,
                metadata=transcription.meta,
                filename=recording.filename,
                duration_ms=recording.duration_ms,
                recorded_at=recording.recorded_at,
            )
            for transcription, recording in rows
        ]


class SqlTagRepository(_SqlBase, TagRepository):
    async def create(self, attributes: dict[str, Any], id: Optional[str] = None) -> str:
        values = clean_attributes(attributes, frozenset({"name"}))
        tag_id = id or new_id()
        async with self._session() as session:
            if await session.get(Tag, tag_id) is not None:
                raise DuplicateKeyError(f"Tag id '{tag_id}' already exists")
            result = await session.execute(select(Tag.id).where(Tag.name == values["name"]))
            if result.scalar_one_or_none() is not None:
                raise DuplicateKeyError(f"Tag with name '{values['name']}' already exists")
            session.add(Tag(id=tag_id, name=values["name"]))
            await session.commit()
        return tag_id

    async def get_by_id(self, id: str) -> Optional[Tag]:
        async with self._session() as session:
            return await session.get(Tag, id)

    async def get_by_name(self, name: str) -> Optional[Tag]:
        async with self._session() as session:
            result = await session.execute(select(Tag).where(Tag.name == name))
            return result.scalar_one_or_none()

    async def list_all(self) -> list[Tag]:
        async with self._session() as session:
            result = await session.execute(select(Tag).order_by(Tag.name))
            return list(result.scalars().all())

    async def delete(self, id: str) -> bool:
        async with self._session() as session:
            await session.execute(delete(recording_tags).where(recording_tags.c.tag_id == id))
            result = await session.execute(delete(Tag).where(Tag.id == id))
            await session.commit()
            return result.rowcount > 0

    async def link_recording(self, recording_id: str, tag_id: str) -> None:
        async with self._session() as session:
            if await session.get(Recording, recording_id) is None:
                raise NotFoundError("Recording not found")
            existing = await session.execute(
                select(recording_tags.c.tag_id).where(
                    recording_tags.c.recording_id == recording_id,
                    recording_tags.c.tag_id == tag_id,
                )
            )
            if existing.first() is None:
                await session.execute(
                    insert(recording_tags).values(recording_id=recording_id, tag_id=tag_id)
                )
                await session.commit()

    async def unlink_recording(self, recording_id: str, tag_id: str) -> bool:
        async with self._session() as session:
            result = await session.execute(
                delete(recording_tags).where(
                    recording_tags.c.recording_id == recording_id,
                    recording_tags.c.tag_id == tag_id,
                )
            )
            await session.commit()
            return result.rowcount > 0

    async def get_by_recording(self, recording_id: str) -> list[Tag]:
        async with self._session() as session:
            result = await session.execute(
                select(Tag)
                .join(recording_tags, Tag.id == recording_tags.c.tag_id)
                .where(recording_tags.c.recording_id == recording_id)
                .order_by(Tag.name)
            )
            return list(result.scalars().all())

    async def get_recordings_by_tag(self, user_id: str, name: str) -> list[Recording]:
        async with self._session() as session:
            result = await session.execute(
                select(Recording)
                .join(recording_tags, Recording.id == recording_tags.c.recording_id)
                .join(Tag, Tag.id == recording_tags.c.tag_id)
                .where(Recording.user_id == user_id, Tag.name == name)
                .order_by(Recording.recorded_at.desc(), Recording.created_at.desc())
            )
            return list(result.scalars().all())


@dataclass
class SqlRepository(Repository):
    engine: Optional[AsyncEngine] = None

    async def ping(self) -> bool:
        if self.engine is None:
            return False
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as exc:
            logger.error(f"Database health check failed: {exc}")
            return False
        return True

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()


def build_sql_repository(
    engine: AsyncEngine, session_factory: async_sessionmaker[AsyncSession]
) -> SqlRepository:
    return SqlRepository(
        users=SqlUserRepository(session_factory),
        recordings=SqlRecordingRepository(session_factory),
        transcriptions=SqlTranscriptionRepository(session_factory),
        tags=SqlTagRepository(session_factory),
        backend="sql",
        engine=engine,
    )
