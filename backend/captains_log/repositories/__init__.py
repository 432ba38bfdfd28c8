"""Repository backends and the process-wide repository dependency."""

from typing import Optional

from captains_log.config import Settings, settings
from captains_log.logging_config import get_logger
from captains_log.repositories.base import (
    RecordingRepository,
    Repository,
    TagRepository,
    TranscriptionRepository,
    UserRepository,
)
from captains_log.repositories.memory import build_memory_repository
from captains_log.repositories.sql import SqlRepository, build_sql_repository

logger = get_logger(__name__)

_repository: Optional[Repository] = None


def build_repository(config: Settings) -> Repository:
    """Create the repository selected by ``config.storage_backend``."""
    if config.storage_backend == "memory":
        logger.info("Using in-memory storage backend")
        return build_memory_repository()

    from captains_log import database

    if config.database_url == database.settings.database_url:
        engine, factory = database.engine, database.AsyncSessionLocal
    else:
        engine = database.create_engine(config.database_url, echo=False, future=True)
        factory = database.create_session_factory(engine)
    logger.info(f"Using SQL storage backend ({engine.dialect.name})")
    return build_sql_repository(engine, factory)


def get_repository() -> Repository:
    """FastAPI dependency returning the shared repository instance."""
    global _repository
    if _repository is None:
        _repository = build_repository(settings)
    return _repository


__all__ = [
    "Repository",
    "UserRepository",
    "RecordingRepository",
    "TranscriptionRepository",
    "TagRepository",
    "SqlRepository",
    "build_repository",
    "build_memory_repository",
    "build_sql_repository",
    "get_repository",
]
