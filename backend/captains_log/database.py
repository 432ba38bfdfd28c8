"""Database engine, session factory and declarative base."""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from captains_log.config import settings

Base = declarative_base()


def create_engine(database_url: str, **kwargs) -> AsyncEngine:
    """Create an async engine; SQLite engines enforce foreign keys."""
    engine = create_async_engine(database_url, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = create_engine(settings.database_url, echo=False, future=True)
AsyncSessionLocal = create_session_factory(engine)


__all__ = [
    "Base",
    "engine",
    "AsyncSessionLocal",
    "create_engine",
    "create_session_factory",
]
