"""Database migration utilities for application startup."""

import asyncio
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

import captains_log.models  # noqa: F401  registers every table on Base.metadata
from captains_log.database import Base
from captains_log.logging_config import get_logger

logger = get_logger("migrations")

ALEMBIC_INI_PATH = Path(__file__).resolve().parents[1] / "alembic.ini"


def get_alembic_config() -> Config:
    """Get Alembic configuration object.

    Returns:
        Configured Alembic Config instance
    """
    if not ALEMBIC_INI_PATH.exists():
        raise FileNotFoundError(f"alembic.ini not found at {ALEMBIC_INI_PATH}")
    return Config(str(ALEMBIC_INI_PATH))


def get_head_revision() -> str | None:
    return ScriptDirectory.from_config(get_alembic_config()).get_current_head()


async def check_migration_status(engine: AsyncEngine) -> tuple[str, str]:
    """Check current database migration status.

    Returns:
        Tuple of (current_revision, head_revision); ``"none"`` when the
        database has never been migrated, ``"unknown"`` when it cannot be read.
    """
    try:
        head = get_head_revision()
    except FileNotFoundError as e:
        logger.warning(f"Could not check migration status: {e}")
        return ("unknown", "unknown")

    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT version_num FROM alembic_version"))
            current = result.scalar_one_or_none()
    except SQLAlchemyError:
        current = None

    return (current or "none", head or "none")


async def run_migrations(engine: AsyncEngine, auto: bool = False) -> None:
    """Upgrade the database to the head revision.

    Args:
        engine: AsyncEngine instance
        auto: If True, upgrade without asking for a manual run
    """
    current, head = await check_migration_status(engine)
    if current == head:
        logger.info(f"Database is up to date (revision: {current})")
        return

    logger.info(f"Database migration needed: {current} -> {head}")
    if not auto:
        logger.warning("Auto-migration is disabled. Run 'alembic upgrade head' manually.")
        return

    # env.py drives its own event loop, so it runs off the current one
    await asyncio.to_thread(command.upgrade, get_alembic_config(), "head")
    logger.info("Database migrations completed successfully")


async def initialize_database(engine: AsyncEngine) -> None:
    """Create any missing tables straight from the models.

    Used for development and test databases that are not managed by Alembic.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema initialized")
