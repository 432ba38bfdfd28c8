"""FastAPI application."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from captains_log import __version__
from captains_log.config import settings
from captains_log.logging_config import get_logger, setup_logging
from captains_log.middleware import RateLimitMiddleware, SecurityHeadersMiddleware
from captains_log.repositories import SqlRepository, get_repository
from captains_log.routes import auth as auth_module
from captains_log.routes import recordings as recordings_module
from captains_log.routes import search as search_module
from captains_log.routes import system as system_module
from captains_log.routes import tags as tags_module

# Initialize logging
setup_logging()
logger = get_logger("main")


async def prepare_storage(repository) -> None:
    """Check the schema of a SQL store; create it outside production when it is missing."""
    if not isinstance(repository, SqlRepository) or repository.engine is None:
        return

    from captains_log.migrations_utils import (
        check_migration_status,
        initialize_database,
        run_migrations,
    )

    current_rev, head_rev = await check_migration_status(repository.engine)
    logger.info(f"Database migration status: {current_rev} (head: {head_rev})")

    if current_rev == head_rev:
        return
    if settings.is_production:
        await run_migrations(repository.engine, auto=settings.auto_migrate)
    else:
        await initialize_database(repository.engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown."""
    logger.info("Starting Captain's Log")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Storage backend: {settings.storage_backend}")
    logger.info(f"CORS origins: {settings.cors_origins_list}")
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY is not set; transcriptions will use placeholder text")

    repository = get_repository()
    await prepare_storage(repository)
    app.state.repository = repository

    yield

    logger.info("Shutting down Captain's Log")
    await repository.close()


app = FastAPI(
    title="Captain's Log",
    description="Voice journal with speech-to-text transcription",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(SecurityHeadersMiddleware)

if not settings.is_testing:
    app.add_middleware(
        RateLimitMiddleware,
        exclude_paths=["/api/health", "/docs", "/openapi.json", "/redoc"],
    )

app.include_router(system_module.router)
app.include_router(auth_module.router)
app.include_router(recordings_module.router)
app.include_router(search_module.router)
app.include_router(tags_module.router)
# Must stay last: it matches every path
app.include_router(system_module.shell_router)


def run() -> None:
    """Console entry point."""
    import uvicorn

    uvicorn.run("captains_log.main:app", host=settings.host, port=settings.port)
