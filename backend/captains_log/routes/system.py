"""Health check and client shell routes."""

from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import FileResponse, JSONResponse

from captains_log import __version__
from captains_log.config import settings
from captains_log.logging_config import get_logger
from captains_log.repositories import Repository, get_repository
from captains_log.schemas.recording import HealthResponse
from captains_log.utils.time import utcnow

logger = get_logger(__name__)

router = APIRouter(tags=["system"])
# Registered last so it never shadows an API route
shell_router = APIRouter(tags=["client"])


@router.get("/api/health", response_model=HealthResponse)
async def health_check(repository: Annotated[Repository, Depends(get_repository)]):
    """Liveness check that also queries storage."""
    db_status = "healthy" if await repository.ping() else "unhealthy"
    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        version=__version__,
        environment=settings.environment,
        database=db_status,
        timestamp=utcnow(),
    )


@shell_router.get("/{full_path:path}", include_in_schema=False)
async def serve_client_shell(full_path: str):
    """Serve the single-page client for any non-API path."""
    if full_path.startswith("api/"):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": "Not Found"})

    shell_root = Path(settings.client_shell_path)
    index = shell_root / "index.html"
    asset = (shell_root / full_path).resolve() if full_path else index
    if full_path and asset.is_file() and shell_root.resolve() in asset.parents:
        return FileResponse(asset)
    if index.is_file():
        return FileResponse(index)
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": "Client application has not been built"},
    )
