"""Tag listing routes."""

from typing import Annotated

from fastapi import APIRouter, Depends

from captains_log.models import User
from captains_log.repositories import Repository, get_repository
from captains_log.routes.auth import get_current_user
from captains_log.routes.recordings import to_response
from captains_log.schemas.recording import LogEntryListResponse
from captains_log.schemas.tag import TagListResponse, TagResponse
from captains_log.services.log_book import LogEntry

router = APIRouter(prefix="/api/tags", tags=["tags"])


@router.get("", response_model=TagListResponse)
async def list_tags(
    repository: Annotated[Repository, Depends(get_repository)],
    current_user: Annotated[User, Depends(get_current_user)],
):
    """List all tags by name."""
    tags = await repository.tags.list_all()
    return TagListResponse(total=len(tags), items=[TagResponse.model_validate(t) for t in tags])


@router.get("/{name}/recordings", response_model=LogEntryListResponse)
async def list_tagged_recordings(
    name: str,
    repository: Annotated[Repository, Depends(get_repository)],
    current_user: Annotated[User, Depends(get_current_user)],
):
    """The caller's recordings carrying the tag, most recent first."""
    entries = []
    for recording in await repository.tags.get_recordings_by_tag(current_user.id, name):
        transcription = await repository.transcriptions.get_by_recording(recording.id)
        tags = await repository.tags.get_by_recording(recording.id)
        entries.append(LogEntry.from_recording(recording, transcription, tags))
    return LogEntryListResponse(total=len(entries), items=[to_response(e) for e in entries])
