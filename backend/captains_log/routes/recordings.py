"""Recording routes: audio upload and playback, the log list and tagging."""

from pathlib import Path
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from fastapi.responses import FileResponse

from captains_log.config import settings
from captains_log.exceptions import NotFoundError
from captains_log.logging_config import get_logger
from captains_log.models import Recording, User
from captains_log.repositories import Repository, get_repository
from captains_log.routes.auth import get_current_user, get_optional_user
from captains_log.schemas.recording import LogEntryListResponse, LogEntryResponse, UploadResponse
from captains_log.schemas.tag import RecordingTagsResponse, TagCreate, TagResponse
from captains_log.services.journal import load_entries
from captains_log.services.log_book import LogEntry
from captains_log.utils.file_handling import (
    AUDIO_MIME_TYPE,
    resolve_recording_path,
    save_recording_file,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/recordings", tags=["recordings"])


def to_response(entry: LogEntry) -> LogEntryResponse:
    return LogEntryResponse(
        id=entry.id,
        recorded_at=entry.recorded_at,
        transcript=entry.transcript,
        duration_ms=entry.duration_ms,
        duration=entry.duration,
        status=entry.status,
        audio_url=entry.audio_url,
        tags=entry.tags,
    )


async def get_owned_recording(
    recording_id: str, repository: Repository, current_user: User
) -> Recording:
    """Fetch a recording of the current user; other users' recordings are reported missing."""
    recording = await repository.recordings.get_by_id(recording_id)
    if recording is None or recording.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recording not found")
    return recording


@router.get("", response_model=LogEntryListResponse)
async def list_recordings(
    repository: Annotated[Repository, Depends(get_repository)],
    current_user: Annotated[User, Depends(get_current_user)],
):
    """The caller's log entries, most recent first."""
    entries = await load_entries(repository, current_user.id)
    return LogEntryListResponse(total=len(entries), items=[to_response(e) for e in entries])


@router.post("/{recording_id}/upload", response_model=UploadResponse)
async def upload_recording(
    recording_id: str,
    repository: Annotated[Repository, Depends(get_repository)],
    current_user: Annotated[Optional[User], Depends(get_optional_user)],
    audio: Optional[UploadFile] = File(None),
):
    """
    Store the audio of a recording as ``<id>.webm``.

    Audio for an id with no saved recording is accepted from anyone. Once the
    recording exists only its owner may replace the file.

    Raises:
        HTTPException: 400 if no audio file was sent
        HTTPException: 404 if the recording belongs to someone else
    """
    if audio is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No audio file uploaded")

    recording = await repository.recordings.get_by_id(recording_id)
    if recording is not None and (current_user is None or recording.user_id != current_user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recording not found")

    file_path, file_name, size = await save_recording_file(
        audio, settings.media_storage_path, recording_id
    )
    if recording is not None:
        await repository.recordings.update(recording_id, {"file_path": file_path})
    logger.info(f"Stored audio for recording {recording_id} ({size} bytes)")
    return UploadResponse(success=True, file_path=file_path, file_name=file_name, size=size)


@router.get("/{recording_id}")
async def get_recording_audio(
    recording_id: str,
    repository: Annotated[Repository, Depends(get_repository)],
):
    """
    Stream the stored audio of a recording.

    Raises:
        HTTPException: 404 if no audio is stored for the id
    """
    path = resolve_recording_path(settings.media_storage_path, recording_id)
    if path is not None:
        return FileResponse(path, media_type=AUDIO_MIME_TYPE)

    recording = await repository.recordings.get_by_id(recording_id)
    if recording is not None and recording.file_path and Path(recording.file_path).is_file():
        return FileResponse(recording.file_path, media_type=AUDIO_MIME_TYPE)
    if recording is not None and recording.audio_data:
        return Response(content=recording.audio_data, media_type=AUDIO_MIME_TYPE)

    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recording not found")


@router.delete("/{recording_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recording(
    recording_id: str,
    repository: Annotated[Repository, Depends(get_repository)],
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Delete a recording with its transcriptions, tag links and stored audio."""
    await get_owned_recording(recording_id, repository, current_user)
    await repository.recordings.delete(recording_id)

    path = resolve_recording_path(settings.media_storage_path, recording_id)
    if path is not None:
        try:
            path.unlink()
        except OSError as exc:
            logger.warning(f"Could not remove audio file {path}: {exc}")


@router.get("/{recording_id}/tags", response_model=RecordingTagsResponse)
async def get_recording_tags(
    recording_id: str,
    repository: Annotated[Repository, Depends(get_repository)],
    current_user: Annotated[User, Depends(get_current_user)],
):
    await get_owned_recording(recording_id, repository, current_user)
    tags = await repository.tags.get_by_recording(recording_id)
    return RecordingTagsResponse(
        recording_id=recording_id, tags=[TagResponse.model_validate(t) for t in tags]
    )


@router.post("/{recording_id}/tags", response_model=RecordingTagsResponse)
async def add_recording_tag(
    recording_id: str,
    payload: TagCreate,
    repository: Annotated[Repository, Depends(get_repository)],
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Tag a recording by name, creating the tag on first use."""
    await get_owned_recording(recording_id, repository, current_user)
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Tag name is required")
    try:
        await repository.tags.tag_recording(recording_id, name)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recording not found")

    tags = await repository.tags.get_by_recording(recording_id)
    return RecordingTagsResponse(
        recording_id=recording_id, tags=[TagResponse.model_validate(t) for t in tags]
    )


@router.delete("/{recording_id}/tags/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_recording_tag(
    recording_id: str,
    name: str,
    repository: Annotated[Repository, Depends(get_repository)],
    current_user: Annotated[User, Depends(get_current_user)],
):
    await get_owned_recording(recording_id, repository, current_user)
    if not await repository.tags.untag_recording(recording_id, name):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Tag not attached to recording"
        )
