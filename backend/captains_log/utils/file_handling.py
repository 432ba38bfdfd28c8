"""File handling utilities for recording uploads and storage."""

import re
from pathlib import Path
from typing import Optional, Tuple

import aiofiles
from fastapi import HTTPException, UploadFile, status

AUDIO_EXTENSION = ".webm"
AUDIO_MIME_TYPE = "audio/webm"

# Maximum upload size: 100MB
MAX_FILE_SIZE = 100 * 1024 * 1024

_SAFE_ID = re.compile(r"^[A-Za-z0-9_-]+$")


def recording_file_name(recording_id: str) -> str:
    """
    Build the on-disk file name for a recording.

    Raises:
        HTTPException: If the identifier could escape the storage directory
    """
    if not _SAFE_ID.fullmatch(recording_id or ""):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid recording id",
        )
    return f"{recording_id}{AUDIO_EXTENSION}"


def resolve_recording_path(storage_path: str, recording_id: str) -> Optional[Path]:
    """Return the stored audio file for a recording, or None when absent."""
    path = Path(storage_path) / recording_file_name(recording_id)
    return path if path.is_file() else None


def validate_file_size(file_size: int) -> Tuple[bool, Optional[str]]:
    if file_size > MAX_FILE_SIZE:
        max_mb = MAX_FILE_SIZE // (1024 * 1024)
        return False, f"File size exceeds maximum allowed ({max_mb}MB)"
    return True, None


async def save_recording_file(file: UploadFile, storage_path: str, recording_id: str) -> Tuple[str, str, int]:
    """
    Save an uploaded recording as ``<storage_path>/<recording_id>.webm``.

    Args:
        file: FastAPI UploadFile object
        storage_path: Base storage directory path
        recording_id: Identifier of the recording the audio belongs to

    Returns:
        Tuple of (saved_file_path, file_name, file_size)

    Raises:
        HTTPException: If validation fails or file cannot be saved
    """
    file_name = recording_file_name(recording_id)
    directory = Path(storage_path)
    directory.mkdir(parents=True, exist_ok=True)
    destination = directory / file_name

    content = await file.read()
    is_valid, error_msg = validate_file_size(len(content))
    if not is_valid:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=error_msg,
        )

    try:
        async with aiofiles.open(destination, "wb") as buffer:
            await buffer.write(content)
    except OSError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to save file: {str(e)}",
        )

    return str(destination), file_name, len(content)
