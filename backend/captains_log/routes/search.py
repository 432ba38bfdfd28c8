"""Transcript search route."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from captains_log.exceptions import StorageFailure
from captains_log.models import User
from captains_log.repositories import Repository, get_repository
from captains_log.routes.auth import get_current_user
from captains_log.routes.recordings import to_response
from captains_log.schemas.recording import SearchResponse
from captains_log.services.journal import load_entries
from captains_log.services.log_book import LogEntry

router = APIRouter(prefix="/api/search", tags=["search"])


@router.get("", response_model=SearchResponse)
async def search_recordings(
    repository: Annotated[Repository, Depends(get_repository)],
    current_user: Annotated[User, Depends(get_current_user)],
    q: Annotated[str, Query(max_length=200)] = "",
):
    """
    Case-insensitive substring search over the caller's transcripts.

    A blank query returns every entry.
    """
    try:
        if not q.strip():
            entries = await load_entries(repository, current_user.id)
        else:
            hits = await repository.transcriptions.search(current_user.id, q)
            entries = [LogEntry.from_search_hit(hit) for hit in hits]
    except StorageFailure as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.message)

    return SearchResponse(query=q, total=len(entries), items=[to_response(e) for e in entries])
