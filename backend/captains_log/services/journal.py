"""Loading and deleting journal entries across the server and the local cache."""

from typing import Optional

from captains_log.exceptions import CaptainsLogError
from captains_log.logging_config import get_logger
from captains_log.repositories.base import Repository
from captains_log.services.local_state import LocalStateStore
from captains_log.services.log_book import LogBook, LogEntry

logger = get_logger(__name__)


async def load_entries(repository: Repository, user_id: str) -> list[LogEntry]:
    """Build the user's log entries, most recent first, from stored recordings."""
    entries = []
    for recording in await repository.recordings.get_by_owner(user_id):
        transcription = await repository.transcriptions.get_by_recording(recording.id)
        tags = await repository.tags.get_by_recording(recording.id)
        entries.append(LogEntry.from_recording(recording, transcription, tags))
    return entries


class Journal:
    def __init__(
        self,
        repository: Repository,
        log_book: LogBook,
        local_state: Optional[LocalStateStore] = None,
    ) -> None:
        self.repository = repository
        self.log_book = log_book
        self.local_state = local_state

    async def load(self, user_id: str) -> list[LogEntry]:
        """Load from the repository; fall back to the cached list when it has nothing."""
        try:
            entries = await load_entries(self.repository, user_id)
        except CaptainsLogError as exc:
            logger.error(f"Loading logs from storage failed, using cache: {exc.message}")
            entries = []

        if entries:
            logger.info(f"Loaded {len(entries)} logs from storage")
        else:
            entries = self._cached_entries()
            logger.info(f"Loaded {len(entries)} logs from local cache")
        self.log_book.load(entries)
        return entries

    async def delete(self, entry_id: str) -> bool:
        """Delete from storage (failures tolerated), then from the log book."""
        try:
            await self.repository.recordings.delete(entry_id)
        except CaptainsLogError as exc:
            logger.error(f"Failed to delete {entry_id} from storage: {exc.message}")
        return self.log_book.remove(entry_id)

    async def clear_all(self, user_id: str) -> bool:
        ok = True
        try:
            for recording in await self.repository.recordings.get_by_owner(user_id):
                await self.repository.recordings.delete(recording.id)
        except CaptainsLogError as exc:
            logger.error(f"Failed to clear stored logs: {exc.message}")
            ok = False
        self.log_book.clear()
        return ok

    def _cached_entries(self) -> list[LogEntry]:
        if self.local_state is None:
            return []
        entries = []
        for item in self.local_state.load_logs():
            try:
                entries.append(LogEntry.from_dict(item))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning(f"Skipping malformed cached log entry: {exc}")
        return entries
