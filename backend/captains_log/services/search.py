"""Debounced transcript search with a client-side fallback."""

import asyncio
from typing import Callable, Optional

from captains_log.config import settings
from captains_log.logging_config import get_logger
from captains_log.repositories.base import Repository
from captains_log.services.log_book import LogBook, LogEntry

logger = get_logger(__name__)


class SearchController:
    """
    Run searches as the user types.

    Each keystroke restarts the debounce timer, so only the last input of a
    burst reaches the server. An empty server answer or a storage error falls
    back to filtering the log book locally; errors are never raised to callers.
    """

    def __init__(
        self,
        repository: Repository,
        log_book: LogBook,
        user_id: str,
        debounce: Optional[float] = None,
        on_results: Optional[Callable[[list[LogEntry]], None]] = None,
    ) -> None:
        self.repository = repository
        self.log_book = log_book
        self.user_id = user_id
        self.debounce = settings.search_debounce_seconds if debounce is None else debounce
        self.on_results = on_results
        self.results: list[LogEntry] = []
        self._pending: Optional[asyncio.Task] = None

    def on_input(self, text: str) -> asyncio.Task:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = asyncio.create_task(self._debounced(text))
        return self._pending

    async def wait(self) -> Optional[list[LogEntry]]:
        """Wait for the latest scheduled query; None when it was superseded."""
        if self._pending is None:
            return None
        try:
            return await self._pending
        except asyncio.CancelledError:
            return None

    async def _debounced(self, text: str) -> list[LogEntry]:
        await asyncio.sleep(self.debounce)
        return await self.run_query(text)

    async def run_query(self, text: str) -> list[LogEntry]:
        if not text or not text.strip():
            results = self.log_book.entries
        else:
            results = await self._server_search(text)
            if not results:
                results = self.log_book.filter(text)

        self.results = results
        if self.on_results is not None:
            self.on_results(results)
        return results

    async def _server_search(self, text: str) -> list[LogEntry]:
        try:
            hits = await self.repository.transcriptions.search(self.user_id, text)
        except Exception:
            logger.exception("Server search failed, filtering locally")
            return []
        return [LogEntry.from_search_hit(hit) for hit in hits]
