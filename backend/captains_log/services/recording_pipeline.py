"""Turn a finished capture into a persisted, transcribed log entry.

The entry is shown immediately with a pending status. Transcription runs in a
background task and replaces the entry in place when it completes. A failed
transcription never removes the recording; the entry keeps its audio and
shows placeholder text instead.
"""

import asyncio
from typing import Optional

from captains_log.logging_config import get_logger
from captains_log.models.transcription import TranscriptionStatus
from captains_log.repositories.base import Repository
from captains_log.services.capture import CapturedAudio
from captains_log.services.log_book import LogBook, LogEntry, audio_url_for
from captains_log.services.transcription import TranscriptionClient, TranscriptionResult
from captains_log.utils.time import new_id

logger = get_logger(__name__)

PENDING_TEXT = "Transcription in progress..."
UNEXPECTED_FAILURE_TEXT = (
    "Transcription failed. The audio was recorded successfully and can still be played back."
)


class RecordingPipeline:
    def __init__(
        self,
        repository: Repository,
        transcriber: TranscriptionClient,
        log_book: LogBook,
        user_id: str,
    ) -> None:
        self.repository = repository
        self.transcriber = transcriber
        self.log_book = log_book
        self.user_id = user_id
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def finish(self, captured: CapturedAudio) -> LogEntry:
        """
        Persist a capture, show it as pending and start transcribing it.

        Raises:
            RecordingError: The capture holds no audio; nothing is persisted
        """
        audio = captured.assemble()
        recording_id = new_id()
        filename = captured.filename()

        stored = await self._persist_recording(recording_id, filename, captured, audio)
        transcription_id = (
            await self._persist_pending_transcription(recording_id) if stored else None
        )
        entry = LogEntry(
            id=recording_id,
            recorded_at=captured.started_at,
            transcript=PENDING_TEXT,
            duration_ms=captured.duration_ms,
            status=TranscriptionStatus.PENDING,
            audio_url=audio_url_for(recording_id) if stored else None,
            # Unsaved audio stays on the entry so it can still be played back
            audio=None if stored else audio,
        )
        self.log_book.add(entry)

        task = asyncio.create_task(
            self._transcribe(entry, audio, filename, transcription_id, stored)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return entry

    async def drain(self) -> None:
        """Wait for every in-flight transcription to settle."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _persist_recording(
        self, recording_id: str, filename: str, captured: CapturedAudio, audio: bytes
    ) -> bool:
        try:
            await self.repository.recordings.create(
                {
                    "user_id": self.user_id,
                    "filename": filename,
                    "duration_ms": captured.duration_ms,
                    "audio_data": audio,
                    "recorded_at": captured.started_at,
                },
                id=recording_id,
            )
        except Exception:
            logger.exception(f"Could not save recording {recording_id}; keeping its audio in memory")
            return False
        return True

    async def _persist_pending_transcription(self, recording_id: str) -> Optional[str]:
        try:
            return await self.repository.transcriptions.create(
                {
                    "recording_id": recording_id,
                    "content": PENDING_TEXT,
                    "meta": {"status": TranscriptionStatus.PENDING.value},
                }
            )
        except Exception:
            logger.exception(f"Could not save pending transcription for {recording_id}")
            return None

    async def _transcribe(
        self,
        entry: LogEntry,
        audio: bytes,
        filename: str,
        transcription_id: Optional[str],
        stored: bool,
    ) -> None:
        try:
            result = await self.transcriber.transcribe(audio, filename)
        except Exception as exc:
            logger.exception(f"Transcription of {entry.id} crashed")
            result = TranscriptionResult(
                text=UNEXPECTED_FAILURE_TEXT, error=True, error_kind="service", message=str(exc)
            )

        status = TranscriptionStatus.ERROR if result.error else TranscriptionStatus.COMPLETED
        metadata = {**result.metadata, "status": status.value}
        if result.error:
            metadata["message"] = result.message

        values = {"content": result.text, "meta": metadata}
        try:
            if transcription_id:
                await self.repository.transcriptions.update(transcription_id, values)
            elif stored:
                # The pending row was never written; store the outcome as a new row
                await self.repository.transcriptions.create({"recording_id": entry.id, **values})
        except Exception:
            logger.exception(f"Could not store transcription for {entry.id}")

        current = self.log_book.get(entry.id) or entry
        self.log_book.replace(current.with_changes(transcript=result.text, status=status))
        logger.info(f"Recording {entry.id} transcription {status.value}")
