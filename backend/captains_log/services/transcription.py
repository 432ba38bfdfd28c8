"""Speech-to-text client for recorded audio.

Wraps the OpenAI audio transcription endpoint. ``transcribe`` never raises:
every failure is turned into a :class:`TranscriptionResult` carrying
placeholder text that can be shown to the user in place of a transcript.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Optional

import openai
from openai import AsyncOpenAI

from captains_log.config import settings
from captains_log.exceptions import TranscriptionFailure
from captains_log.logging_config import get_logger

logger = get_logger(__name__)

MISSING_KEY_PLACEHOLDER = "Transcription unavailable - Please add your OpenAI API key in Settings."
FAILURE_PLACEHOLDER = (
    "Transcription failed. This is a placeholder text until the actual transcription can be processed."
)

DEFAULT_FILENAME = "recording.webm"
AUDIO_MIME_TYPE = "audio/webm"


@dataclass
class TranscriptionResult:
    text: str
    metadata: dict[str, Any] = field(default_factory=dict)
    error: bool = False
    error_kind: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def from_failure(cls, failure: TranscriptionFailure) -> "TranscriptionResult":
        placeholder = (
            MISSING_KEY_PLACEHOLDER if failure.kind == "missing_credentials" else FAILURE_PLACEHOLDER
        )
        return cls(
            text=placeholder,
            metadata={"error_kind": failure.kind, "message": failure.message},
            error=True,
            error_kind=failure.kind,
            message=failure.message,
        )


class TranscriptionClient:
    """Send audio to the speech-to-text service; one attempt per call."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        response_format: Optional[str] = None,
    ) -> None:
        self.model = model or settings.transcription_model
        self.response_format = response_format or settings.transcription_response_format
        self.set_api_key(api_key)

    def set_api_key(self, api_key: Optional[str]) -> None:
        self.api_key = (api_key or "").strip() or None
        self.client = AsyncOpenAI(api_key=self.api_key, max_retries=0) if self.api_key else None

    async def transcribe(self, audio: bytes, filename: Optional[str] = None) -> TranscriptionResult:
        started = time.monotonic()
        try:
            text = await self._request(audio, filename or DEFAULT_FILENAME)
        except TranscriptionFailure as failure:
            logger.warning(f"Transcription failed ({failure.kind}): {failure.message}")
            return TranscriptionResult.from_failure(failure)

        processing_time = round(time.monotonic() - started, 3)
        logger.info(f"Transcribed {len(audio)} bytes in {processing_time}s")
        return TranscriptionResult(
            text=text,
            metadata={"model": self.model, "processing_time": processing_time},
        )

    async def _request(self, audio: bytes, filename: str) -> str:
        if self.client is None:
            raise TranscriptionFailure("missing_credentials", "OpenAI API key is not configured")

        try:
            response = await self.client.audio.transcriptions.create(
                file=(filename, audio, AUDIO_MIME_TYPE),
                model=self.model,
                response_format=self.response_format,
            )
        except openai.APIConnectionError as e:
            raise TranscriptionFailure("transport", f"Could not reach transcription service: {e}") from e
        except openai.APIStatusError as e:
            raise TranscriptionFailure(
                "service", f"Transcription service returned {e.status_code}: {e.message}"
            ) from e
        except openai.OpenAIError as e:
            raise TranscriptionFailure("service", str(e)) from e

        text = response if isinstance(response, str) else getattr(response, "text", None)
        if text is None:
            raise TranscriptionFailure("service", "Transcription response did not include text")
        return text.strip()
