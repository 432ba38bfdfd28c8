"""Audio capture state machine.

Chunks arrive from the client while a capture is active; stopping hands back
everything collected together with the measured duration.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import AsyncIterable, Callable, Optional

from captains_log.exceptions import RecordingError
from captains_log.utils.time import utcnow

AUDIO_MIME_TYPE = "audio/webm"


@dataclass
class CapturedAudio:
    chunks: list[bytes]
    started_at: datetime
    duration_ms: int
    mime_type: str = AUDIO_MIME_TYPE

    @property
    def size(self) -> int:
        return sum(len(chunk) for chunk in self.chunks)

    def assemble(self) -> bytes:
        """Concatenate the chunks into one payload."""
        if self.size == 0:
            raise RecordingError("No audio was captured")
        return b"".join(self.chunks)

    def filename(self) -> str:
        stamp = self.started_at.isoformat(timespec="milliseconds").replace(":", "-").replace(".", "-")
        return f"recording-{stamp}Z.webm"


@dataclass
class AudioCapture:
    """One capture at a time: Idle -> Recording -> Idle."""

    clock: Callable[[], float] = time.monotonic
    wall_clock: Callable[[], datetime] = utcnow
    _chunks: list[bytes] = field(default_factory=list, init=False)
    _started: Optional[float] = field(default=None, init=False)
    _started_at: Optional[datetime] = field(default=None, init=False)

    @property
    def is_recording(self) -> bool:
        return self._started is not None

    def start(self) -> None:
        if self.is_recording:
            raise RecordingError("Recording already in progress")
        self._chunks = []
        self._started = self.clock()
        self._started_at = self.wall_clock()

    def feed(self, chunk: bytes) -> None:
        if not self.is_recording:
            raise RecordingError("No recording in progress")
        if chunk:
            self._chunks.append(bytes(chunk))

    async def consume(self, stream: AsyncIterable[bytes]) -> None:
        """Feed chunks from ``stream`` until it ends or the capture is stopped."""
        async for chunk in stream:
            if not self.is_recording:
                break
            self.feed(chunk)

    def stop(self) -> CapturedAudio:
        if not self.is_recording:
            raise RecordingError("No recording in progress")
        elapsed = max(self.clock() - self._started, 0)
        captured = CapturedAudio(
            chunks=self._chunks,
            started_at=self._started_at,
            duration_ms=int(round(elapsed * 1000)),
        )
        self._chunks = []
        self._started = None
        self._started_at = None
        return captured
