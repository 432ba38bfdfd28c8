"""Time helpers.

All persisted timestamps are naive UTC datetimes.
"""

import uuid
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    """Generate an opaque entity identifier."""
    return str(uuid.uuid4())


def format_duration(duration_ms: int | None) -> str:
    """Format a millisecond duration as HH:MM:SS."""
    total_seconds = max(int(duration_ms or 0), 0) // 1000
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
