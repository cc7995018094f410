"""Shared model helpers.

Persisted files written by older runners store instants as epoch
milliseconds; files written by teslapoll use ISO 8601. :data:`Instant`
accepts both and always yields a timezone-aware UTC datetime.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BeforeValidator, PlainSerializer

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1_000_000_000_000


def parse_instant(value: Any) -> datetime | None:
    """Convert an epoch number (seconds **or** milliseconds) or ISO string to a UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        ts = float(value)
        if ts >= _MS_THRESHOLD:
            ts /= 1000.0
        return datetime.fromtimestamp(ts, tz=UTC)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _serialize_instant(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.astimezone(UTC).isoformat()


Instant = Annotated[
    datetime | None,
    BeforeValidator(parse_instant),
    PlainSerializer(_serialize_instant, when_used="json"),
]
"""Annotated type: epoch (s/ms) or ISO 8601 in, ISO 8601 UTC out."""
