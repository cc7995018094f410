"""Append-only JSON Lines log of poll outcomes.

One line per tick::

    {"ts": ..., "soc_percent": 81, "is_charging": false, ..., "awake_via": "none"}
    {"ts": ..., "skipped": "quiet_window", "detail": "00:00-07:30"}
    {"ts": ..., "error": "...", "outcome": "timeout", "attempts": 6}
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from teslapoll._storage import append_json_line
from teslapoll.models.outcome import Fatal, PollOutcome, QuietBlocked, QuotaBlocked, Success, Timeout

_logger = logging.getLogger(__name__)


def _format_ts(ts: datetime) -> str:
    return ts.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_log_record(outcome: PollOutcome, *, ts: datetime, api_region: str) -> dict[str, Any]:
    """Return the log line for *outcome*."""
    record: dict[str, Any] = {"ts": _format_ts(ts)}

    if isinstance(outcome, Success):
        snapshot = outcome.snapshot
        record.update(
            soc_percent=snapshot.soc_percent,
            is_charging=snapshot.is_charging,
            charging_state=snapshot.charging_state or None,
            range_km=snapshot.range_km,
            odometer_km=snapshot.odometer_km,
            awake_via="wake" if outcome.woke else "none",
            api_region=api_region,
            online_state=snapshot.online_state or None,
        )
    elif isinstance(outcome, QuietBlocked):
        record.update(skipped="quiet_window", detail=outcome.window)
    elif isinstance(outcome, QuotaBlocked):
        record.update(skipped="wake_quota", detail=f"{outcome.count}/{outcome.max_per_day}")
    elif isinstance(outcome, Timeout):
        record.update(
            error=f"vehicle did not wake after {outcome.attempts} attempts",
            outcome=outcome.kind.value,
            attempts=outcome.attempts,
        )
    elif isinstance(outcome, Fatal):
        record.update(error=str(outcome.error) or type(outcome.error).__name__, outcome=outcome.kind.value)
    else:
        raise TypeError(f"Unsupported outcome: {outcome!r}")
    return record


class TelemetryLog:
    """Append outcome records to a JSON Lines file."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def append(
        self,
        outcome: PollOutcome,
        *,
        api_region: str,
        ts: datetime | None = None,
    ) -> dict[str, Any]:
        record = build_log_record(outcome, ts=ts or datetime.now(UTC), api_region=api_region)
        append_json_line(self._path, record)
        _logger.debug("Appended %s record to %s", outcome.kind, self._path)
        return record
