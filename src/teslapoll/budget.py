"""Daily wake budget.

The counter is always interpreted relative to the local calendar day: a
stored date other than today is reset to zero (and persisted) before the
count is used, so a stale file never inflates or deflates today's budget.

The file is replaced atomically, but load-increment-persist is not locked
across processes; two concurrent runs may lose an increment.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from teslapoll._storage import read_json, write_json_atomic
from teslapoll.models.wake import WakeCounter

_logger = logging.getLogger(__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


class WakeBudget:
    """Per-day wake counter persisted as ``{"date": "YYYY-MM-DD", "count": n}``."""

    def __init__(self, path: Path, *, clock: Callable[[], datetime] = _local_now) -> None:
        self._path = path
        self._clock = clock

    @property
    def path(self) -> Path:
        return self._path

    def _persist(self, counter: WakeCounter) -> None:
        write_json_atomic(self._path, counter.model_dump(mode="json"))

    def load(self) -> WakeCounter:
        """Return today's counter, resetting and persisting it when stale."""
        today = self._clock().date()
        raw = read_json(self._path)

        counter: WakeCounter | None = None
        if raw is not None:
            try:
                counter = WakeCounter.model_validate(raw)
            except ValidationError:
                _logger.warning("Wake counter %s is invalid; resetting", self._path)

        if counter is None or counter.date != today:
            if counter is not None:
                _logger.debug("Wake counter date %s is stale; resetting for %s", counter.date, today)
            counter = WakeCounter(date=today, count=0)
            self._persist(counter)
        return counter

    def increment(self) -> WakeCounter:
        """Record one issued wake for today and persist it."""
        counter = self.load()
        updated = WakeCounter(date=counter.date, count=counter.count + 1)
        self._persist(updated)
        _logger.info("Wake budget used: %d today", updated.count)
        return updated

    def remaining_today(self, max_per_day: int) -> int:
        """Wakes still allowed today (never negative)."""
        return max(0, max_per_day - self.load().count)
