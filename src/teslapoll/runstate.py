"""Run-state file: recent wakes, reads and the last successful read."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

from pydantic import ValidationError

from teslapoll._storage import read_json, write_json_atomic
from teslapoll.models._base import parse_instant
from teslapoll.models.runstate import RunState

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RunStateStore:
    """Persist ``{wakes, polls, last_success_iso}``.

    Entries older than *history_days* are dropped on every write so the
    file stays bounded.
    """

    def __init__(
        self,
        path: Path,
        *,
        history_days: int = 7,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._path = path
        self._history = timedelta(days=max(history_days, 1))
        self._clock = clock

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> RunState:
        raw = read_json(self._path)
        if raw is None:
            return RunState()
        try:
            return RunState.model_validate(raw)
        except ValidationError:
            _logger.warning("Run state %s is invalid; starting fresh", self._path)
            return RunState()

    def _prune(self, stamps: list[str], cutoff: datetime) -> list[str]:
        kept: list[str] = []
        for stamp in stamps:
            try:
                when = parse_instant(stamp)
            except ValueError:
                continue
            if when is not None and when >= cutoff:
                kept.append(stamp)
        return kept

    def _save(self, state: RunState) -> None:
        cutoff = self._clock() - self._history
        state.wakes = self._prune(state.wakes, cutoff)
        state.polls = self._prune(state.polls, cutoff)
        write_json_atomic(self._path, state.model_dump(mode="json"))

    def record_poll(self) -> None:
        state = self.load()
        state.polls.append(self._clock().isoformat())
        self._save(state)

    def record_wake(self) -> None:
        state = self.load()
        state.wakes.append(self._clock().isoformat())
        self._save(state)

    def record_success(self) -> None:
        state = self.load()
        state.last_success_iso = self._clock().isoformat()
        self._save(state)
