from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path

from teslapoll.runstate import RunStateStore


class _Clock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def test_records_polls_wakes_and_success(tmp_path: Path) -> None:
    clock = _Clock(datetime(2026, 3, 15, 6, 0, tzinfo=UTC))
    store = RunStateStore(tmp_path / "state.json", clock=clock)

    store.record_poll()
    store.record_wake()
    store.record_poll()
    store.record_success()

    state = store.load()
    assert len(state.polls) == 2
    assert state.wakes == ["2026-03-15T06:00:00+00:00"]
    assert state.last_success_iso == "2026-03-15T06:00:00+00:00"


def test_entries_older_than_history_are_pruned(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    clock = _Clock(datetime(2026, 3, 1, tzinfo=UTC))
    store = RunStateStore(path, history_days=2, clock=clock)
    store.record_wake()

    clock.now += timedelta(days=3)
    store.record_poll()

    data = json.loads(path.read_text())
    assert data["wakes"] == []
    assert data["polls"] == ["2026-03-04T00:00:00+00:00"]


def test_invalid_file_starts_fresh(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"wakes": "nope"}))

    state = RunStateStore(path).load()
    assert state.wakes == []
    assert state.last_success_iso is None


def test_unparsable_stamps_are_dropped_on_write(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"wakes": ["garbage"], "polls": [], "last_success_iso": None}))
    store = RunStateStore(path, clock=lambda: datetime(2026, 3, 1, tzinfo=UTC))

    store.record_poll()

    assert store.load().wakes == []
