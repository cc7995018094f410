"""Terminal outcomes of one poll tick.

Exactly one outcome is produced per run. ``QuietBlocked`` and
``QuotaBlocked`` are planned skips; ``Timeout`` and ``Fatal`` are failures.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import ClassVar

from teslapoll.models.snapshot import VehicleSnapshot


class OutcomeKind(StrEnum):
    SUCCESS = "success"
    QUIET_BLOCKED = "quiet_blocked"
    QUOTA_BLOCKED = "quota_blocked"
    TIMEOUT = "timeout"
    FATAL = "fatal"


@dataclass(frozen=True, slots=True)
class Success:
    snapshot: VehicleSnapshot
    woke: bool = False

    kind: ClassVar[OutcomeKind] = OutcomeKind.SUCCESS
    is_failure: ClassVar[bool] = False


@dataclass(frozen=True, slots=True)
class QuietBlocked:
    window: str

    kind: ClassVar[OutcomeKind] = OutcomeKind.QUIET_BLOCKED
    is_failure: ClassVar[bool] = False


@dataclass(frozen=True, slots=True)
class QuotaBlocked:
    count: int
    max_per_day: int

    kind: ClassVar[OutcomeKind] = OutcomeKind.QUOTA_BLOCKED
    is_failure: ClassVar[bool] = False


@dataclass(frozen=True, slots=True)
class Timeout:
    attempts: int

    kind: ClassVar[OutcomeKind] = OutcomeKind.TIMEOUT
    is_failure: ClassVar[bool] = True


@dataclass(frozen=True, slots=True)
class Fatal:
    error: BaseException

    kind: ClassVar[OutcomeKind] = OutcomeKind.FATAL
    is_failure: ClassVar[bool] = True


PollOutcome = Success | QuietBlocked | QuotaBlocked | Timeout | Fatal
