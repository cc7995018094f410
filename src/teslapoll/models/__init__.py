"""Data models for teslapoll."""

from teslapoll.models.credential import Credential
from teslapoll.models.outcome import (
    Fatal,
    OutcomeKind,
    PollOutcome,
    QuietBlocked,
    QuotaBlocked,
    Success,
    Timeout,
)
from teslapoll.models.runstate import RunState
from teslapoll.models.snapshot import VehicleSnapshot
from teslapoll.models.wake import WakeCounter, WakeResult

__all__ = [
    "Credential",
    "Fatal",
    "OutcomeKind",
    "PollOutcome",
    "QuietBlocked",
    "QuotaBlocked",
    "RunState",
    "Success",
    "Timeout",
    "VehicleSnapshot",
    "WakeCounter",
    "WakeResult",
]
