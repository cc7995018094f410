"""Wake budget and wake-call result models."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field


class WakeCounter(BaseModel):
    """Number of wakes issued on one local calendar day."""

    model_config = ConfigDict(extra="ignore")

    date: dt.date
    count: int = Field(default=0, ge=0)


@dataclass(frozen=True, slots=True)
class WakeResult:
    """Outcome of a best-effort wake request.

    A wake may succeed asynchronously even when the request itself failed,
    so failures are carried as a ``warning`` instead of being raised.
    """

    issued: bool
    vehicle_state: str | None = None
    warning: str | None = None
