"""Run-state file model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RunState(BaseModel):
    """History of recent wakes and reads, plus the last successful read.

    Timestamps are ISO 8601 strings so the file stays readable by other
    tools that consume it.
    """

    model_config = ConfigDict(extra="ignore")

    wakes: list[str] = Field(default_factory=list)
    polls: list[str] = Field(default_factory=list)
    last_success_iso: str | None = None
