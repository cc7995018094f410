"""Quiet time-of-day window during which the vehicle must not be woken."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, time

_WINDOW_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)-([01]\d|2[0-3]):([0-5]\d)$")


@dataclass(frozen=True)
class QuietWindow:
    """Half-open ``[start, end)`` interval of local minutes-of-day.

    ``start > end`` means the window wraps past midnight.
    """

    start: int
    end: int

    @property
    def wraps_midnight(self) -> bool:
        return self.start > self.end

    def contains(self, minute_of_day: int) -> bool:
        if self.start <= self.end:
            return self.start <= minute_of_day < self.end
        return minute_of_day >= self.start or minute_of_day < self.end

    def __str__(self) -> str:
        return f"{self.start // 60:02d}:{self.start % 60:02d}-{self.end // 60:02d}:{self.end % 60:02d}"


def parse_quiet_window(spec: str | None) -> QuietWindow | None:
    """Parse ``"HH:MM-HH:MM"``; return ``None`` for empty or malformed specs."""
    if not spec:
        return None
    match = _WINDOW_RE.match(spec.strip())
    if match is None:
        return None
    h1, m1, h2, m2 = (int(group) for group in match.groups())
    return QuietWindow(start=h1 * 60 + m1, end=h2 * 60 + m2)


def minutes_of_day(now: datetime | time) -> int:
    return now.hour * 60 + now.minute


def is_quiet(spec: str | QuietWindow | None, now: datetime | time) -> bool:
    """Whether *now* falls inside the quiet window.

    Malformed specs never block: an unparsable window is treated as absent.
    *now* is interpreted as local wall-clock time.
    """
    window = spec if isinstance(spec, QuietWindow) else parse_quiet_window(spec)
    if window is None:
        return False
    return window.contains(minutes_of_day(now))
