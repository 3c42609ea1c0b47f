"""
Monotonic block clock.

Timestamps are integer seconds. Nothing in the platform reads wall-clock
time; deadlines and voting windows compare against this clock only.
"""

import logging

from ..errors.exceptions import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_GENESIS_TIME = 1_700_000_000

MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR
WEEK = 7 * DAY
MONTH = 30 * DAY
THREE_MONTHS = 90 * DAY


class Clock:
    """Manually driven clock that never goes backwards."""

    def __init__(self, start: int = DEFAULT_GENESIS_TIME):
        if start < 0:
            raise ValidationError("Clock start must be non-negative", field="start", value=start)
        self._now = int(start)

    def now(self) -> int:
        """Current timestamp."""
        return self._now

    def advance(self, seconds: int) -> int:
        """Move the clock forward by ``seconds`` and return the new time."""
        if seconds < 0:
            raise ValidationError("Cannot advance clock by a negative amount", field="seconds", value=seconds)
        self._now += int(seconds)
        return self._now

    def set_time(self, timestamp: int) -> int:
        """Jump to an absolute ``timestamp`` (never earlier than now)."""
        if timestamp < self._now:
            raise ValidationError(
                "Clock cannot go backwards",
                field="timestamp",
                value=timestamp,
                expected=f">= {self._now}",
            )
        self._now = int(timestamp)
        return self._now
