"""Timestamp source for threads and messages.

Hides how "now" is produced. Store ordering relies on timestamps being
strictly increasing within a process, which wall-clock reads alone do not
guarantee when two writes land in the same microsecond.
"""

from datetime import datetime, timedelta, timezone

_TICK = timedelta(microseconds=1)


class MonotonicClock:
    """Timezone-aware UTC clock that never repeats or goes backwards."""

    def __init__(self) -> None:
        self._last: datetime | None = None

    def now(self) -> datetime:
        """Return the current UTC time, nudged forward past the last value."""
        current = datetime.now(timezone.utc)
        if self._last is not None and current <= self._last:
            current = self._last + _TICK
        self._last = current
        return current
