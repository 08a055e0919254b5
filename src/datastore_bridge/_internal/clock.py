"""Time source for the API-access cache, swappable in tests."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol


class Clock(Protocol):
    """Anything with a ``now()`` returning an aware UTC datetime."""

    def now(self) -> datetime: ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


def seconds_since(clock: Clock, moment: datetime) -> float:
    """Seconds elapsed on *clock* since *moment*; used to expire cached answers."""
    return (clock.now() - moment).total_seconds()
