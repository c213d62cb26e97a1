"""Time sources for date math.

Fetch dates are local calendar dates in a fixed UTC offset. Services take a
``Clock`` instead of calling ``datetime.now()`` so day boundaries can be
pinned in tests.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...

    def today(self) -> date: ...


class FixedOffsetClock:
    """Wall-clock time shifted into a fixed UTC offset (no DST)."""

    def __init__(self, offset_hours: int) -> None:
        self.tz = timezone(timedelta(hours=offset_hours))

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()


class FrozenClock:
    """Clock pinned to a single instant; ``advance`` moves it forward."""

    def __init__(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            raise ValueError("FrozenClock requires a timezone-aware datetime")
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def today(self) -> date:
        return self._instant.date()

    def advance(self, delta: timedelta) -> None:
        self._instant += delta
