"""Calendar clocks used to date reviews."""
from datetime import UTC, date, datetime, timedelta
from typing import Optional, Protocol


class Clock(Protocol):
    def today(self) -> date: ...

    def now(self) -> datetime: ...


class SystemClock:
    """Current UTC date and time."""

    def today(self) -> date:
        return self.now().date()

    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """A clock stuck on a given day until moved."""

    def __init__(self, current: date, at: Optional[datetime] = None):
        self.current = current
        self.at = at

    def today(self) -> date:
        return self.current

    def now(self) -> datetime:
        if self.at is not None and self.at.date() == self.current:
            return self.at
        return datetime(self.current.year, self.current.month, self.current.day, 12, tzinfo=UTC)

    def advance(self, days: int = 1) -> None:
        self.current = self.current + timedelta(days=days)
