"""Injectable time source."""
from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    """Supplies the current UTC timestamp."""

    def now(self) -> datetime: ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def get_clock() -> Clock:
    """Dependency to get the application clock."""
    return SystemClock()
