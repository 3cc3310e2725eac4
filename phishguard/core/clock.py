"""Wall-clock source and fixed-duration window arithmetic."""
import math
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """Time source; services take one so tests can control time."""

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def window_cutoff(now: datetime, duration: timedelta) -> datetime:
    """Earliest window start that is still live at `now`."""
    return now - duration


def is_window_expired(start: datetime, now: datetime, duration: timedelta) -> bool:
    return now - start > duration


def seconds_until(moment: datetime, now: datetime) -> int:
    """Whole seconds (rounded up) from now until moment; 0 if already past."""
    return max(0, math.ceil((moment - now).total_seconds()))
