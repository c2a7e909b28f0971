"""Injectable clock.

Nothing in the scheduling core reads the wall clock directly; the store and the
engine receive a ``Clock`` so tests can pin "now" to a known instant.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional


class Clock(ABC):
    """Source of the current instant (always timezone-aware, UTC)."""
    
    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):
    """Clock backed by the host's wall clock."""
    
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """Clock frozen at a given instant until moved explicitly."""
    
    def __init__(self, instant: Optional[datetime] = None):
        self._instant = instant or datetime(2026, 1, 1, tzinfo=timezone.utc)
        if self._instant.tzinfo is None:
            self._instant = self._instant.replace(tzinfo=timezone.utc)
    
    def now(self) -> datetime:
        return self._instant
    
    def set(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._instant = instant
    
    def advance(self, **kwargs) -> datetime:
        """Move the clock forward by ``timedelta(**kwargs)``."""
        self._instant = self._instant + timedelta(**kwargs)
        return self._instant
