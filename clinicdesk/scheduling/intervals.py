"""Half-open time intervals."""

from dataclasses import dataclass
from datetime import datetime, timedelta

from clinicdesk.shared.models import as_utc


@dataclass(frozen=True)
class Interval:
    """
    ``[start, end)`` between two aware instants (stored in UTC).

    Naive datetimes are interpreted as UTC.
    """

    start: datetime
    end: datetime

    def __post_init__(self):
        start = as_utc(self.start)
        end = as_utc(self.end)
        if start >= end:
            raise ValueError(f"Interval start {start.isoformat()} must be before end {end.isoformat()}")
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @classmethod
    def starting_at(cls, start: datetime, duration: timedelta) -> "Interval":
        return cls(start, as_utc(start) + duration)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: "Interval") -> bool:
        # [s1, e1) and [s2, e2) overlap iff s1 < e2 and s2 < e1
        return self.start < other.end and other.start < self.end
