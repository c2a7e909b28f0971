"""
Scheduling core.

- Availability evaluation (availability.py)
- Overlap detection (conflicts.py)
- Clinic access checks (access.py)
- Booking orchestration (engine.py)
- Slot listing for UIs (slots.py)
"""

from clinicdesk.scheduling.access import AccessGate
from clinicdesk.scheduling.availability import WeeklyWindow, is_within_availability
from clinicdesk.scheduling.conflicts import ConflictDetector
from clinicdesk.scheduling.engine import SchedulingEngine
from clinicdesk.scheduling.intervals import Interval

__all__ = [
    "AccessGate",
    "ConflictDetector",
    "Interval",
    "SchedulingEngine",
    "WeeklyWindow",
    "is_within_availability",
]
