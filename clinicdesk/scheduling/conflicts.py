"""
Conflict Detector

Detects overlaps between a candidate interval and a doctor's existing
appointments. Every appointment lasts the configured duration; cancelled
appointments never conflict, completed ones still occupy their slot.
"""

from datetime import timedelta
from typing import List, Optional
from uuid import UUID

from clinicdesk.models import Appointment
from clinicdesk.scheduling.intervals import Interval
from clinicdesk.store.base import EntityStore


class ConflictDetector:
    """Overlap checks against the Entity Store."""

    def __init__(
        self,
        store: EntityStore,
        duration: timedelta,
        search_window: timedelta = timedelta(days=1)
    ):
        self.store = store
        self.duration = duration
        # An appointment starting before the candidate can still reach into
        # it, so look back at least one duration
        self.search_window = max(search_window, duration)

    def interval_of(self, appointment: Appointment) -> Interval:
        return Interval.starting_at(appointment.date, self.duration)

    async def find_conflicts(
        self,
        clinic_id: UUID,
        doctor_id: UUID,
        candidate: Interval,
        exclude_appointment_id: Optional[UUID] = None
    ) -> List[Appointment]:
        """
        Existing appointments of the doctor that overlap ``candidate``.

        Args:
            clinic_id: tenant scope
            doctor_id: doctor whose agenda is checked
            candidate: interval being requested
            exclude_appointment_id: appointment to ignore (the one being moved)

        Returns:
            list[Appointment]: overlapping appointments, ascending by date
        """
        nearby = await self.store.list_appointments_for_doctor(
            clinic_id,
            doctor_id,
            candidate.start - self.search_window,
            candidate.end + self.search_window,
        )
        return [
            appointment for appointment in nearby
            if appointment.id != exclude_appointment_id
            and appointment.is_active
            and self.interval_of(appointment).overlaps(candidate)
        ]

    async def has_conflict(
        self,
        clinic_id: UUID,
        doctor_id: UUID,
        candidate: Interval,
        exclude_appointment_id: Optional[UUID] = None
    ) -> bool:
        conflicts = await self.find_conflicts(clinic_id, doctor_id, candidate, exclude_appointment_id)
        return bool(conflicts)
