# Appointment - Models

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import field_validator

from clinicdesk.shared.models import Record, as_utc


class AppointmentStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Appointment(Record):
    """
    Booked visit of a patient with a doctor.
    
    Only the start instant is stored; the length of every appointment is the
    engine's configured duration.
    """
    
    clinic_id: UUID
    patient_id: UUID
    doctor_id: UUID
    date: datetime
    status: AppointmentStatus = AppointmentStatus.CONFIRMED
    idempotency_key: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    
    @field_validator("date")
    @classmethod
    def normalize_to_utc(cls, value: datetime) -> datetime:
        # Naive instants are taken as UTC; stored to the millisecond
        return as_utc(value)
    
    @property
    def is_active(self) -> bool:
        """Cancelled appointments no longer hold their slot."""
        return self.status != AppointmentStatus.CANCELLED
    
    @property
    def slot_key(self) -> str:
        """Storage-level exclusion key: unique per doctor and start instant while active."""
        if not self.is_active:
            return f"cancelled:{self.id}"
        return f"{self.doctor_id}:{as_utc(self.date).isoformat()}"
