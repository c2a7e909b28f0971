# Appointments Feature - Schemas

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from clinicdesk.config import settings
from clinicdesk.models import AppointmentStatus
from clinicdesk.scheduling.availability import get_timezone


class TimezoneMixin(BaseModel):
    timezone: str = Field(
        default_factory=lambda: settings.DEFAULT_TIMEZONE,
        description="Clinic timezone used to evaluate doctor availability",
    )
    
    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, value: str) -> str:
        get_timezone(value)
        return value


class BookAppointmentRequest(TimezoneMixin):
    """Request schema for booking an appointment."""
    doctor_id: UUID
    patient_id: UUID
    date: datetime = Field(..., description="Start instant; naive values are UTC")
    idempotency_key: Optional[str] = Field(None, min_length=1, max_length=200)


class RescheduleAppointmentRequest(TimezoneMixin):
    """Request schema for moving an appointment."""
    date: datetime


class AppointmentResponse(BaseModel):
    """Response schema for appointment data."""
    id: UUID
    clinic_id: UUID
    doctor_id: UUID
    patient_id: UUID
    date: datetime
    ends_at: datetime
    status: AppointmentStatus
    version: int
    created_at: datetime
    updated_at: datetime
    cancelled_at: Optional[datetime] = None


class AppointmentListResponse(BaseModel):
    appointments: List[AppointmentResponse]
    total: int


class SlotResponse(BaseModel):
    start: datetime
    end: datetime


class SlotListResponse(BaseModel):
    slots: List[SlotResponse]
    total: int
