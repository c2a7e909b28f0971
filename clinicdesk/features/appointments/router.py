# Appointments Feature - Router

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from clinicdesk.config import settings
from clinicdesk.dependencies import get_acting_user_id, get_engine
from clinicdesk.features.appointments.schemas import (
    AppointmentListResponse,
    AppointmentResponse,
    BookAppointmentRequest,
    RescheduleAppointmentRequest,
    SlotListResponse,
    SlotResponse,
)
from clinicdesk.models import Appointment
from clinicdesk.scheduling.engine import SchedulingEngine


router = APIRouter(tags=["Appointments"])


def appointment_to_response(appointment: Appointment, engine: SchedulingEngine) -> AppointmentResponse:
    return AppointmentResponse(
        id=appointment.id,
        clinic_id=appointment.clinic_id,
        doctor_id=appointment.doctor_id,
        patient_id=appointment.patient_id,
        date=appointment.date,
        ends_at=appointment.date + engine.duration,
        status=appointment.status,
        version=appointment.version,
        created_at=appointment.created_at,
        updated_at=appointment.updated_at,
        cancelled_at=appointment.cancelled_at,
    )


def clinic_timezone(timezone: Optional[str] = Query(None)) -> str:
    # Unknown names are rejected by the engine as bad_request
    return timezone or settings.DEFAULT_TIMEZONE


# ============== Clinic-scoped Endpoints ==============

@router.post(
    "/clinics/{clinic_id}/appointments",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def book_appointment(
    clinic_id: UUID,
    request: BookAppointmentRequest,
    acting_user_id: UUID = Depends(get_acting_user_id),
    engine: SchedulingEngine = Depends(get_engine),
):
    """
    Book an appointment.
    
    Fails with a `code` naming the violated rule: `unauthorized`,
    `tenant_mismatch`, `outside_availability`, `slot_conflict` or `not_found`.
    """
    appointment = await engine.book_appointment(
        acting_user_id,
        clinic_id,
        request.doctor_id,
        request.patient_id,
        request.date,
        timezone=request.timezone,
        idempotency_key=request.idempotency_key,
    )
    return appointment_to_response(appointment, engine)


@router.get(
    "/clinics/{clinic_id}/doctors/{doctor_id}/appointments",
    response_model=AppointmentListResponse,
)
async def list_doctor_appointments(
    clinic_id: UUID,
    doctor_id: UUID,
    start: datetime,
    end: datetime,
    include_cancelled: bool = False,
    acting_user_id: UUID = Depends(get_acting_user_id),
    engine: SchedulingEngine = Depends(get_engine),
):
    """List a doctor's appointments starting in `[start, end)`, ascending."""
    appointments = await engine.list_appointments_for_doctor(
        acting_user_id, clinic_id, doctor_id, start, end, include_cancelled=include_cancelled
    )
    return AppointmentListResponse(
        appointments=[appointment_to_response(a, engine) for a in appointments],
        total=len(appointments),
    )


@router.get(
    "/clinics/{clinic_id}/doctors/{doctor_id}/slots",
    response_model=SlotListResponse,
)
async def list_available_slots(
    clinic_id: UUID,
    doctor_id: UUID,
    day: date,
    timezone: str = Depends(clinic_timezone),
    acting_user_id: UUID = Depends(get_acting_user_id),
    engine: SchedulingEngine = Depends(get_engine),
):
    """Free slots of a doctor on a calendar day in the clinic's timezone."""
    slots = await engine.available_slots(acting_user_id, clinic_id, doctor_id, day, timezone=timezone)
    return SlotListResponse(
        slots=[SlotResponse(start=s.start, end=s.end) for s in slots],
        total=len(slots),
    )


# ============== Appointment Endpoints ==============

@router.get("/appointments/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: UUID,
    acting_user_id: UUID = Depends(get_acting_user_id),
    engine: SchedulingEngine = Depends(get_engine),
):
    appointment = await engine.get_appointment(acting_user_id, appointment_id)
    return appointment_to_response(appointment, engine)


@router.post("/appointments/{appointment_id}/reschedule", response_model=AppointmentResponse)
async def reschedule_appointment(
    appointment_id: UUID,
    request: RescheduleAppointmentRequest,
    acting_user_id: UUID = Depends(get_acting_user_id),
    engine: SchedulingEngine = Depends(get_engine),
):
    """Move an appointment; it keeps its id."""
    appointment = await engine.reschedule_appointment(
        acting_user_id, appointment_id, request.date, timezone=request.timezone
    )
    return appointment_to_response(appointment, engine)


@router.post("/appointments/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: UUID,
    acting_user_id: UUID = Depends(get_acting_user_id),
    engine: SchedulingEngine = Depends(get_engine),
):
    """Cancel an appointment. Cancelling twice succeeds."""
    appointment = await engine.cancel_appointment(acting_user_id, appointment_id)
    return appointment_to_response(appointment, engine)


@router.post("/appointments/{appointment_id}/complete", response_model=AppointmentResponse)
async def complete_appointment(
    appointment_id: UUID,
    acting_user_id: UUID = Depends(get_acting_user_id),
    engine: SchedulingEngine = Depends(get_engine),
):
    appointment = await engine.complete_appointment(acting_user_id, appointment_id)
    return appointment_to_response(appointment, engine)
