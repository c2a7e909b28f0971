# Entity Store - in-process backend

import asyncio
from datetime import datetime
from typing import Dict, List, Optional, Tuple, TypeVar
from uuid import UUID

from clinicdesk.core.clock import Clock
from clinicdesk.core.logging import logger
from clinicdesk.models import (
    Appointment,
    Clinic,
    Doctor,
    Membership,
    Patient,
    User,
)
from clinicdesk.shared.errors import (
    ConcurrencyConflictError,
    ConstraintViolationError,
    NotFoundError,
)
from clinicdesk.shared.models import Record, as_utc
from clinicdesk.store.base import EntityStore


R = TypeVar("R", bound=Record)


class MemoryEntityStore(EntityStore):
    """
    Dictionary-backed store.

    Each call mutates state without yielding to the event loop in between, so
    every call is atomic with respect to other coroutines. ``latency`` adds an
    ``asyncio.sleep`` before each call to make timeouts and cancellation
    observable in tests.
    """

    def __init__(self, clock: Optional[Clock] = None, latency: float = 0.0):
        super().__init__(clock)
        self.latency = latency
        self._users: Dict[UUID, User] = {}
        self._clinics: Dict[UUID, Clinic] = {}
        self._doctors: Dict[UUID, Doctor] = {}
        self._patients: Dict[UUID, Patient] = {}
        self._appointments: Dict[UUID, Appointment] = {}
        self._memberships: Dict[Tuple[UUID, UUID], Membership] = {}

    async def _io(self) -> None:
        if self.latency:
            await asyncio.sleep(self.latency)

    # ============== Helpers ==============

    def _stamp_new(self, record: R) -> R:
        now = self.clock.now()
        return record.model_copy(
            update={"created_at": now, "updated_at": now, "version": 0},
            deep=True,
        )

    def _stamp_update(self, stored: R, record: R) -> R:
        if stored.version != record.version:
            raise ConcurrencyConflictError(
                f"{type(record).__name__} {record.id} was modified concurrently "
                f"(expected version {record.version}, found {stored.version})"
            )
        return record.model_copy(
            update={
                "created_at": stored.created_at,
                "updated_at": self.clock.now(),
                "version": stored.version + 1,
            },
            deep=True,
        )

    @staticmethod
    def _scoped(table: Dict[UUID, R], record_id: UUID, clinic_id: Optional[UUID], label: str) -> R:
        record = table.get(record_id)
        if record is None or (clinic_id is not None and record.clinic_id != clinic_id):
            raise NotFoundError(f"{label} {record_id} not found")
        return record

    def _require_clinic(self, clinic_id: UUID) -> None:
        if clinic_id not in self._clinics:
            raise ConstraintViolationError(f"Clinic {clinic_id} does not exist")

    # ============== Users ==============

    async def create_user(self, user: User) -> User:
        await self._io()
        if user.id in self._users:
            raise ConstraintViolationError(f"User {user.id} already exists")
        stored = self._stamp_new(user)
        self._users[stored.id] = stored
        return stored.model_copy(deep=True)

    async def get_user(self, user_id: UUID) -> User:
        user = await self.find_user(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    async def find_user(self, user_id: UUID) -> Optional[User]:
        await self._io()
        user = self._users.get(user_id)
        return user.model_copy(deep=True) if user else None

    # ============== Clinics ==============

    async def create_clinic(self, clinic: Clinic) -> Clinic:
        await self._io()
        if clinic.id in self._clinics:
            raise ConstraintViolationError(f"Clinic {clinic.id} already exists")
        stored = self._stamp_new(clinic)
        self._clinics[stored.id] = stored
        return stored.model_copy(deep=True)

    async def get_clinic(self, clinic_id: UUID) -> Clinic:
        await self._io()
        clinic = self._clinics.get(clinic_id)
        if clinic is None:
            raise NotFoundError(f"Clinic {clinic_id} not found")
        return clinic.model_copy(deep=True)

    async def update_clinic(self, clinic: Clinic) -> Clinic:
        await self._io()
        stored = self._clinics.get(clinic.id)
        if stored is None:
            raise NotFoundError(f"Clinic {clinic.id} not found")
        updated = self._stamp_update(stored, clinic)
        self._clinics[updated.id] = updated
        return updated.model_copy(deep=True)

    async def delete_clinic(self, clinic_id: UUID) -> None:
        await self._io()
        if clinic_id not in self._clinics:
            raise NotFoundError(f"Clinic {clinic_id} not found")

        appointments = [a for a in self._appointments.values() if a.clinic_id == clinic_id]
        patients = [p for p in self._patients.values() if p.clinic_id == clinic_id]
        doctors = [d for d in self._doctors.values() if d.clinic_id == clinic_id]
        memberships = [key for key in self._memberships if key[1] == clinic_id]

        for appointment in appointments:
            del self._appointments[appointment.id]
        for patient in patients:
            del self._patients[patient.id]
        for doctor in doctors:
            del self._doctors[doctor.id]
        for key in memberships:
            del self._memberships[key]
        del self._clinics[clinic_id]

        logger.info(
            f"Deleted clinic {clinic_id} with {len(doctors)} doctors, {len(patients)} patients, "
            f"{len(appointments)} appointments, {len(memberships)} memberships"
        )

    async def list_clinics_for_user(self, user_id: UUID) -> List[Clinic]:
        await self._io()
        clinics = [
            self._clinics[clinic_id]
            for (member_id, clinic_id) in self._memberships
            if member_id == user_id and clinic_id in self._clinics
        ]
        clinics.sort(key=lambda c: c.created_at)
        return [c.model_copy(deep=True) for c in clinics]

    # ============== Memberships ==============

    async def add_member(self, user_id: UUID, clinic_id: UUID) -> Membership:
        await self._io()
        if user_id not in self._users:
            raise NotFoundError(f"User {user_id} not found")
        if clinic_id not in self._clinics:
            raise NotFoundError(f"Clinic {clinic_id} not found")
        key = (user_id, clinic_id)
        if key in self._memberships:
            raise ConstraintViolationError(f"User {user_id} is already a member of clinic {clinic_id}")
        now = self.clock.now()
        membership = Membership(user_id=user_id, clinic_id=clinic_id, created_at=now, updated_at=now)
        self._memberships[key] = membership
        return membership.model_copy()

    async def remove_member(self, user_id: UUID, clinic_id: UUID) -> None:
        await self._io()
        if self._memberships.pop((user_id, clinic_id), None) is None:
            raise NotFoundError(f"User {user_id} is not a member of clinic {clinic_id}")

    async def is_member(self, user_id: UUID, clinic_id: UUID) -> bool:
        await self._io()
        return (user_id, clinic_id) in self._memberships

    async def list_members(self, clinic_id: UUID) -> List[Membership]:
        await self._io()
        members = [m for (_, cid), m in self._memberships.items() if cid == clinic_id]
        members.sort(key=lambda m: m.created_at)
        return [m.model_copy() for m in members]

    # ============== Doctors ==============

    async def create_doctor(self, doctor: Doctor) -> Doctor:
        await self._io()
        self._require_clinic(doctor.clinic_id)
        if doctor.id in self._doctors:
            raise ConstraintViolationError(f"Doctor {doctor.id} already exists")
        stored = self._stamp_new(doctor)
        self._doctors[stored.id] = stored
        return stored.model_copy(deep=True)

    async def get_doctor(self, doctor_id: UUID, clinic_id: Optional[UUID] = None) -> Doctor:
        await self._io()
        return self._scoped(self._doctors, doctor_id, clinic_id, "Doctor").model_copy(deep=True)

    async def update_doctor(self, doctor: Doctor) -> Doctor:
        await self._io()
        stored = self._scoped(self._doctors, doctor.id, doctor.clinic_id, "Doctor")
        updated = self._stamp_update(stored, doctor)
        self._doctors[updated.id] = updated
        return updated.model_copy(deep=True)

    async def delete_doctor(self, doctor_id: UUID, clinic_id: UUID) -> None:
        await self._io()
        self._scoped(self._doctors, doctor_id, clinic_id, "Doctor")
        if any(a.doctor_id == doctor_id for a in self._appointments.values()):
            raise ConstraintViolationError(f"Doctor {doctor_id} is referenced by appointments")
        del self._doctors[doctor_id]

    async def list_doctors(self, clinic_id: UUID) -> List[Doctor]:
        await self._io()
        doctors = sorted(
            (d for d in self._doctors.values() if d.clinic_id == clinic_id),
            key=lambda d: d.name.lower(),
        )
        return [d.model_copy(deep=True) for d in doctors]

    # ============== Patients ==============

    def _check_email_free(self, email: str, patient_id: UUID) -> None:
        for other in self._patients.values():
            if other.email == email and other.id != patient_id:
                raise ConstraintViolationError(f"A patient with email {email} already exists")

    async def create_patient(self, patient: Patient) -> Patient:
        await self._io()
        self._require_clinic(patient.clinic_id)
        if patient.id in self._patients:
            raise ConstraintViolationError(f"Patient {patient.id} already exists")
        self._check_email_free(patient.email, patient.id)
        stored = self._stamp_new(patient)
        self._patients[stored.id] = stored
        return stored.model_copy(deep=True)

    async def get_patient(self, patient_id: UUID, clinic_id: Optional[UUID] = None) -> Patient:
        await self._io()
        return self._scoped(self._patients, patient_id, clinic_id, "Patient").model_copy(deep=True)

    async def update_patient(self, patient: Patient) -> Patient:
        await self._io()
        stored = self._scoped(self._patients, patient.id, patient.clinic_id, "Patient")
        self._check_email_free(patient.email, patient.id)
        updated = self._stamp_update(stored, patient)
        self._patients[updated.id] = updated
        return updated.model_copy(deep=True)

    async def delete_patient(self, patient_id: UUID, clinic_id: UUID) -> None:
        await self._io()
        self._scoped(self._patients, patient_id, clinic_id, "Patient")
        if any(a.patient_id == patient_id for a in self._appointments.values()):
            raise ConstraintViolationError(f"Patient {patient_id} is referenced by appointments")
        del self._patients[patient_id]

    async def list_patients(self, clinic_id: UUID) -> List[Patient]:
        await self._io()
        patients = sorted(
            (p for p in self._patients.values() if p.clinic_id == clinic_id),
            key=lambda p: p.name.lower(),
        )
        return [p.model_copy(deep=True) for p in patients]

    async def find_patient_by_email(self, email: str) -> Optional[Patient]:
        await self._io()
        email = email.strip().lower()
        for patient in self._patients.values():
            if patient.email == email:
                return patient.model_copy(deep=True)
        return None

    # ============== Appointments ==============

    def _check_appointment_constraints(self, appointment: Appointment) -> None:
        self._require_clinic(appointment.clinic_id)
        doctor = self._doctors.get(appointment.doctor_id)
        if doctor is None or doctor.clinic_id != appointment.clinic_id:
            raise ConstraintViolationError(
                f"Doctor {appointment.doctor_id} does not exist in clinic {appointment.clinic_id}"
            )
        patient = self._patients.get(appointment.patient_id)
        if patient is None or patient.clinic_id != appointment.clinic_id:
            raise ConstraintViolationError(
                f"Patient {appointment.patient_id} does not exist in clinic {appointment.clinic_id}"
            )

        slot_key = appointment.slot_key
        for other in self._appointments.values():
            if other.id == appointment.id:
                continue
            if other.slot_key == slot_key:
                raise ConstraintViolationError(
                    f"Doctor {appointment.doctor_id} already has an appointment starting at "
                    f"{appointment.date.isoformat()}"
                )
            if (
                appointment.idempotency_key
                and other.clinic_id == appointment.clinic_id
                and other.idempotency_key == appointment.idempotency_key
            ):
                raise ConstraintViolationError(
                    f"Idempotency key {appointment.idempotency_key!r} already used"
                )

    async def create_appointment(self, appointment: Appointment) -> Appointment:
        await self._io()
        if appointment.id in self._appointments:
            raise ConstraintViolationError(f"Appointment {appointment.id} already exists")
        self._check_appointment_constraints(appointment)
        stored = self._stamp_new(appointment)
        self._appointments[stored.id] = stored
        return stored.model_copy(deep=True)

    async def get_appointment(
        self,
        appointment_id: UUID,
        clinic_id: Optional[UUID] = None
    ) -> Appointment:
        await self._io()
        return self._scoped(
            self._appointments, appointment_id, clinic_id, "Appointment"
        ).model_copy(deep=True)

    async def update_appointment(self, appointment: Appointment) -> Appointment:
        await self._io()
        stored = self._scoped(self._appointments, appointment.id, appointment.clinic_id, "Appointment")
        self._check_appointment_constraints(appointment)
        updated = self._stamp_update(stored, appointment)
        self._appointments[updated.id] = updated
        return updated.model_copy(deep=True)

    async def list_appointments_for_doctor(
        self,
        clinic_id: UUID,
        doctor_id: UUID,
        start: datetime,
        end: datetime,
        include_cancelled: bool = False
    ) -> List[Appointment]:
        await self._io()
        start, end = as_utc(start), as_utc(end)
        appointments = [
            a for a in self._appointments.values()
            if a.clinic_id == clinic_id
            and a.doctor_id == doctor_id
            and start <= a.date < end
            and (include_cancelled or a.is_active)
        ]
        appointments.sort(key=lambda a: (a.date, a.created_at))
        return [a.model_copy(deep=True) for a in appointments]

    async def find_appointment_by_idempotency_key(
        self,
        clinic_id: UUID,
        key: str
    ) -> Optional[Appointment]:
        await self._io()
        for appointment in self._appointments.values():
            if appointment.clinic_id == clinic_id and appointment.idempotency_key == key:
                return appointment.model_copy(deep=True)
        return None
