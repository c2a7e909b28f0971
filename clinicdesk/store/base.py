"""
Entity Store contract.

The store exclusively owns persisted state. Every method is a coroutine so the
scheduling engine can bound it with a timeout. Tenant-owned records are read
with a ``clinic_id`` scope: when the scope is given and the record belongs to
another clinic it is reported as missing.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from clinicdesk.core.clock import Clock, SystemClock
from clinicdesk.models import (
    Appointment,
    Clinic,
    Doctor,
    Membership,
    Patient,
    User,
)


class EntityStore(ABC):
    """Abstract persistence layer for clinics and everything they own."""

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or SystemClock()

    # ============== Users ==============

    @abstractmethod
    async def create_user(self, user: User) -> User:
        ...

    @abstractmethod
    async def get_user(self, user_id: UUID) -> User:
        ...

    async def ensure_user(self, user_id: UUID) -> User:
        """Return the user, creating a bare record the first time it is seen."""
        existing = await self.find_user(user_id)
        if existing:
            return existing
        return await self.create_user(User(id=user_id))

    @abstractmethod
    async def find_user(self, user_id: UUID) -> Optional[User]:
        ...

    # ============== Clinics ==============

    @abstractmethod
    async def create_clinic(self, clinic: Clinic) -> Clinic:
        ...

    @abstractmethod
    async def get_clinic(self, clinic_id: UUID) -> Clinic:
        ...

    @abstractmethod
    async def update_clinic(self, clinic: Clinic) -> Clinic:
        ...

    @abstractmethod
    async def delete_clinic(self, clinic_id: UUID) -> None:
        """
        Delete a clinic and everything it owns.

        Cascade order: appointments, patients, doctors, memberships, clinic.

        Raises:
            NotFoundError: If the clinic does not exist
        """

    @abstractmethod
    async def list_clinics_for_user(self, user_id: UUID) -> List[Clinic]:
        ...

    # ============== Memberships ==============

    @abstractmethod
    async def add_member(self, user_id: UUID, clinic_id: UUID) -> Membership:
        """
        Grant a user access to a clinic.

        Raises:
            NotFoundError: If the user or the clinic does not exist
            ConstraintViolationError: If the pair already exists
        """

    @abstractmethod
    async def remove_member(self, user_id: UUID, clinic_id: UUID) -> None:
        ...

    @abstractmethod
    async def is_member(self, user_id: UUID, clinic_id: UUID) -> bool:
        ...

    @abstractmethod
    async def list_members(self, clinic_id: UUID) -> List[Membership]:
        ...

    # ============== Doctors ==============

    @abstractmethod
    async def create_doctor(self, doctor: Doctor) -> Doctor:
        ...

    @abstractmethod
    async def get_doctor(self, doctor_id: UUID, clinic_id: Optional[UUID] = None) -> Doctor:
        ...

    @abstractmethod
    async def update_doctor(self, doctor: Doctor) -> Doctor:
        """
        Persist changes to a doctor.

        Raises:
            NotFoundError: If the doctor does not exist in its clinic
            ConcurrencyConflictError: If ``doctor.version`` is stale
        """

    @abstractmethod
    async def delete_doctor(self, doctor_id: UUID, clinic_id: UUID) -> None:
        """
        Raises:
            ConstraintViolationError: While appointments still reference the doctor
        """

    @abstractmethod
    async def list_doctors(self, clinic_id: UUID) -> List[Doctor]:
        ...

    # ============== Patients ==============

    @abstractmethod
    async def create_patient(self, patient: Patient) -> Patient:
        """
        Raises:
            ConstraintViolationError: If the email is taken (in any clinic)
                or the clinic does not exist
        """

    @abstractmethod
    async def get_patient(self, patient_id: UUID, clinic_id: Optional[UUID] = None) -> Patient:
        ...

    @abstractmethod
    async def update_patient(self, patient: Patient) -> Patient:
        ...

    @abstractmethod
    async def delete_patient(self, patient_id: UUID, clinic_id: UUID) -> None:
        ...

    @abstractmethod
    async def list_patients(self, clinic_id: UUID) -> List[Patient]:
        ...

    @abstractmethod
    async def find_patient_by_email(self, email: str) -> Optional[Patient]:
        ...

    # ============== Appointments ==============

    @abstractmethod
    async def create_appointment(self, appointment: Appointment) -> Appointment:
        """
        Insert a validated appointment.

        Raises:
            ConstraintViolationError: If clinic/doctor/patient references are
                broken or an active appointment already owns the slot key
        """

    @abstractmethod
    async def get_appointment(
        self,
        appointment_id: UUID,
        clinic_id: Optional[UUID] = None
    ) -> Appointment:
        ...

    @abstractmethod
    async def update_appointment(self, appointment: Appointment) -> Appointment:
        ...

    @abstractmethod
    async def list_appointments_for_doctor(
        self,
        clinic_id: UUID,
        doctor_id: UUID,
        start: datetime,
        end: datetime,
        include_cancelled: bool = False
    ) -> List[Appointment]:
        """Appointments of a doctor with ``start <= date < end``, ascending by date."""

    @abstractmethod
    async def find_appointment_by_idempotency_key(
        self,
        clinic_id: UUID,
        key: str
    ) -> Optional[Appointment]:
        ...
