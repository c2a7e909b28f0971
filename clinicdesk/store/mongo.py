# Entity Store - MongoDB backend (beanie)

from datetime import datetime
from typing import List, Optional, Type
from uuid import UUID

from beanie.exceptions import RevisionIdWasChanged
from pymongo.errors import DuplicateKeyError

from clinicdesk.core.clock import Clock
from clinicdesk.core.logging import logger
from clinicdesk.models import (
    Appointment,
    AppointmentStatus,
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
from clinicdesk.shared.models import as_utc
from clinicdesk.store.base import EntityStore
from clinicdesk.store.documents import (
    AppointmentDocument,
    BaseRecordDocument,
    ClinicDocument,
    DoctorDocument,
    MembershipDocument,
    PatientDocument,
    UserDocument,
)


class MongoEntityStore(EntityStore):
    """
    Store backed by MongoDB through beanie documents.

    ``init_beanie`` must have been called for ``DOCUMENT_MODELS`` before use
    (see ``clinicdesk.database.Database``). Unique indexes enforce patient
    email, membership pairs and the appointment slot key.
    """

    def __init__(self, clock: Optional[Clock] = None):
        super().__init__(clock)

    # ============== Helpers ==============

    async def _insert(self, document: BaseRecordDocument, label: str):
        now = self.clock.now()
        document.created_at = now
        document.updated_at = now
        document.version = 0
        try:
            await document.insert()
        except DuplicateKeyError as e:
            logger.warning(f"Duplicate key inserting {label} {document.id}: {e}")
            raise ConstraintViolationError(f"{label} violates a uniqueness constraint")
        return document.to_record()

    async def _get(
        self,
        document_cls: Type[BaseRecordDocument],
        record_id: UUID,
        clinic_id: Optional[UUID],
        label: str
    ):
        document = await document_cls.get(record_id)
        if document is None or (clinic_id is not None and document.clinic_id != clinic_id):
            raise NotFoundError(f"{label} {record_id} not found")
        return document

    async def _replace(self, document: BaseRecordDocument, record, label: str):
        """Copy ``record`` onto the loaded document and save it under revision control."""
        if document.version != record.version:
            raise ConcurrencyConflictError(
                f"{label} {record.id} was modified concurrently "
                f"(expected version {record.version}, found {document.version})"
            )
        fresh = type(document).from_record(record)
        for field in fresh.model_dump(exclude={"id", "revision_id", "created_at", "updated_at", "version"}):
            setattr(document, field, getattr(fresh, field))
        document.version += 1
        document.updated_at = self.clock.now()
        try:
            await document.replace()
        except RevisionIdWasChanged:
            raise ConcurrencyConflictError(f"{label} {record.id} was modified concurrently")
        except DuplicateKeyError as e:
            logger.warning(f"Duplicate key updating {label} {record.id}: {e}")
            raise ConstraintViolationError(f"{label} violates a uniqueness constraint")
        return document.to_record()

    # ============== Users ==============

    async def create_user(self, user: User) -> User:
        return await self._insert(UserDocument.from_record(user), "User")

    async def get_user(self, user_id: UUID) -> User:
        user = await self.find_user(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    async def find_user(self, user_id: UUID) -> Optional[User]:
        document = await UserDocument.get(user_id)
        return document.to_record() if document else None

    # ============== Clinics ==============

    async def create_clinic(self, clinic: Clinic) -> Clinic:
        return await self._insert(ClinicDocument.from_record(clinic), "Clinic")

    async def get_clinic(self, clinic_id: UUID) -> Clinic:
        document = await ClinicDocument.get(clinic_id)
        if document is None:
            raise NotFoundError(f"Clinic {clinic_id} not found")
        return document.to_record()

    async def update_clinic(self, clinic: Clinic) -> Clinic:
        document = await ClinicDocument.get(clinic.id)
        if document is None:
            raise NotFoundError(f"Clinic {clinic.id} not found")
        return await self._replace(document, clinic, "Clinic")

    async def delete_clinic(self, clinic_id: UUID) -> None:
        document = await ClinicDocument.get(clinic_id)
        if document is None:
            raise NotFoundError(f"Clinic {clinic_id} not found")

        # Dependents first so a partial failure never leaves orphans behind
        await AppointmentDocument.find(AppointmentDocument.clinic_id == clinic_id).delete()
        await PatientDocument.find(PatientDocument.clinic_id == clinic_id).delete()
        await DoctorDocument.find(DoctorDocument.clinic_id == clinic_id).delete()
        await MembershipDocument.find(MembershipDocument.clinic_id == clinic_id).delete()
        await document.delete()

        logger.info(f"Deleted clinic {clinic_id} and its dependents")

    async def list_clinics_for_user(self, user_id: UUID) -> List[Clinic]:
        memberships = await MembershipDocument.find(MembershipDocument.user_id == user_id).to_list()
        clinic_ids = [m.clinic_id for m in memberships]
        if not clinic_ids:
            return []
        documents = await ClinicDocument.find(
            {"_id": {"$in": clinic_ids}}
        ).sort(+ClinicDocument.created_at).to_list()
        return [d.to_record() for d in documents]

    # ============== Memberships ==============

    async def add_member(self, user_id: UUID, clinic_id: UUID) -> Membership:
        if await UserDocument.get(user_id) is None:
            raise NotFoundError(f"User {user_id} not found")
        if await ClinicDocument.get(clinic_id) is None:
            raise NotFoundError(f"Clinic {clinic_id} not found")
        now = self.clock.now()
        document = MembershipDocument(user_id=user_id, clinic_id=clinic_id, created_at=now, updated_at=now)
        try:
            await document.insert()
        except DuplicateKeyError:
            raise ConstraintViolationError(f"User {user_id} is already a member of clinic {clinic_id}")
        return document.to_record()

    async def remove_member(self, user_id: UUID, clinic_id: UUID) -> None:
        document = await MembershipDocument.find_one(
            MembershipDocument.user_id == user_id,
            MembershipDocument.clinic_id == clinic_id,
        )
        if document is None:
            raise NotFoundError(f"User {user_id} is not a member of clinic {clinic_id}")
        await document.delete()

    async def is_member(self, user_id: UUID, clinic_id: UUID) -> bool:
        count = await MembershipDocument.find(
            MembershipDocument.user_id == user_id,
            MembershipDocument.clinic_id == clinic_id,
        ).count()
        return count > 0

    async def list_members(self, clinic_id: UUID) -> List[Membership]:
        documents = await MembershipDocument.find(
            MembershipDocument.clinic_id == clinic_id
        ).sort(+MembershipDocument.created_at).to_list()
        return [d.to_record() for d in documents]

    # ============== Doctors ==============

    async def create_doctor(self, doctor: Doctor) -> Doctor:
        if await ClinicDocument.get(doctor.clinic_id) is None:
            raise ConstraintViolationError(f"Clinic {doctor.clinic_id} does not exist")
        return await self._insert(DoctorDocument.from_record(doctor), "Doctor")

    async def get_doctor(self, doctor_id: UUID, clinic_id: Optional[UUID] = None) -> Doctor:
        document = await self._get(DoctorDocument, doctor_id, clinic_id, "Doctor")
        return document.to_record()

    async def update_doctor(self, doctor: Doctor) -> Doctor:
        document = await self._get(DoctorDocument, doctor.id, doctor.clinic_id, "Doctor")
        return await self._replace(document, doctor, "Doctor")

    async def delete_doctor(self, doctor_id: UUID, clinic_id: UUID) -> None:
        document = await self._get(DoctorDocument, doctor_id, clinic_id, "Doctor")
        if await AppointmentDocument.find(AppointmentDocument.doctor_id == doctor_id).count():
            raise ConstraintViolationError(f"Doctor {doctor_id} is referenced by appointments")
        await document.delete()

    async def list_doctors(self, clinic_id: UUID) -> List[Doctor]:
        documents = await DoctorDocument.find(
            DoctorDocument.clinic_id == clinic_id
        ).sort(+DoctorDocument.name).to_list()
        return [d.to_record() for d in documents]

    # ============== Patients ==============

    async def create_patient(self, patient: Patient) -> Patient:
        if await ClinicDocument.get(patient.clinic_id) is None:
            raise ConstraintViolationError(f"Clinic {patient.clinic_id} does not exist")
        return await self._insert(PatientDocument.from_record(patient), "Patient")

    async def get_patient(self, patient_id: UUID, clinic_id: Optional[UUID] = None) -> Patient:
        document = await self._get(PatientDocument, patient_id, clinic_id, "Patient")
        return document.to_record()

    async def update_patient(self, patient: Patient) -> Patient:
        document = await self._get(PatientDocument, patient.id, patient.clinic_id, "Patient")
        return await self._replace(document, patient, "Patient")

    async def delete_patient(self, patient_id: UUID, clinic_id: UUID) -> None:
        document = await self._get(PatientDocument, patient_id, clinic_id, "Patient")
        if await AppointmentDocument.find(AppointmentDocument.patient_id == patient_id).count():
            raise ConstraintViolationError(f"Patient {patient_id} is referenced by appointments")
        await document.delete()

    async def list_patients(self, clinic_id: UUID) -> List[Patient]:
        documents = await PatientDocument.find(
            PatientDocument.clinic_id == clinic_id
        ).sort(+PatientDocument.name).to_list()
        return [d.to_record() for d in documents]

    async def find_patient_by_email(self, email: str) -> Optional[Patient]:
        document = await PatientDocument.find_one(PatientDocument.email == email.strip().lower())
        return document.to_record() if document else None

    # ============== Appointments ==============

    async def _check_references(self, appointment: Appointment) -> None:
        if await ClinicDocument.get(appointment.clinic_id) is None:
            raise ConstraintViolationError(f"Clinic {appointment.clinic_id} does not exist")
        doctor = await DoctorDocument.get(appointment.doctor_id)
        if doctor is None or doctor.clinic_id != appointment.clinic_id:
            raise ConstraintViolationError(
                f"Doctor {appointment.doctor_id} does not exist in clinic {appointment.clinic_id}"
            )
        patient = await PatientDocument.get(appointment.patient_id)
        if patient is None or patient.clinic_id != appointment.clinic_id:
            raise ConstraintViolationError(
                f"Patient {appointment.patient_id} does not exist in clinic {appointment.clinic_id}"
            )

    async def create_appointment(self, appointment: Appointment) -> Appointment:
        await self._check_references(appointment)
        return await self._insert(AppointmentDocument.from_record(appointment), "Appointment")

    async def get_appointment(
        self,
        appointment_id: UUID,
        clinic_id: Optional[UUID] = None
    ) -> Appointment:
        document = await self._get(AppointmentDocument, appointment_id, clinic_id, "Appointment")
        return document.to_record()

    async def update_appointment(self, appointment: Appointment) -> Appointment:
        document = await self._get(AppointmentDocument, appointment.id, appointment.clinic_id, "Appointment")
        await self._check_references(appointment)
        return await self._replace(document, appointment, "Appointment")

    async def list_appointments_for_doctor(
        self,
        clinic_id: UUID,
        doctor_id: UUID,
        start: datetime,
        end: datetime,
        include_cancelled: bool = False
    ) -> List[Appointment]:
        query = AppointmentDocument.find(
            AppointmentDocument.clinic_id == clinic_id,
            AppointmentDocument.doctor_id == doctor_id,
            AppointmentDocument.date >= as_utc(start),
            AppointmentDocument.date < as_utc(end),
        )
        if not include_cancelled:
            query = query.find({"status": {"$ne": AppointmentStatus.CANCELLED.value}})
        documents = await query.sort(+AppointmentDocument.date, +AppointmentDocument.created_at).to_list()
        return [d.to_record() for d in documents]

    async def find_appointment_by_idempotency_key(
        self,
        clinic_id: UUID,
        key: str
    ) -> Optional[Appointment]:
        document = await AppointmentDocument.find_one(
            AppointmentDocument.clinic_id == clinic_id,
            AppointmentDocument.idempotency_key == key,
        )
        return document.to_record() if document else None
