# Entity Store - MongoDB documents

from datetime import datetime, time
from typing import Annotated, Optional
from uuid import UUID, uuid4

import pymongo
from beanie import Document, Indexed
from pydantic import Field
from pymongo import IndexModel

from clinicdesk.models import (
    Appointment,
    AppointmentStatus,
    Clinic,
    Doctor,
    Membership,
    Patient,
    PatientSex,
    User,
)
from clinicdesk.shared.models import utcnow


class BaseRecordDocument(Document):
    """Common identity, timestamps and optimistic-concurrency version."""

    id: UUID = Field(default_factory=uuid4)
    version: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def from_record(cls, record):
        return cls(**record.model_dump())


class UserDocument(BaseRecordDocument):
    class Settings:
        name = "users"
        use_revision = True

    def to_record(self) -> User:
        return User.model_validate(self.model_dump())


class ClinicDocument(BaseRecordDocument):
    name: str

    class Settings:
        name = "clinics"
        use_revision = True

    def to_record(self) -> Clinic:
        return Clinic.model_validate(self.model_dump())


class MembershipDocument(Document):
    user_id: UUID
    clinic_id: UUID
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "users_to_clinics"
        indexes = [
            IndexModel(
                [("user_id", pymongo.ASCENDING), ("clinic_id", pymongo.ASCENDING)],
                unique=True,
            ),
            IndexModel([("clinic_id", pymongo.ASCENDING)]),
        ]

    def to_record(self) -> Membership:
        return Membership.model_validate(self.model_dump(exclude={"id", "revision_id"}))


class DoctorDocument(BaseRecordDocument):
    clinic_id: Annotated[UUID, Indexed()]
    name: str
    specialty: str
    avatar_image_url: str = ""
    available_from_weekday: int
    available_to_weekday: int
    # BSON has no time-of-day type; stored as "HH:MM:SS"
    available_from_time: str
    available_to_time: str
    appointment_price_in_cents: int

    class Settings:
        name = "doctors"
        use_revision = True

    @classmethod
    def from_record(cls, record: Doctor) -> "DoctorDocument":
        data = record.model_dump()
        data["available_from_time"] = record.available_from_time.isoformat()
        data["available_to_time"] = record.available_to_time.isoformat()
        return cls(**data)

    def to_record(self) -> Doctor:
        data = self.model_dump()
        data["available_from_time"] = time.fromisoformat(self.available_from_time)
        data["available_to_time"] = time.fromisoformat(self.available_to_time)
        return Doctor.model_validate(data)


class PatientDocument(BaseRecordDocument):
    clinic_id: Annotated[UUID, Indexed()]
    name: str
    email: Indexed(str, unique=True)
    phone_number: str
    sex: PatientSex

    class Settings:
        name = "patients"
        use_revision = True

    def to_record(self) -> Patient:
        return Patient.model_validate(self.model_dump())


class AppointmentDocument(BaseRecordDocument):
    clinic_id: Annotated[UUID, Indexed()]
    patient_id: Annotated[UUID, Indexed()]
    doctor_id: UUID
    date: datetime
    status: AppointmentStatus = AppointmentStatus.CONFIRMED
    idempotency_key: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    # Unique while active; see Appointment.slot_key
    slot_key: Indexed(str, unique=True)

    class Settings:
        name = "appointments"
        use_revision = True
        indexes = [
            IndexModel([("doctor_id", pymongo.ASCENDING), ("date", pymongo.ASCENDING)]),
            # One booking per key and clinic; appointments without a key are not indexed
            IndexModel(
                [("clinic_id", pymongo.ASCENDING), ("idempotency_key", pymongo.ASCENDING)],
                unique=True,
                partialFilterExpression={"idempotency_key": {"$type": "string"}},
            ),
        ]

    @classmethod
    def from_record(cls, record: Appointment) -> "AppointmentDocument":
        return cls(**record.model_dump(), slot_key=record.slot_key)

    def to_record(self) -> Appointment:
        return Appointment.model_validate(self.model_dump(exclude={"slot_key"}))


DOCUMENT_MODELS = [
    UserDocument,
    ClinicDocument,
    MembershipDocument,
    DoctorDocument,
    PatientDocument,
    AppointmentDocument,
]
