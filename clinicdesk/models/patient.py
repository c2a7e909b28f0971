# Patient - Models

from enum import Enum
from uuid import UUID

from pydantic import EmailStr, Field, field_validator

from clinicdesk.shared.models import Record


class PatientSex(str, Enum):
    MALE = "male"
    FEMALE = "female"


class Patient(Record):
    """Patient registered at one clinic. Email is unique across all clinics."""
    
    clinic_id: UUID
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone_number: str = Field(..., min_length=1, max_length=30)
    sex: PatientSex
    
    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Patient name must not be empty")
        return value
    
    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()
