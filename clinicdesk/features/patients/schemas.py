# Patients Feature - Schemas

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from clinicdesk.models import PatientSex


class CreatePatientRequest(BaseModel):
    """Request schema for registering a patient."""
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone_number: str = Field(..., min_length=1, max_length=30)
    sex: PatientSex


class UpdatePatientRequest(BaseModel):
    """Request schema for updating patient contact data."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = Field(None, min_length=1, max_length=30)
    sex: Optional[PatientSex] = None
    version: int = Field(..., ge=0, description="Version the change is based on")


class PatientResponse(BaseModel):
    """Response schema for patient data."""
    id: UUID
    clinic_id: UUID
    name: str
    email: str
    phone_number: str
    sex: PatientSex
    version: int
    created_at: datetime
    updated_at: datetime


class PatientListResponse(BaseModel):
    """Response schema for list of patients."""
    patients: List[PatientResponse]
    total: int
