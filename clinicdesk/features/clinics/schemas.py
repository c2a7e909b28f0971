# Clinics Feature - Schemas

from datetime import datetime
from typing import List
from uuid import UUID

from pydantic import BaseModel, Field


class CreateClinicRequest(BaseModel):
    """Request schema for creating a clinic."""
    name: str = Field(..., min_length=1, max_length=200)


class UpdateClinicRequest(BaseModel):
    """Request schema for renaming a clinic."""
    name: str = Field(..., min_length=1, max_length=200)
    version: int = Field(..., ge=0, description="Version the change is based on")


class ClinicResponse(BaseModel):
    """Response schema for clinic data."""
    id: UUID
    name: str
    version: int
    created_at: datetime
    updated_at: datetime


class ClinicListResponse(BaseModel):
    clinics: List[ClinicResponse]
    total: int


class AddMemberRequest(BaseModel):
    user_id: UUID


class MembershipResponse(BaseModel):
    user_id: UUID
    clinic_id: UUID
    created_at: datetime
