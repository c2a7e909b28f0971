# Doctors Feature - Schemas

from datetime import datetime, time
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


# ============== Create Doctor ==============

class CreateDoctorRequest(BaseModel):
    """Request schema for adding a doctor to a clinic."""
    name: str = Field(..., min_length=1, max_length=200)
    specialty: str = Field(..., min_length=1, max_length=200)
    avatar_image_url: str = ""
    available_from_weekday: int = Field(..., ge=1, le=7, description="1=Monday .. 7=Sunday")
    available_to_weekday: int = Field(..., ge=1, le=7, description="May be lower than from_weekday to wrap past Sunday")
    available_from_time: time
    available_to_time: time
    appointment_price_in_cents: int = Field(..., ge=0)
    
    @model_validator(mode="after")
    def check_time_range(self) -> "CreateDoctorRequest":
        if self.available_from_time >= self.available_to_time:
            raise ValueError("available_from_time must be earlier than available_to_time")
        return self


# ============== Update Doctor ==============

class UpdateDoctorRequest(BaseModel):
    """Request schema for updating a doctor. Only provided fields change."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    specialty: Optional[str] = Field(None, min_length=1, max_length=200)
    avatar_image_url: Optional[str] = None
    available_from_weekday: Optional[int] = Field(None, ge=1, le=7)
    available_to_weekday: Optional[int] = Field(None, ge=1, le=7)
    available_from_time: Optional[time] = None
    available_to_time: Optional[time] = None
    appointment_price_in_cents: Optional[int] = Field(None, ge=0)
    version: int = Field(..., ge=0, description="Version the change is based on")


# ============== Doctor Response ==============

class DoctorResponse(BaseModel):
    """Response schema for doctor data."""
    id: UUID
    clinic_id: UUID
    name: str
    specialty: str
    avatar_image_url: str
    available_from_weekday: int
    available_to_weekday: int
    available_from_time: time
    available_to_time: time
    appointment_price_in_cents: int
    version: int
    created_at: datetime
    updated_at: datetime


class DoctorListResponse(BaseModel):
    doctors: List[DoctorResponse]
    total: int
