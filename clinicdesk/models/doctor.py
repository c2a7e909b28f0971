# Doctor - Models

from datetime import time
from uuid import UUID

from pydantic import Field, field_validator, model_validator

from clinicdesk.shared.models import Record


# 1 - Monday, 2 - Tuesday, ... 7 - Sunday
WEEKDAY_NAMES = {
    1: "Monday",
    2: "Tuesday",
    3: "Wednesday",
    4: "Thursday",
    5: "Friday",
    6: "Saturday",
    7: "Sunday",
}


class Doctor(Record):
    """
    Doctor working at one clinic.
    
    Availability is a recurring weekly window: a weekday range (ISO numbering,
    may wrap past Sunday, e.g. Friday -> Monday) combined with a daily time
    range interpreted in the clinic's local time.
    """
    
    clinic_id: UUID
    name: str = Field(..., min_length=1, max_length=200)
    specialty: str = Field(..., min_length=1, max_length=200)
    avatar_image_url: str = ""
    available_from_weekday: int = Field(..., ge=1, le=7)
    available_to_weekday: int = Field(..., ge=1, le=7)
    available_from_time: time
    available_to_time: time
    appointment_price_in_cents: int = Field(..., ge=0)
    
    @field_validator("name", "specialty")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value
    
    @model_validator(mode="after")
    def check_time_range(self) -> "Doctor":
        if self.available_from_time >= self.available_to_time:
            raise ValueError("available_from_time must be earlier than available_to_time")
        return self
