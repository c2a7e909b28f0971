# Clinic - Models

from pydantic import Field, field_validator

from clinicdesk.shared.models import Record


class Clinic(Record):
    """Tenant root. Owns doctors, patients, appointments and memberships."""
    
    name: str = Field(..., min_length=1, max_length=200)
    
    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Clinic name must not be empty")
        return value
