# Doctors Feature - Service

from typing import List
from uuid import UUID

from pydantic import ValidationError

from clinicdesk.core.logging import logger
from clinicdesk.features.doctors.schemas import (
    CreateDoctorRequest,
    DoctorResponse,
    UpdateDoctorRequest,
)
from clinicdesk.models import Doctor
from clinicdesk.scheduling.access import AccessGate
from clinicdesk.shared.exceptions import BadRequestException
from clinicdesk.store.base import EntityStore


class DoctorService:
    """Service class for doctor management within a clinic."""
    
    def __init__(self, store: EntityStore):
        self.store = store
        self.gate = AccessGate(store)
    
    @staticmethod
    def doctor_to_response(doctor: Doctor) -> DoctorResponse:
        return DoctorResponse(**doctor.model_dump())
    
    async def create_doctor(
        self,
        acting_user_id: UUID,
        clinic_id: UUID,
        request: CreateDoctorRequest
    ) -> Doctor:
        await self.gate.require(acting_user_id, clinic_id)
        try:
            doctor = Doctor(clinic_id=clinic_id, **request.model_dump())
        except ValidationError as e:
            raise BadRequestException(f"Invalid doctor: {e.errors()[0]['msg']}")
        doctor = await self.store.create_doctor(doctor)
        logger.info(f"Created doctor {doctor.id} ({doctor.name}) in clinic {clinic_id}")
        return doctor
    
    async def get_doctor(self, acting_user_id: UUID, clinic_id: UUID, doctor_id: UUID) -> Doctor:
        await self.gate.require(acting_user_id, clinic_id)
        return await self.store.get_doctor(doctor_id, clinic_id)
    
    async def list_doctors(self, acting_user_id: UUID, clinic_id: UUID) -> List[Doctor]:
        await self.gate.require(acting_user_id, clinic_id)
        return await self.store.list_doctors(clinic_id)
    
    async def update_doctor(
        self,
        acting_user_id: UUID,
        clinic_id: UUID,
        doctor_id: UUID,
        request: UpdateDoctorRequest
    ) -> Doctor:
        """
        Apply a partial update.
        
        Existing appointments are kept even if they fall outside a narrowed
        availability window; only new bookings see the new schedule.
        """
        await self.gate.require(acting_user_id, clinic_id)
        doctor = await self.store.get_doctor(doctor_id, clinic_id)
        
        changes = request.model_dump(exclude_unset=True)
        try:
            updated = Doctor.model_validate({**doctor.model_dump(), **changes})
        except ValidationError as e:
            raise BadRequestException(f"Invalid doctor: {e.errors()[0]['msg']}")
        
        doctor = await self.store.update_doctor(updated)
        logger.info(f"Updated doctor {doctor_id} fields: {sorted(k for k in changes if k != 'version')}")
        return doctor
    
    async def delete_doctor(self, acting_user_id: UUID, clinic_id: UUID, doctor_id: UUID) -> None:
        await self.gate.require(acting_user_id, clinic_id)
        await self.store.delete_doctor(doctor_id, clinic_id)
        logger.info(f"Deleted doctor {doctor_id} from clinic {clinic_id}")
