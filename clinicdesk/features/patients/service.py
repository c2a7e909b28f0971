# Patients Feature - Service

from typing import List
from uuid import UUID

from pydantic import ValidationError

from clinicdesk.core.logging import logger
from clinicdesk.features.patients.schemas import (
    CreatePatientRequest,
    PatientResponse,
    UpdatePatientRequest,
)
from clinicdesk.models import Patient
from clinicdesk.scheduling.access import AccessGate
from clinicdesk.shared.errors import ConstraintViolationError
from clinicdesk.shared.exceptions import BadRequestException
from clinicdesk.store.base import EntityStore


class PatientService:
    """Service class for patient management operations."""
    
    def __init__(self, store: EntityStore):
        self.store = store
        self.gate = AccessGate(store)
    
    @staticmethod
    def patient_to_response(patient: Patient) -> PatientResponse:
        return PatientResponse(**patient.model_dump())
    
    async def _ensure_email_free(self, email: str, patient_id=None) -> None:
        # Emails are unique across all clinics
        existing = await self.store.find_patient_by_email(email)
        if existing and existing.id != patient_id:
            raise ConstraintViolationError("A patient with this email already exists")
    
    async def create_patient(
        self,
        acting_user_id: UUID,
        clinic_id: UUID,
        request: CreatePatientRequest
    ) -> Patient:
        """Register a new patient in a clinic."""
        await self.gate.require(acting_user_id, clinic_id)
        await self._ensure_email_free(request.email)
        try:
            patient = Patient(clinic_id=clinic_id, **request.model_dump())
        except ValidationError as e:
            raise BadRequestException(f"Invalid patient: {e.errors()[0]['msg']}")
        patient = await self.store.create_patient(patient)
        logger.info(f"Created patient {patient.id} for clinic {clinic_id}")
        return patient
    
    async def get_patient(self, acting_user_id: UUID, clinic_id: UUID, patient_id: UUID) -> Patient:
        await self.gate.require(acting_user_id, clinic_id)
        return await self.store.get_patient(patient_id, clinic_id)
    
    async def list_patients(self, acting_user_id: UUID, clinic_id: UUID) -> List[Patient]:
        await self.gate.require(acting_user_id, clinic_id)
        return await self.store.list_patients(clinic_id)
    
    async def update_patient(
        self,
        acting_user_id: UUID,
        clinic_id: UUID,
        patient_id: UUID,
        request: UpdatePatientRequest
    ) -> Patient:
        """Update patient information."""
        await self.gate.require(acting_user_id, clinic_id)
        patient = await self.store.get_patient(patient_id, clinic_id)
        
        changes = request.model_dump(exclude_unset=True)
        if changes.get("email"):
            await self._ensure_email_free(changes["email"], patient_id)
        try:
            updated = Patient.model_validate({**patient.model_dump(), **changes})
        except ValidationError as e:
            raise BadRequestException(f"Invalid patient: {e.errors()[0]['msg']}")
        
        patient = await self.store.update_patient(updated)
        logger.info(f"Updated patient {patient_id} in clinic {clinic_id}")
        return patient
    
    async def delete_patient(self, acting_user_id: UUID, clinic_id: UUID, patient_id: UUID) -> None:
        await self.gate.require(acting_user_id, clinic_id)
        await self.store.delete_patient(patient_id, clinic_id)
        logger.info(f"Deleted patient {patient_id} from clinic {clinic_id}")
