# Clinics Feature - Service

from typing import List
from uuid import UUID

from pydantic import ValidationError

from clinicdesk.core.logging import logger
from clinicdesk.features.clinics.schemas import (
    AddMemberRequest,
    ClinicResponse,
    CreateClinicRequest,
    MembershipResponse,
    UpdateClinicRequest,
)
from clinicdesk.models import Clinic, Membership
from clinicdesk.scheduling.access import AccessGate
from clinicdesk.shared.errors import SchedulingError
from clinicdesk.shared.exceptions import BadRequestException
from clinicdesk.store.base import EntityStore


class ClinicService:
    """Clinic lifecycle and membership administration."""
    
    def __init__(self, store: EntityStore):
        self.store = store
        self.gate = AccessGate(store)
    
    @staticmethod
    def clinic_to_response(clinic: Clinic) -> ClinicResponse:
        return ClinicResponse(
            id=clinic.id,
            name=clinic.name,
            version=clinic.version,
            created_at=clinic.created_at,
            updated_at=clinic.updated_at,
        )
    
    @staticmethod
    def membership_to_response(membership: Membership) -> MembershipResponse:
        return MembershipResponse(
            user_id=membership.user_id,
            clinic_id=membership.clinic_id,
            created_at=membership.created_at,
        )
    
    async def create_clinic(self, acting_user_id: UUID, request: CreateClinicRequest) -> Clinic:
        """Create a clinic and make the creator its first member."""
        try:
            clinic = Clinic(name=request.name)
        except ValidationError as e:
            raise BadRequestException(f"Invalid clinic: {e.errors()[0]['msg']}")
        
        await self.store.ensure_user(acting_user_id)
        clinic = await self.store.create_clinic(clinic)
        try:
            await self.store.add_member(acting_user_id, clinic.id)
        except SchedulingError:
            # Never leave a clinic nobody can reach
            await self.store.delete_clinic(clinic.id)
            raise
        
        logger.info(f"Created clinic {clinic.id} ({clinic.name}) for user {acting_user_id}")
        return clinic
    
    async def list_my_clinics(self, acting_user_id: UUID) -> List[Clinic]:
        return await self.store.list_clinics_for_user(acting_user_id)
    
    async def get_clinic(self, acting_user_id: UUID, clinic_id: UUID) -> Clinic:
        await self.gate.require(acting_user_id, clinic_id)
        return await self.store.get_clinic(clinic_id)
    
    async def rename_clinic(
        self,
        acting_user_id: UUID,
        clinic_id: UUID,
        request: UpdateClinicRequest
    ) -> Clinic:
        await self.gate.require(acting_user_id, clinic_id)
        clinic = await self.store.get_clinic(clinic_id)
        try:
            renamed = Clinic.model_validate({**clinic.model_dump(), "name": request.name, "version": request.version})
        except ValidationError as e:
            raise BadRequestException(f"Invalid clinic: {e.errors()[0]['msg']}")
        clinic = await self.store.update_clinic(renamed)
        logger.info(f"Renamed clinic {clinic_id} to {clinic.name}")
        return clinic
    
    async def delete_clinic(self, acting_user_id: UUID, clinic_id: UUID) -> None:
        """Delete the clinic with its doctors, patients, appointments and memberships."""
        await self.gate.require(acting_user_id, clinic_id)
        await self.store.delete_clinic(clinic_id)
        logger.info(f"User {acting_user_id} deleted clinic {clinic_id}")
    
    async def add_member(
        self,
        acting_user_id: UUID,
        clinic_id: UUID,
        request: AddMemberRequest
    ) -> Membership:
        await self.gate.require(acting_user_id, clinic_id)
        await self.store.ensure_user(request.user_id)
        membership = await self.store.add_member(request.user_id, clinic_id)
        logger.info(f"User {acting_user_id} added member {request.user_id} to clinic {clinic_id}")
        return membership
    
    async def remove_member(self, acting_user_id: UUID, clinic_id: UUID, user_id: UUID) -> None:
        await self.gate.require(acting_user_id, clinic_id)
        await self.store.remove_member(user_id, clinic_id)
        logger.info(f"User {acting_user_id} removed member {user_id} from clinic {clinic_id}")
    
    async def list_members(self, acting_user_id: UUID, clinic_id: UUID) -> List[Membership]:
        await self.gate.require(acting_user_id, clinic_id)
        return await self.store.list_members(clinic_id)
