# Clinics Feature - Router

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from clinicdesk.dependencies import get_acting_user_id, get_clinic_service
from clinicdesk.features.clinics.schemas import (
    AddMemberRequest,
    ClinicListResponse,
    ClinicResponse,
    CreateClinicRequest,
    MembershipResponse,
    UpdateClinicRequest,
)
from clinicdesk.features.clinics.service import ClinicService


router = APIRouter(prefix="/clinics", tags=["Clinics"])


@router.post("", response_model=ClinicResponse, status_code=status.HTTP_201_CREATED)
async def create_clinic(
    request: CreateClinicRequest,
    acting_user_id: UUID = Depends(get_acting_user_id),
    service: ClinicService = Depends(get_clinic_service),
):
    """
    Create a clinic.
    
    The acting user becomes its first member.
    """
    clinic = await service.create_clinic(acting_user_id, request)
    return ClinicService.clinic_to_response(clinic)


@router.get("", response_model=ClinicListResponse)
async def list_my_clinics(
    acting_user_id: UUID = Depends(get_acting_user_id),
    service: ClinicService = Depends(get_clinic_service),
):
    """List the clinics the acting user belongs to."""
    clinics = await service.list_my_clinics(acting_user_id)
    return ClinicListResponse(
        clinics=[ClinicService.clinic_to_response(c) for c in clinics],
        total=len(clinics),
    )


@router.get("/{clinic_id}", response_model=ClinicResponse)
async def get_clinic(
    clinic_id: UUID,
    acting_user_id: UUID = Depends(get_acting_user_id),
    service: ClinicService = Depends(get_clinic_service),
):
    clinic = await service.get_clinic(acting_user_id, clinic_id)
    return ClinicService.clinic_to_response(clinic)


@router.patch("/{clinic_id}", response_model=ClinicResponse)
async def rename_clinic(
    clinic_id: UUID,
    request: UpdateClinicRequest,
    acting_user_id: UUID = Depends(get_acting_user_id),
    service: ClinicService = Depends(get_clinic_service),
):
    clinic = await service.rename_clinic(acting_user_id, clinic_id, request)
    return ClinicService.clinic_to_response(clinic)


@router.delete("/{clinic_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_clinic(
    clinic_id: UUID,
    acting_user_id: UUID = Depends(get_acting_user_id),
    service: ClinicService = Depends(get_clinic_service),
):
    """Delete a clinic together with its doctors, patients and appointments."""
    await service.delete_clinic(acting_user_id, clinic_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============== Members ==============

@router.get("/{clinic_id}/members", response_model=List[MembershipResponse])
async def list_members(
    clinic_id: UUID,
    acting_user_id: UUID = Depends(get_acting_user_id),
    service: ClinicService = Depends(get_clinic_service),
):
    members = await service.list_members(acting_user_id, clinic_id)
    return [ClinicService.membership_to_response(m) for m in members]


@router.post(
    "/{clinic_id}/members",
    response_model=MembershipResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_member(
    clinic_id: UUID,
    request: AddMemberRequest,
    acting_user_id: UUID = Depends(get_acting_user_id),
    service: ClinicService = Depends(get_clinic_service),
):
    membership = await service.add_member(acting_user_id, clinic_id, request)
    return ClinicService.membership_to_response(membership)


@router.delete("/{clinic_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    clinic_id: UUID,
    user_id: UUID,
    acting_user_id: UUID = Depends(get_acting_user_id),
    service: ClinicService = Depends(get_clinic_service),
):
    await service.remove_member(acting_user_id, clinic_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
