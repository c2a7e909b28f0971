# Doctors Feature - Router

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from clinicdesk.dependencies import get_acting_user_id, get_doctor_service
from clinicdesk.features.doctors.schemas import (
    CreateDoctorRequest,
    DoctorListResponse,
    DoctorResponse,
    UpdateDoctorRequest,
)
from clinicdesk.features.doctors.service import DoctorService


router = APIRouter(prefix="/clinics/{clinic_id}/doctors", tags=["Doctors"])


@router.post("", response_model=DoctorResponse, status_code=status.HTTP_201_CREATED)
async def create_doctor(
    clinic_id: UUID,
    request: CreateDoctorRequest,
    acting_user_id: UUID = Depends(get_acting_user_id),
    service: DoctorService = Depends(get_doctor_service),
):
    """
    Add a doctor to a clinic.
    
    - **available_from_weekday** / **available_to_weekday**: 1=Monday .. 7=Sunday
    - **available_from_time** / **available_to_time**: daily window in clinic local time
    """
    doctor = await service.create_doctor(acting_user_id, clinic_id, request)
    return DoctorService.doctor_to_response(doctor)


@router.get("", response_model=DoctorListResponse)
async def list_doctors(
    clinic_id: UUID,
    acting_user_id: UUID = Depends(get_acting_user_id),
    service: DoctorService = Depends(get_doctor_service),
):
    doctors = await service.list_doctors(acting_user_id, clinic_id)
    return DoctorListResponse(
        doctors=[DoctorService.doctor_to_response(d) for d in doctors],
        total=len(doctors),
    )


@router.get("/{doctor_id}", response_model=DoctorResponse)
async def get_doctor(
    clinic_id: UUID,
    doctor_id: UUID,
    acting_user_id: UUID = Depends(get_acting_user_id),
    service: DoctorService = Depends(get_doctor_service),
):
    doctor = await service.get_doctor(acting_user_id, clinic_id, doctor_id)
    return DoctorService.doctor_to_response(doctor)


@router.patch("/{doctor_id}", response_model=DoctorResponse)
async def update_doctor(
    clinic_id: UUID,
    doctor_id: UUID,
    request: UpdateDoctorRequest,
    acting_user_id: UUID = Depends(get_acting_user_id),
    service: DoctorService = Depends(get_doctor_service),
):
    doctor = await service.update_doctor(acting_user_id, clinic_id, doctor_id, request)
    return DoctorService.doctor_to_response(doctor)


@router.delete("/{doctor_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_doctor(
    clinic_id: UUID,
    doctor_id: UUID,
    acting_user_id: UUID = Depends(get_acting_user_id),
    service: DoctorService = Depends(get_doctor_service),
):
    await service.delete_doctor(acting_user_id, clinic_id, doctor_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
