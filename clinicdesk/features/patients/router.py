# Patients Feature - Router

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from clinicdesk.dependencies import get_acting_user_id, get_patient_service
from clinicdesk.features.patients.schemas import (
    CreatePatientRequest,
    PatientListResponse,
    PatientResponse,
    UpdatePatientRequest,
)
from clinicdesk.features.patients.service import PatientService


router = APIRouter(prefix="/clinics/{clinic_id}/patients", tags=["Patients"])


@router.post("", response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
async def create_patient(
    clinic_id: UUID,
    request: CreatePatientRequest,
    acting_user_id: UUID = Depends(get_acting_user_id),
    service: PatientService = Depends(get_patient_service),
):
    """
    Register a patient in a clinic.
    
    Emails are unique across all clinics.
    """
    patient = await service.create_patient(acting_user_id, clinic_id, request)
    return PatientService.patient_to_response(patient)


@router.get("", response_model=PatientListResponse)
async def list_patients(
    clinic_id: UUID,
    acting_user_id: UUID = Depends(get_acting_user_id),
    service: PatientService = Depends(get_patient_service),
):
    patients = await service.list_patients(acting_user_id, clinic_id)
    return PatientListResponse(
        patients=[PatientService.patient_to_response(p) for p in patients],
        total=len(patients),
    )


@router.get("/{patient_id}", response_model=PatientResponse)
async def get_patient(
    clinic_id: UUID,
    patient_id: UUID,
    acting_user_id: UUID = Depends(get_acting_user_id),
    service: PatientService = Depends(get_patient_service),
):
    patient = await service.get_patient(acting_user_id, clinic_id, patient_id)
    return PatientService.patient_to_response(patient)


@router.patch("/{patient_id}", response_model=PatientResponse)
async def update_patient(
    clinic_id: UUID,
    patient_id: UUID,
    request: UpdatePatientRequest,
    acting_user_id: UUID = Depends(get_acting_user_id),
    service: PatientService = Depends(get_patient_service),
):
    patient = await service.update_patient(acting_user_id, clinic_id, patient_id, request)
    return PatientService.patient_to_response(patient)


@router.delete("/{patient_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_patient(
    clinic_id: UUID,
    patient_id: UUID,
    acting_user_id: UUID = Depends(get_acting_user_id),
    service: PatientService = Depends(get_patient_service),
):
    await service.delete_patient(acting_user_id, clinic_id, patient_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
