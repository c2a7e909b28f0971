"""
Shared dependencies across the application.

Route handlers receive the store, the engine and the feature services through
these functions, so tests can swap them with ``app.dependency_overrides``.
"""

from clinicdesk.database import Database
from clinicdesk.features.auth.dependencies import get_acting_user_id
from clinicdesk.features.clinics.service import ClinicService
from clinicdesk.features.doctors.service import DoctorService
from clinicdesk.features.patients.service import PatientService
from clinicdesk.scheduling.engine import SchedulingEngine
from clinicdesk.store.base import EntityStore


def get_store() -> EntityStore:
    if Database.store is None:
        raise RuntimeError("Database is not connected")
    return Database.store


def get_engine() -> SchedulingEngine:
    if Database.engine is None:
        raise RuntimeError("Database is not connected")
    return Database.engine


def get_clinic_service() -> ClinicService:
    return ClinicService(get_store())


def get_doctor_service() -> DoctorService:
    return DoctorService(get_store())


def get_patient_service() -> PatientService:
    return PatientService(get_store())


__all__ = [
    "get_acting_user_id",
    "get_store",
    "get_engine",
    "get_clinic_service",
    "get_doctor_service",
    "get_patient_service",
]
