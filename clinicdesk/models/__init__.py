"""Entity records."""

from clinicdesk.models.clinic import Clinic
from clinicdesk.models.user import User, Membership
from clinicdesk.models.doctor import Doctor, WEEKDAY_NAMES
from clinicdesk.models.patient import Patient, PatientSex
from clinicdesk.models.appointment import Appointment, AppointmentStatus

__all__ = [
    "Clinic",
    "User",
    "Membership",
    "Doctor",
    "WEEKDAY_NAMES",
    "Patient",
    "PatientSex",
    "Appointment",
    "AppointmentStatus",
]
