"""Test utilities."""

from tests.utils.factories import (
    DURATION,
    FRIDAY,
    MONDAY,
    SATURDAY,
    SUNDAY,
    TUESDAY,
    TZ,
    local,
    make_doctor,
    make_patient,
    seed_clinic,
)

__all__ = [
    "DURATION",
    "FRIDAY",
    "MONDAY",
    "SATURDAY",
    "SUNDAY",
    "TUESDAY",
    "TZ",
    "local",
    "make_doctor",
    "make_patient",
    "seed_clinic",
]
