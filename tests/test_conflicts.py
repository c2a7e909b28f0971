"""Overlap detection against stored appointments."""

from datetime import timedelta

import pytest

from clinicdesk.models import Appointment, AppointmentStatus
from clinicdesk.scheduling.conflicts import ConflictDetector
from clinicdesk.scheduling.intervals import Interval

from tests.utils import DURATION, MONDAY, local, make_doctor


@pytest.fixture
def detector(store):
    return ConflictDetector(store, DURATION)


async def book(store, seeded, hour, minute=0, **overrides):
    appointment = Appointment(
        clinic_id=seeded.clinic.id,
        doctor_id=seeded.doctor.id,
        patient_id=seeded.patient.id,
        date=local(MONDAY, hour, minute),
        **overrides,
    )
    return await store.create_appointment(appointment)


def candidate(hour, minute=0):
    return Interval.starting_at(local(MONDAY, hour, minute), DURATION)


@pytest.mark.asyncio
async def test_no_appointments_no_conflict(detector, seeded):
    assert not await detector.has_conflict(seeded.clinic.id, seeded.doctor.id, candidate(10))


@pytest.mark.asyncio
async def test_same_start_conflicts(store, detector, seeded):
    existing = await book(store, seeded, 10)
    conflicts = await detector.find_conflicts(seeded.clinic.id, seeded.doctor.id, candidate(10))
    assert [a.id for a in conflicts] == [existing.id]


@pytest.mark.asyncio
async def test_earlier_appointment_reaching_into_candidate(store, detector, seeded):
    await book(store, seeded, 9, 45)
    assert await detector.has_conflict(seeded.clinic.id, seeded.doctor.id, candidate(10))


@pytest.mark.asyncio
async def test_back_to_back_is_free(store, detector, seeded):
    await book(store, seeded, 9, 30)
    await book(store, seeded, 10, 30)
    assert not await detector.has_conflict(seeded.clinic.id, seeded.doctor.id, candidate(10))


@pytest.mark.asyncio
async def test_cancelled_appointment_does_not_conflict(store, detector, seeded):
    await book(store, seeded, 10, status=AppointmentStatus.CANCELLED)
    assert not await detector.has_conflict(seeded.clinic.id, seeded.doctor.id, candidate(10))


@pytest.mark.asyncio
async def test_completed_appointment_still_conflicts(store, detector, seeded):
    await book(store, seeded, 10, status=AppointmentStatus.COMPLETED)
    assert await detector.has_conflict(seeded.clinic.id, seeded.doctor.id, candidate(10, 15))


@pytest.mark.asyncio
async def test_excluded_appointment_ignored(store, detector, seeded):
    existing = await book(store, seeded, 10)
    assert not await detector.has_conflict(
        seeded.clinic.id, seeded.doctor.id, candidate(10, 15), exclude_appointment_id=existing.id
    )


@pytest.mark.asyncio
async def test_other_doctor_does_not_conflict(store, detector, seeded):
    await book(store, seeded, 10)
    other = await store.create_doctor(make_doctor(seeded.clinic.id, name="Dr. Bruno Reis"))
    assert not await detector.has_conflict(seeded.clinic.id, other.id, candidate(10))


def test_search_window_covers_at_least_one_duration(store):
    detector = ConflictDetector(store, timedelta(hours=2), search_window=timedelta(minutes=10))
    assert detector.search_window == timedelta(hours=2)
