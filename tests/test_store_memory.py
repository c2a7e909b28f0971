"""In-memory Entity Store: CRUD, tenant scoping, constraints and cascades."""

from datetime import timedelta
from uuid import uuid4

import pytest

from clinicdesk.models import Appointment, AppointmentStatus, Clinic, User
from clinicdesk.shared.errors import (
    ConcurrencyConflictError,
    ConstraintViolationError,
    NotFoundError,
)

from tests.utils import MONDAY, local, make_doctor, make_patient, seed_clinic


def appointment_for(seeded, hour, minute=0, **overrides) -> Appointment:
    fields = dict(
        clinic_id=seeded.clinic.id,
        doctor_id=seeded.doctor.id,
        patient_id=seeded.patient.id,
        date=local(MONDAY, hour, minute),
    )
    fields.update(overrides)
    return Appointment(**fields)


class TestClinics:
    @pytest.mark.asyncio
    async def test_create_stamps_timestamps_and_version(self, store, clock):
        clinic = await store.create_clinic(Clinic(name="Clinica Sul"))
        assert clinic.created_at == clock.now()
        assert clinic.updated_at == clock.now()
        assert clinic.version == 0

    @pytest.mark.asyncio
    async def test_update_bumps_version(self, store, clock):
        clinic = await store.create_clinic(Clinic(name="Clinica Sul"))
        clock.advance(minutes=5)
        renamed = await store.update_clinic(clinic.model_copy(update={"name": "Clinica Sul II"}))
        assert renamed.version == 1
        assert renamed.updated_at == clock.now()
        assert renamed.created_at == clinic.created_at
        assert (await store.get_clinic(clinic.id)).name == "Clinica Sul II"

    @pytest.mark.asyncio
    async def test_stale_version_rejected(self, store):
        clinic = await store.create_clinic(Clinic(name="Clinica Sul"))
        await store.update_clinic(clinic.model_copy(update={"name": "First"}))
        with pytest.raises(ConcurrencyConflictError):
            await store.update_clinic(clinic.model_copy(update={"name": "Second"}))

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self, store):
        clinic = await store.create_clinic(Clinic(name="Clinica Sul"))
        clinic.name = "mutated"
        assert (await store.get_clinic(clinic.id)).name == "Clinica Sul"

    @pytest.mark.asyncio
    async def test_missing_clinic(self, store):
        with pytest.raises(NotFoundError):
            await store.get_clinic(uuid4())
        with pytest.raises(NotFoundError):
            await store.delete_clinic(uuid4())

    @pytest.mark.asyncio
    async def test_list_clinics_for_user(self, store, clock):
        user_id = uuid4()
        first = await seed_clinic(store, "First", user_id=user_id)
        clock.advance(minutes=1)
        second = await seed_clinic(store, "Second", user_id=user_id)
        await seed_clinic(store, "Someone else's")
        clinics = await store.list_clinics_for_user(user_id)
        assert [c.id for c in clinics] == [first.clinic.id, second.clinic.id]

    @pytest.mark.asyncio
    async def test_delete_cascades(self, store, seeded):
        other = await seed_clinic(store, "Other")
        appointment = await store.create_appointment(appointment_for(seeded, 10))

        await store.delete_clinic(seeded.clinic.id)

        with pytest.raises(NotFoundError):
            await store.get_appointment(appointment.id)
        with pytest.raises(NotFoundError):
            await store.get_doctor(seeded.doctor.id)
        with pytest.raises(NotFoundError):
            await store.get_patient(seeded.patient.id)
        assert not await store.is_member(seeded.user_id, seeded.clinic.id)
        # The user outlives the clinic; other tenants are untouched
        assert await store.get_user(seeded.user_id)
        assert await store.get_doctor(other.doctor.id, other.clinic.id)
        assert await store.is_member(other.user_id, other.clinic.id)


class TestMemberships:
    @pytest.mark.asyncio
    async def test_add_and_remove(self, store, seeded):
        newcomer = await store.create_user(User(id=uuid4()))
        await store.add_member(newcomer.id, seeded.clinic.id)
        assert await store.is_member(newcomer.id, seeded.clinic.id)
        assert {m.user_id for m in await store.list_members(seeded.clinic.id)} == {seeded.user_id, newcomer.id}

        await store.remove_member(newcomer.id, seeded.clinic.id)
        assert not await store.is_member(newcomer.id, seeded.clinic.id)

    @pytest.mark.asyncio
    async def test_duplicate_membership(self, store, seeded):
        with pytest.raises(ConstraintViolationError):
            await store.add_member(seeded.user_id, seeded.clinic.id)

    @pytest.mark.asyncio
    async def test_unknown_user_or_clinic(self, store, seeded):
        with pytest.raises(NotFoundError):
            await store.add_member(uuid4(), seeded.clinic.id)
        with pytest.raises(NotFoundError):
            await store.add_member(seeded.user_id, uuid4())

    @pytest.mark.asyncio
    async def test_remove_non_member(self, store, seeded):
        with pytest.raises(NotFoundError):
            await store.remove_member(uuid4(), seeded.clinic.id)

    @pytest.mark.asyncio
    async def test_ensure_user_is_idempotent(self, store):
        user_id = uuid4()
        first = await store.ensure_user(user_id)
        second = await store.ensure_user(user_id)
        assert first.id == second.id == user_id


class TestDoctorsAndPatients:
    @pytest.mark.asyncio
    async def test_doctor_requires_existing_clinic(self, store):
        with pytest.raises(ConstraintViolationError):
            await store.create_doctor(make_doctor(uuid4()))

    @pytest.mark.asyncio
    async def test_clinic_scope_hides_other_tenants(self, store, seeded):
        other = await seed_clinic(store, "Other")
        with pytest.raises(NotFoundError):
            await store.get_doctor(seeded.doctor.id, other.clinic.id)
        with pytest.raises(NotFoundError):
            await store.get_patient(seeded.patient.id, other.clinic.id)
        # Unscoped reads still resolve
        assert (await store.get_doctor(seeded.doctor.id)).clinic_id == seeded.clinic.id

    @pytest.mark.asyncio
    async def test_update_cannot_move_doctor_between_clinics(self, store, seeded):
        other = await seed_clinic(store, "Other")
        with pytest.raises(NotFoundError):
            await store.update_doctor(seeded.doctor.model_copy(update={"clinic_id": other.clinic.id}))

    @pytest.mark.asyncio
    async def test_list_doctors_sorted_by_name(self, store, seeded):
        await store.create_doctor(make_doctor(seeded.clinic.id, name="Dr. Bruno Reis"))
        names = [d.name for d in await store.list_doctors(seeded.clinic.id)]
        assert names == ["Dr. Ana Souza", "Dr. Bruno Reis"]

    @pytest.mark.asyncio
    async def test_email_unique_across_clinics(self, store, seeded):
        other = await seed_clinic(store, "Other")
        with pytest.raises(ConstraintViolationError):
            await store.create_patient(make_patient(other.clinic.id, email=seeded.patient.email.upper()))

    @pytest.mark.asyncio
    async def test_update_patient_email_conflict(self, store, seeded):
        second = await store.create_patient(make_patient(seeded.clinic.id, email="bia@example.com"))
        with pytest.raises(ConstraintViolationError):
            await store.update_patient(second.model_copy(update={"email": seeded.patient.email}))
        # Keeping one's own email is fine
        updated = await store.update_patient(second.model_copy(update={"phone_number": "555"}))
        assert updated.version == 1

    @pytest.mark.asyncio
    async def test_find_patient_by_email(self, store, seeded):
        found = await store.find_patient_by_email(f"  {seeded.patient.email.upper()} ")
        assert found.id == seeded.patient.id
        assert await store.find_patient_by_email("nobody@example.com") is None

    @pytest.mark.asyncio
    async def test_delete_refused_while_referenced(self, store, seeded):
        await store.create_appointment(appointment_for(seeded, 10))
        with pytest.raises(ConstraintViolationError):
            await store.delete_doctor(seeded.doctor.id, seeded.clinic.id)
        with pytest.raises(ConstraintViolationError):
            await store.delete_patient(seeded.patient.id, seeded.clinic.id)

    @pytest.mark.asyncio
    async def test_delete_unreferenced(self, store, seeded):
        await store.delete_doctor(seeded.doctor.id, seeded.clinic.id)
        await store.delete_patient(seeded.patient.id, seeded.clinic.id)
        assert await store.list_doctors(seeded.clinic.id) == []
        assert await store.list_patients(seeded.clinic.id) == []


class TestAppointments:
    @pytest.mark.asyncio
    async def test_same_slot_rejected(self, store, seeded):
        await store.create_appointment(appointment_for(seeded, 10))
        with pytest.raises(ConstraintViolationError):
            await store.create_appointment(appointment_for(seeded, 10))

    @pytest.mark.asyncio
    async def test_cancelled_slot_can_be_rebooked(self, store, seeded):
        first = await store.create_appointment(appointment_for(seeded, 10))
        await store.update_appointment(first.model_copy(update={"status": AppointmentStatus.CANCELLED}))
        second = await store.create_appointment(appointment_for(seeded, 10))
        assert second.is_active

    @pytest.mark.asyncio
    async def test_cross_clinic_references_rejected(self, store, seeded):
        other = await seed_clinic(store, "Other")
        with pytest.raises(ConstraintViolationError):
            await store.create_appointment(appointment_for(seeded, 10, patient_id=other.patient.id))
        with pytest.raises(ConstraintViolationError):
            await store.create_appointment(appointment_for(seeded, 10, doctor_id=other.doctor.id))

    @pytest.mark.asyncio
    async def test_idempotency_key_unique_per_clinic(self, store, seeded):
        await store.create_appointment(appointment_for(seeded, 10, idempotency_key="req-1"))
        with pytest.raises(ConstraintViolationError):
            await store.create_appointment(appointment_for(seeded, 11, idempotency_key="req-1"))
        found = await store.find_appointment_by_idempotency_key(seeded.clinic.id, "req-1")
        assert found.date == local(MONDAY, 10)
        assert await store.find_appointment_by_idempotency_key(seeded.clinic.id, "req-2") is None

    @pytest.mark.asyncio
    async def test_update_with_stale_version(self, store, seeded):
        created = await store.create_appointment(appointment_for(seeded, 10))
        await store.update_appointment(created.model_copy(update={"date": local(MONDAY, 11)}))
        with pytest.raises(ConcurrencyConflictError):
            await store.update_appointment(created.model_copy(update={"date": local(MONDAY, 12)}))

    @pytest.mark.asyncio
    async def test_list_for_doctor(self, store, seeded):
        late = await store.create_appointment(appointment_for(seeded, 15))
        early = await store.create_appointment(appointment_for(seeded, 9))
        cancelled = await store.create_appointment(
            appointment_for(seeded, 12, status=AppointmentStatus.CANCELLED)
        )
        await store.create_appointment(appointment_for(seeded, 10, date=local(MONDAY, 10) + timedelta(days=1)))

        start, end = local(MONDAY, 0), local(MONDAY, 23)
        active = await store.list_appointments_for_doctor(seeded.clinic.id, seeded.doctor.id, start, end)
        assert [a.id for a in active] == [early.id, late.id]

        everything = await store.list_appointments_for_doctor(
            seeded.clinic.id, seeded.doctor.id, start, end, include_cancelled=True
        )
        assert [a.id for a in everything] == [early.id, cancelled.id, late.id]

    @pytest.mark.asyncio
    async def test_list_range_is_half_open(self, store, seeded):
        appointment = await store.create_appointment(appointment_for(seeded, 10))
        before = await store.list_appointments_for_doctor(
            seeded.clinic.id, seeded.doctor.id, local(MONDAY, 9), local(MONDAY, 10)
        )
        from_start = await store.list_appointments_for_doctor(
            seeded.clinic.id, seeded.doctor.id, local(MONDAY, 10), local(MONDAY, 11)
        )
        assert before == []
        assert [a.id for a in from_start] == [appointment.id]
