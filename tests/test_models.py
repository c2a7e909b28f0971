"""Validation rules of the domain records."""

from datetime import datetime, time, timedelta, timezone
from uuid import uuid4

import pytest
from pydantic import ValidationError

from clinicdesk.models import (
    Appointment,
    AppointmentStatus,
    Clinic,
    Patient,
    PatientSex,
)

from tests.utils import make_doctor, make_patient


class TestClinic:
    def test_name_is_stripped(self):
        assert Clinic(name="  Clinica Norte ").name == "Clinica Norte"

    @pytest.mark.parametrize("name", ["", "   "])
    def test_blank_name_rejected(self, name):
        with pytest.raises(ValidationError):
            Clinic(name=name)


class TestDoctor:
    def test_valid_doctor(self):
        doctor = make_doctor(uuid4())
        assert doctor.version == 0
        assert doctor.available_from_weekday == 1

    def test_wrapping_weekday_range_allowed(self):
        doctor = make_doctor(uuid4(), available_from_weekday=5, available_to_weekday=1)
        assert doctor.available_from_weekday > doctor.available_to_weekday

    @pytest.mark.parametrize("weekday", [0, 8])
    def test_weekday_out_of_range(self, weekday):
        with pytest.raises(ValidationError):
            make_doctor(uuid4(), available_from_weekday=weekday)

    @pytest.mark.parametrize(
        "from_time,to_time",
        [(time(17, 0), time(9, 0)), (time(9, 0), time(9, 0))],
    )
    def test_from_time_must_precede_to_time(self, from_time, to_time):
        with pytest.raises(ValidationError):
            make_doctor(uuid4(), available_from_time=from_time, available_to_time=to_time)

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            make_doctor(uuid4(), appointment_price_in_cents=-1)

    def test_blank_specialty_rejected(self):
        with pytest.raises(ValidationError):
            make_doctor(uuid4(), specialty="  ")


class TestPatient:
    def test_email_is_lowercased(self):
        patient = make_patient(uuid4(), email="Maria.Silva@Example.COM")
        assert patient.email == "maria.silva@example.com"

    def test_invalid_email_rejected(self):
        with pytest.raises(ValidationError):
            make_patient(uuid4(), email="not-an-email")

    def test_unknown_sex_rejected(self):
        with pytest.raises(ValidationError):
            make_patient(uuid4(), sex="other")

    def test_sex_accepts_raw_value(self):
        patient = Patient(
            clinic_id=uuid4(),
            name="Maria",
            email="maria@example.com",
            phone_number="123",
            sex="female",
        )
        assert patient.sex is PatientSex.FEMALE


class TestAppointment:
    def _appointment(self, **overrides):
        fields = dict(
            clinic_id=uuid4(),
            patient_id=uuid4(),
            doctor_id=uuid4(),
            date=datetime(2026, 1, 19, 13, 0, tzinfo=timezone.utc),
        )
        fields.update(overrides)
        return Appointment(**fields)

    def test_defaults_to_confirmed(self):
        appointment = self._appointment()
        assert appointment.status == AppointmentStatus.CONFIRMED
        assert appointment.is_active

    def test_date_normalized_to_utc(self):
        local = datetime(2026, 1, 19, 10, 0, tzinfo=timezone(timedelta(hours=-3)))
        appointment = self._appointment(date=local)
        assert appointment.date == datetime(2026, 1, 19, 13, 0, tzinfo=timezone.utc)
        assert appointment.date.utcoffset() == timedelta(0)

    def test_naive_date_taken_as_utc(self):
        appointment = self._appointment(date=datetime(2026, 1, 19, 13, 0))
        assert appointment.date == datetime(2026, 1, 19, 13, 0, tzinfo=timezone.utc)

    def test_slot_key_identifies_doctor_and_start(self):
        doctor_id = uuid4()
        first = self._appointment(doctor_id=doctor_id)
        local = datetime(2026, 1, 19, 10, 0, tzinfo=timezone(timedelta(hours=-3)))
        second = self._appointment(doctor_id=doctor_id, date=local)
        assert first.slot_key == second.slot_key

    def test_cancelled_appointment_releases_slot_key(self):
        active = self._appointment()
        cancelled = active.model_copy(update={"status": AppointmentStatus.CANCELLED})
        assert not cancelled.is_active
        assert cancelled.slot_key != active.slot_key
        assert str(cancelled.id) in cancelled.slot_key

    def test_completed_still_holds_slot(self):
        completed = self._appointment(status=AppointmentStatus.COMPLETED)
        assert completed.is_active

    def test_date_kept_to_the_millisecond(self):
        appointment = self._appointment(date=datetime(2026, 1, 19, 13, 0, 0, 123456, tzinfo=timezone.utc))
        assert appointment.date.microsecond == 123000

    def test_slot_key_ignores_sub_millisecond_digits(self):
        doctor_id = uuid4()
        fresh = self._appointment(doctor_id=doctor_id, date=datetime(2026, 1, 19, 13, 0, 0, 123456))
        reloaded = self._appointment(doctor_id=doctor_id, date=datetime(2026, 1, 19, 13, 0, 0, 123000))
        assert fresh.slot_key == reloaded.slot_key
        assert fresh.slot_key.endswith("13:00:00.123000+00:00")
