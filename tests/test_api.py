"""HTTP API end to end against the in-memory backend."""

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from clinicdesk.config import settings
from clinicdesk.database import Database
from clinicdesk.main import app

from tests.utils import MONDAY, SATURDAY, TZ, local


API = settings.API_V1_PREFIX

DOCTOR = {
    "name": "Dr. Ana Souza",
    "specialty": "Cardiology",
    "available_from_weekday": 1,
    "available_to_weekday": 5,
    "available_from_time": "09:00:00",
    "available_to_time": "17:00:00",
    "appointment_price_in_cents": 15000,
}


@pytest.fixture
def client(clock):
    with TestClient(app) as test_client:
        Database.store.clock = clock
        Database.engine.clock = clock
        yield test_client


@pytest.fixture
def user_headers():
    return {"X-User-Id": str(uuid4())}


@pytest.fixture
def clinic(client, user_headers):
    response = client.post(f"{API}/clinics", json={"name": "Clinica Central"}, headers=user_headers)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def doctor(client, user_headers, clinic):
    response = client.post(f"{API}/clinics/{clinic['id']}/doctors", json=DOCTOR, headers=user_headers)
    assert response.status_code == 201
    return response.json()


def create_patient(client, headers, clinic_id, email=None):
    response = client.post(
        f"{API}/clinics/{clinic_id}/patients",
        json={
            "name": "Carlos Lima",
            "email": email or f"carlos.{uuid4().hex[:8]}@example.com",
            "phone_number": "+55 11 99999-0000",
            "sex": "male",
        },
        headers=headers,
    )
    return response


@pytest.fixture
def patient(client, user_headers, clinic):
    response = create_patient(client, user_headers, clinic["id"])
    assert response.status_code == 201
    return response.json()


def book(client, headers, clinic, doctor, patient, start, **extra):
    payload = {
        "doctor_id": doctor["id"],
        "patient_id": patient["id"],
        "date": start.isoformat(),
        "timezone": TZ,
    }
    payload.update(extra)
    return client.post(f"{API}/clinics/{clinic['id']}/appointments", json=payload, headers=headers)


class TestService:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_ready_reports_backend(self, client):
        assert client.get("/ready").json() == {"status": "ready", "storage": "memory"}

    def test_root(self, client):
        assert client.get("/").json()["service"] == settings.APP_NAME


class TestIdentity:
    def test_missing_user_header(self, client):
        response = client.get(f"{API}/clinics")
        assert response.status_code == 401

    def test_malformed_user_header(self, client):
        response = client.get(f"{API}/clinics", headers={"X-User-Id": "not-a-uuid"})
        assert response.status_code == 401


class TestClinics:
    def test_creator_becomes_member(self, client, user_headers, clinic):
        listed = client.get(f"{API}/clinics", headers=user_headers).json()
        assert [c["id"] for c in listed["clinics"]] == [clinic["id"]]
        members = client.get(f"{API}/clinics/{clinic['id']}/members", headers=user_headers).json()
        assert [m["user_id"] for m in members] == [user_headers["X-User-Id"]]

    def test_non_member_forbidden(self, client, clinic):
        response = client.get(f"{API}/clinics/{clinic['id']}", headers={"X-User-Id": str(uuid4())})
        assert response.status_code == 403
        assert response.json()["code"] == "unauthorized"

    def test_added_member_gains_access(self, client, user_headers, clinic):
        colleague = str(uuid4())
        response = client.post(
            f"{API}/clinics/{clinic['id']}/members", json={"user_id": colleague}, headers=user_headers
        )
        assert response.status_code == 201
        response = client.get(f"{API}/clinics/{clinic['id']}", headers={"X-User-Id": colleague})
        assert response.status_code == 200

    def test_rename_with_version(self, client, user_headers, clinic):
        url = f"{API}/clinics/{clinic['id']}"
        response = client.patch(url, json={"name": "Clinica Nova", "version": 0}, headers=user_headers)
        assert response.status_code == 200
        assert response.json()["version"] == 1

        stale = client.patch(url, json={"name": "Outra", "version": 0}, headers=user_headers)
        assert stale.status_code == 409
        assert stale.json()["code"] == "conflict"

    def test_blank_name_rejected(self, client, user_headers):
        response = client.post(f"{API}/clinics", json={"name": "   "}, headers=user_headers)
        assert response.status_code == 400

    def test_delete_removes_access(self, client, user_headers, clinic, doctor, patient):
        response = client.delete(f"{API}/clinics/{clinic['id']}", headers=user_headers)
        assert response.status_code == 204
        response = client.get(f"{API}/clinics/{clinic['id']}", headers=user_headers)
        assert response.status_code == 403
        assert client.get(f"{API}/clinics", headers=user_headers).json()["total"] == 0


class TestDoctorsAndPatients:
    def test_doctor_window_validated(self, client, user_headers, clinic):
        invalid = {**DOCTOR, "available_from_time": "18:00:00"}
        response = client.post(f"{API}/clinics/{clinic['id']}/doctors", json=invalid, headers=user_headers)
        assert response.status_code == 422

    def test_update_doctor(self, client, user_headers, clinic, doctor):
        url = f"{API}/clinics/{clinic['id']}/doctors/{doctor['id']}"
        response = client.patch(url, json={"available_to_weekday": 6, "version": 0}, headers=user_headers)
        assert response.status_code == 200
        assert response.json()["available_to_weekday"] == 6

    def test_doctor_not_visible_from_other_clinic(self, client, user_headers, doctor):
        other = client.post(f"{API}/clinics", json={"name": "Outra"}, headers=user_headers).json()
        response = client.get(f"{API}/clinics/{other['id']}/doctors/{doctor['id']}", headers=user_headers)
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    def test_duplicate_patient_email(self, client, user_headers, clinic, patient):
        response = create_patient(client, user_headers, clinic["id"], email=patient["email"])
        assert response.status_code == 409
        assert response.json()["code"] == "constraint_violation"

    def test_doctor_with_appointments_cannot_be_deleted(
        self, client, user_headers, clinic, doctor, patient
    ):
        assert book(client, user_headers, clinic, doctor, patient, local(MONDAY, 10)).status_code == 201
        response = client.delete(f"{API}/clinics/{clinic['id']}/doctors/{doctor['id']}", headers=user_headers)
        assert response.status_code == 409


class TestAppointments:
    def test_booking_flow(self, client, user_headers, clinic, doctor, patient):
        response = book(client, user_headers, clinic, doctor, patient, local(MONDAY, 10))
        assert response.status_code == 201
        appointment = response.json()
        assert appointment["status"] == "confirmed"
        assert appointment["ends_at"].startswith("2026-01-19T13:30:00")

        saturday = book(client, user_headers, clinic, doctor, patient, local(SATURDAY, 10))
        assert saturday.status_code == 422
        assert saturday.json()["code"] == "outside_availability"

        duplicate = book(client, user_headers, clinic, doctor, patient, local(MONDAY, 10))
        assert duplicate.status_code == 409
        assert duplicate.json()["code"] == "slot_conflict"

        moved = client.post(
            f"{API}/appointments/{appointment['id']}/reschedule",
            json={"date": local(MONDAY, 14).isoformat(), "timezone": TZ},
            headers=user_headers,
        )
        assert moved.status_code == 200
        assert moved.json()["id"] == appointment["id"]

        assert book(client, user_headers, clinic, doctor, patient, local(MONDAY, 10)).status_code == 201

        listed = client.get(
            f"{API}/clinics/{clinic['id']}/doctors/{doctor['id']}/appointments",
            params={"start": local(MONDAY, 0).isoformat(), "end": local(MONDAY, 23).isoformat()},
            headers=user_headers,
        ).json()
        assert listed["total"] == 2
        assert listed["appointments"][1]["id"] == appointment["id"]

    def test_cancel_twice(self, client, user_headers, clinic, doctor, patient):
        appointment = book(client, user_headers, clinic, doctor, patient, local(MONDAY, 10)).json()
        url = f"{API}/appointments/{appointment['id']}/cancel"
        first = client.post(url, headers=user_headers)
        second = client.post(url, headers=user_headers)
        assert first.status_code == second.status_code == 200
        assert second.json()["status"] == "cancelled"

    def test_idempotent_booking(self, client, user_headers, clinic, doctor, patient):
        first = book(client, user_headers, clinic, doctor, patient, local(MONDAY, 10), idempotency_key="abc")
        again = book(client, user_headers, clinic, doctor, patient, local(MONDAY, 10), idempotency_key="abc")
        assert again.status_code == 201
        assert again.json()["id"] == first.json()["id"]

        mismatch = book(client, user_headers, clinic, doctor, patient, local(MONDAY, 11), idempotency_key="abc")
        assert mismatch.status_code == 422
        assert mismatch.json()["code"] == "idempotency_mismatch"

    def test_cross_tenant_patient(self, client, user_headers, clinic, doctor):
        other = client.post(f"{API}/clinics", json={"name": "Outra"}, headers=user_headers).json()
        foreign = create_patient(client, user_headers, other["id"]).json()
        response = book(client, user_headers, clinic, doctor, foreign, local(MONDAY, 10))
        assert response.status_code == 400
        assert response.json()["code"] == "tenant_mismatch"

    def test_non_member_cannot_book(self, client, clinic, doctor, patient):
        response = book(client, {"X-User-Id": str(uuid4())}, clinic, doctor, patient, local(MONDAY, 10))
        assert response.status_code == 403

    def test_unknown_timezone_in_body(self, client, user_headers, clinic, doctor, patient):
        response = book(client, user_headers, clinic, doctor, patient, local(MONDAY, 10), timezone="Mars/Base")
        assert response.status_code == 422

    def test_complete_before_start(self, client, user_headers, clinic, doctor, patient):
        appointment = book(client, user_headers, clinic, doctor, patient, local(MONDAY, 10)).json()
        response = client.post(f"{API}/appointments/{appointment['id']}/complete", headers=user_headers)
        assert response.status_code == 409
        assert response.json()["code"] == "invalid_transition"

    def test_get_unknown_appointment(self, client, user_headers):
        response = client.get(f"{API}/appointments/{uuid4()}", headers=user_headers)
        assert response.status_code == 404

    def test_slots(self, client, user_headers, clinic, doctor, patient):
        book(client, user_headers, clinic, doctor, patient, local(MONDAY, 10))
        url = f"{API}/clinics/{clinic['id']}/doctors/{doctor['id']}/slots"
        response = client.get(url, params={"day": MONDAY.isoformat(), "timezone": TZ}, headers=user_headers)
        assert response.status_code == 200
        assert response.json()["total"] == 15

        weekend = client.get(url, params={"day": SATURDAY.isoformat(), "timezone": TZ}, headers=user_headers)
        assert weekend.json()["slots"] == []

        bad = client.get(url, params={"day": MONDAY.isoformat(), "timezone": "Mars/Base"}, headers=user_headers)
        assert bad.status_code == 400
        assert bad.json()["code"] == "bad_request"


def test_not_ready_before_startup():
    with TestClient(app) as test_client:
        pass
    # Lifespan has shut down: the engine is gone
    response = test_client.get("/ready")
    assert response.status_code == 503
    assert response.json()["status"] == "starting"
