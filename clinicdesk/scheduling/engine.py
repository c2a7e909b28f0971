"""
Scheduling Engine

Accepts or rejects booking, reschedule, cancel and completion requests.

Flow for a booking:
    1. Access Gate approves the acting user for the clinic
    2. Doctor and patient exist and belong to the clinic
    3. Requested interval is in the future and inside the doctor's weekly window
    4. No active appointment of the doctor overlaps it
    5. Appointment is written

Steps 3-5 run while holding the doctor's lock, so two requests for the same
doctor never interleave their check-and-write. Requests for different doctors
use different locks and do not contend. A commit-time constraint violation
(another process won the slot) triggers one full re-validation.
"""

import asyncio
import weakref
from contextlib import asynccontextmanager
from datetime import date, datetime, timedelta
from typing import Awaitable, Callable, List, Optional, TypeVar
from uuid import UUID

from clinicdesk.core.clock import Clock
from clinicdesk.core.logging import logger
from clinicdesk.models import (
    Appointment,
    AppointmentStatus,
    Doctor,
    Patient,
    WEEKDAY_NAMES,
)
from clinicdesk.scheduling.access import AccessGate
from clinicdesk.scheduling.availability import (
    daily_window,
    get_timezone,
    is_within_availability,
    to_local,
)
from clinicdesk.scheduling.conflicts import ConflictDetector
from clinicdesk.scheduling.intervals import Interval
from clinicdesk.scheduling.slots import free_slots
from clinicdesk.shared.errors import (
    ConcurrencyConflictError,
    ConstraintViolationError,
    IdempotencyMismatchError,
    InternalError,
    InvalidRequestError,
    InvalidTransitionError,
    OutsideAvailabilityError,
    SchedulingError,
    SlotConflictError,
    StoreTimeoutError,
    TenantMismatchError,
)
from clinicdesk.store.base import EntityStore


T = TypeVar("T")


def describe_window(doctor: Doctor) -> str:
    """Human readable availability, e.g. ``Monday-Friday 09:00-17:00``."""
    return (
        f"{WEEKDAY_NAMES[doctor.available_from_weekday]}-{WEEKDAY_NAMES[doctor.available_to_weekday]} "
        f"{doctor.available_from_time:%H:%M}-{doctor.available_to_time:%H:%M}"
    )


class SchedulingEngine:
    """
    Conflict-free appointment scheduling on top of an Entity Store.

    Args:
        store: persistence backend
        clock: source of "now"; defaults to the store's clock
        duration: length of every appointment
        timeout: default seconds allowed for each store call or lock wait
        search_window: how far around a candidate the conflict check looks
    """

    def __init__(
        self,
        store: EntityStore,
        clock: Optional[Clock] = None,
        duration: timedelta = timedelta(minutes=30),
        timeout: Optional[float] = 5.0,
        search_window: timedelta = timedelta(days=1)
    ):
        if duration <= timedelta(0):
            raise ValueError("Appointment duration must be positive")
        self.store = store
        self.clock = clock or store.clock
        self.duration = duration
        self.timeout = timeout
        self.gate = AccessGate(store)
        self.conflicts = ConflictDetector(store, duration, search_window)
        self._doctor_locks: "weakref.WeakValueDictionary[UUID, asyncio.Lock]" = weakref.WeakValueDictionary()

    # ============== Plumbing ==============

    def _timeout(self, timeout: Optional[float]) -> Optional[float]:
        return self.timeout if timeout is None else timeout

    async def _call(self, awaitable: Awaitable[T], timeout: Optional[float]) -> T:
        """Await a store call under the caller's timeout."""
        try:
            return await asyncio.wait_for(awaitable, timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Store call exceeded {timeout}s timeout")
            raise StoreTimeoutError(f"Store did not answer within {timeout}s")

    @asynccontextmanager
    async def _guard(self, operation: str):
        """Let domain errors through; wrap anything unexpected as InternalError."""
        try:
            yield
        except SchedulingError:
            raise
        except Exception as e:
            logger.exception(f"Unexpected failure in {operation}: {type(e).__name__}: {e}")
            raise InternalError(f"{operation} failed unexpectedly") from e

    def _lock_for(self, doctor_id: UUID) -> asyncio.Lock:
        lock = self._doctor_locks.get(doctor_id)
        if lock is None:
            lock = asyncio.Lock()
            self._doctor_locks[doctor_id] = lock
        return lock

    @asynccontextmanager
    async def _doctor_scope(self, doctor_id: UUID, timeout: Optional[float]):
        """Hold the doctor's lock for the duration of a check-and-write."""
        lock = self._lock_for(doctor_id)
        try:
            await asyncio.wait_for(lock.acquire(), timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Timed out waiting for the agenda of doctor {doctor_id}")
            raise StoreTimeoutError(f"Agenda of doctor {doctor_id} is busy, retry later")
        try:
            yield
        finally:
            lock.release()

    async def _commit(self, awaitable: Awaitable[T], timeout: Optional[float]) -> T:
        """
        Run a validated write under the caller's timeout.

        The write is shielded from caller cancellation: a cancelled request
        either committed fully or never started writing. On timeout the write
        is cancelled and awaited; StoreTimeoutError is raised only when it did
        not land. The doctor's lock is kept until the write has settled.
        """
        write = asyncio.ensure_future(awaitable)
        try:
            return await asyncio.wait_for(asyncio.shield(write), timeout)
        except asyncio.TimeoutError:
            write.cancel()
            await asyncio.wait([write])
            if write.cancelled():
                logger.warning(f"Store write exceeded {timeout}s timeout; nothing was written")
                raise StoreTimeoutError(f"Store did not commit within {timeout}s")
            if write.exception() is not None:
                raise write.exception()
            logger.info(f"Store write landed just past the {timeout}s timeout")
            return write.result()
        except asyncio.CancelledError:
            await asyncio.wait([write])
            if not write.cancelled() and write.exception() is None:
                logger.info("Request cancelled after its write was committed")
            raise

    async def _retry_once(self, operation: str, attempt: Callable[[], Awaitable[T]]) -> T:
        try:
            return await attempt()
        except (ConstraintViolationError, ConcurrencyConflictError) as e:
            logger.warning(f"{operation} lost a race at commit ({e.code}: {e.message}); re-validating")
            return await attempt()

    def _check_timezone(self, timezone: str) -> None:
        try:
            get_timezone(timezone)
        except ValueError as e:
            raise InvalidRequestError(str(e)) from e

    def _check_not_past(self, requested: Interval) -> None:
        now = self.clock.now()
        if requested.start <= now:
            raise OutsideAvailabilityError(
                f"Requested time {requested.start.isoformat()} is not in the future"
            )

    async def _load_participants(
        self,
        clinic_id: UUID,
        doctor_id: UUID,
        patient_id: UUID,
        timeout: Optional[float]
    ) -> "tuple[Doctor, Patient]":
        doctor = await self._call(self.store.get_doctor(doctor_id), timeout)
        patient = await self._call(self.store.get_patient(patient_id), timeout)
        if doctor.clinic_id != clinic_id or patient.clinic_id != clinic_id:
            logger.warning(
                f"Tenant mismatch: clinic {clinic_id}, doctor clinic {doctor.clinic_id}, "
                f"patient clinic {patient.clinic_id}"
            )
            raise TenantMismatchError(
                f"Doctor {doctor_id} and patient {patient_id} must both belong to clinic {clinic_id}"
            )
        return doctor, patient

    async def _validate_slot(
        self,
        doctor: Doctor,
        requested: Interval,
        timezone: str,
        timeout: Optional[float],
        exclude_appointment_id: Optional[UUID] = None
    ) -> None:
        if not is_within_availability(doctor, requested, timezone):
            local_start = to_local(requested.start, timezone)
            local_end = to_local(requested.end, timezone)
            logger.info(f"Rejected {local_start:%A %H:%M} for doctor {doctor.id}: outside availability")
            raise OutsideAvailabilityError(
                f"Doctor {doctor.name} is available {describe_window(doctor)} ({timezone}); "
                f"requested {local_start:%A %Y-%m-%d %H:%M}-{local_end:%H:%M}"
            )

        conflicts = await self._call(
            self.conflicts.find_conflicts(doctor.clinic_id, doctor.id, requested, exclude_appointment_id),
            timeout,
        )
        if conflicts:
            logger.info(f"Rejected {requested.start.isoformat()} for doctor {doctor.id}: slot taken")
            taken = to_local(conflicts[0].date, timezone)
            raise SlotConflictError(
                f"Doctor {doctor.name} already has an appointment at {taken:%Y-%m-%d %H:%M} ({timezone})"
            )

    # ============== Booking ==============

    async def book_appointment(
        self,
        acting_user_id: UUID,
        clinic_id: UUID,
        doctor_id: UUID,
        patient_id: UUID,
        start: datetime,
        *,
        timezone: str,
        idempotency_key: Optional[str] = None,
        timeout: Optional[float] = None
    ) -> Appointment:
        """
        Book ``[start, start + duration)`` for a patient with a doctor.

        Args:
            acting_user_id: user performing the request
            clinic_id: tenant the booking belongs to
            doctor_id: doctor to book
            patient_id: patient to book
            start: requested start instant (naive values are UTC)
            timezone: clinic timezone used to evaluate the weekly window
            idempotency_key: repeated requests with the same key return the
                appointment created by the first one
            timeout: seconds allowed per store call or lock wait

        Returns:
            Appointment: the confirmed appointment

        Raises:
            UnauthorizedError, NotFoundError, TenantMismatchError,
            OutsideAvailabilityError, SlotConflictError, StoreTimeoutError,
            IdempotencyMismatchError, ConstraintViolationError, InvalidRequestError,
            InternalError
        """
        timeout = self._timeout(timeout)
        self._check_timezone(timezone)
        requested = Interval.starting_at(start, self.duration)

        async with self._guard("book_appointment"):
            await self._call(self.gate.require(acting_user_id, clinic_id), timeout)
            doctor, patient = await self._load_participants(clinic_id, doctor_id, patient_id, timeout)

            async with self._doctor_scope(doctor.id, timeout):

                async def attempt() -> Appointment:
                    if idempotency_key:
                        existing = await self._call(
                            self.store.find_appointment_by_idempotency_key(clinic_id, idempotency_key),
                            timeout,
                        )
                        if existing:
                            return self._replay(existing, doctor.id, patient.id, requested)

                    self._check_not_past(requested)
                    await self._validate_slot(doctor, requested, timezone, timeout)
                    appointment = Appointment(
                        clinic_id=clinic_id,
                        patient_id=patient.id,
                        doctor_id=doctor.id,
                        date=requested.start,
                        idempotency_key=idempotency_key,
                    )
                    created = await self._commit(self.store.create_appointment(appointment), timeout)
                    logger.info(
                        f"Booked appointment {created.id}: doctor {doctor.id}, patient {patient.id}, "
                        f"{requested.start.isoformat()}"
                    )
                    return created

                return await self._retry_once("book_appointment", attempt)

    def _replay(
        self,
        existing: Appointment,
        doctor_id: UUID,
        patient_id: UUID,
        requested: Interval
    ) -> Appointment:
        if (
            existing.doctor_id == doctor_id
            and existing.patient_id == patient_id
            and existing.date == requested.start
        ):
            logger.info(f"Replayed idempotent booking {existing.id}")
            return existing
        raise IdempotencyMismatchError(
            f"Idempotency key {existing.idempotency_key!r} already booked appointment {existing.id} "
            f"with different details"
        )

    async def reschedule_appointment(
        self,
        acting_user_id: UUID,
        appointment_id: UUID,
        new_start: datetime,
        *,
        timezone: str,
        timeout: Optional[float] = None
    ) -> Appointment:
        """
        Move a confirmed appointment to ``[new_start, new_start + duration)``.

        The appointment keeps its id and is excluded from its own conflict check.
        """
        timeout = self._timeout(timeout)
        self._check_timezone(timezone)
        requested = Interval.starting_at(new_start, self.duration)

        async with self._guard("reschedule_appointment"):
            current = await self._call(self.store.get_appointment(appointment_id), timeout)
            await self._call(self.gate.require(acting_user_id, current.clinic_id), timeout)

            async with self._doctor_scope(current.doctor_id, timeout):

                async def attempt() -> Appointment:
                    appointment = await self._call(
                        self.store.get_appointment(appointment_id, current.clinic_id), timeout
                    )
                    if appointment.status != AppointmentStatus.CONFIRMED:
                        raise InvalidTransitionError(
                            f"Appointment {appointment_id} is {appointment.status.value} and cannot be rescheduled"
                        )
                    self._check_not_past(requested)
                    doctor = await self._call(
                        self.store.get_doctor(appointment.doctor_id, appointment.clinic_id), timeout
                    )
                    await self._validate_slot(doctor, requested, timezone, timeout, appointment.id)
                    moved = appointment.model_copy(update={"date": requested.start})
                    return await self._commit(self.store.update_appointment(moved), timeout)

                updated = await self._retry_once("reschedule_appointment", attempt)

            logger.info(f"Rescheduled appointment {appointment_id} to {requested.start.isoformat()}")
            return updated

    async def cancel_appointment(
        self,
        acting_user_id: UUID,
        appointment_id: UUID,
        timeout: Optional[float] = None
    ) -> Appointment:
        """Cancel an appointment and free its slot. Cancelling twice is a no-op."""
        timeout = self._timeout(timeout)

        async with self._guard("cancel_appointment"):
            current = await self._call(self.store.get_appointment(appointment_id), timeout)
            await self._call(self.gate.require(acting_user_id, current.clinic_id), timeout)

            async with self._doctor_scope(current.doctor_id, timeout):

                async def attempt() -> Appointment:
                    appointment = await self._call(
                        self.store.get_appointment(appointment_id, current.clinic_id), timeout
                    )
                    if appointment.status == AppointmentStatus.CANCELLED:
                        logger.info(f"Appointment {appointment_id} already cancelled")
                        return appointment
                    if appointment.status == AppointmentStatus.COMPLETED:
                        raise InvalidTransitionError(f"Appointment {appointment_id} is already completed")
                    cancelled = appointment.model_copy(update={
                        "status": AppointmentStatus.CANCELLED,
                        "cancelled_at": self.clock.now(),
                    })
                    updated = await self._commit(self.store.update_appointment(cancelled), timeout)
                    logger.info(f"Cancelled appointment {appointment_id}")
                    return updated

                return await self._retry_once("cancel_appointment", attempt)

    async def complete_appointment(
        self,
        acting_user_id: UUID,
        appointment_id: UUID,
        timeout: Optional[float] = None
    ) -> Appointment:
        """Mark a confirmed appointment as completed once it has started."""
        timeout = self._timeout(timeout)

        async with self._guard("complete_appointment"):
            current = await self._call(self.store.get_appointment(appointment_id), timeout)
            await self._call(self.gate.require(acting_user_id, current.clinic_id), timeout)

            async with self._doctor_scope(current.doctor_id, timeout):
                appointment = await self._call(
                    self.store.get_appointment(appointment_id, current.clinic_id), timeout
                )
                if appointment.status == AppointmentStatus.COMPLETED:
                    return appointment
                if appointment.status == AppointmentStatus.CANCELLED:
                    raise InvalidTransitionError(f"Appointment {appointment_id} was cancelled")
                if appointment.date > self.clock.now():
                    raise InvalidTransitionError(f"Appointment {appointment_id} has not started yet")
                completed = appointment.model_copy(update={"status": AppointmentStatus.COMPLETED})
                updated = await self._commit(self.store.update_appointment(completed), timeout)

            logger.info(f"Completed appointment {appointment_id}")
            return updated

    # ============== Queries ==============

    async def get_appointment(
        self,
        acting_user_id: UUID,
        appointment_id: UUID,
        timeout: Optional[float] = None
    ) -> Appointment:
        timeout = self._timeout(timeout)
        async with self._guard("get_appointment"):
            appointment = await self._call(self.store.get_appointment(appointment_id), timeout)
            await self._call(self.gate.require(acting_user_id, appointment.clinic_id), timeout)
            return appointment

    async def list_appointments_for_doctor(
        self,
        acting_user_id: UUID,
        clinic_id: UUID,
        doctor_id: UUID,
        start: datetime,
        end: datetime,
        include_cancelled: bool = False,
        timeout: Optional[float] = None
    ) -> List[Appointment]:
        """Appointments of a doctor starting in ``[start, end)``, ascending by date."""
        timeout = self._timeout(timeout)
        async with self._guard("list_appointments_for_doctor"):
            await self._call(self.gate.require(acting_user_id, clinic_id), timeout)
            await self._call(self.store.get_doctor(doctor_id, clinic_id), timeout)
            return await self._call(
                self.store.list_appointments_for_doctor(
                    clinic_id, doctor_id, start, end, include_cancelled=include_cancelled
                ),
                timeout,
            )

    async def available_slots(
        self,
        acting_user_id: UUID,
        clinic_id: UUID,
        doctor_id: UUID,
        day: date,
        *,
        timezone: str,
        timeout: Optional[float] = None
    ) -> List[Interval]:
        """Free appointment slots of a doctor on a local calendar day."""
        timeout = self._timeout(timeout)
        self._check_timezone(timezone)
        async with self._guard("available_slots"):
            await self._call(self.gate.require(acting_user_id, clinic_id), timeout)
            doctor = await self._call(self.store.get_doctor(doctor_id, clinic_id), timeout)
            window = daily_window(doctor, day, timezone)
            if window is None:
                return []
            booked = await self._call(
                self.store.list_appointments_for_doctor(
                    clinic_id, doctor_id, window.start - self.duration, window.end
                ),
                timeout,
            )
            return free_slots(
                window,
                self.duration,
                [self.conflicts.interval_of(a) for a in booked],
                not_before=self.clock.now(),
            )
