"""
Domain error taxonomy.

Every failure the scheduling core reports is one of these. Each carries a
stable ``code`` so callers can tell which rule was violated without parsing
the message.
"""

from typing import Optional


class SchedulingError(Exception):
    """Base class for all expected scheduling failures."""
    
    code = "scheduling_error"
    default_message = "Scheduling request failed"
    
    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)
    
    def to_dict(self) -> dict:
        return {"code": self.code, "detail": self.message}


class UnauthorizedError(SchedulingError):
    """Acting user is not a member of the target clinic."""
    
    code = "unauthorized"
    default_message = "User is not allowed to act on this clinic"


class TenantMismatchError(SchedulingError):
    """A referenced record belongs to another clinic."""
    
    code = "tenant_mismatch"
    default_message = "Referenced records belong to different clinics"


class OutsideAvailabilityError(SchedulingError):
    """Requested interval is not inside the doctor's weekly availability."""
    
    code = "outside_availability"
    default_message = "Requested time is outside the doctor's availability"


class SlotConflictError(SchedulingError):
    """Requested interval overlaps another appointment of the doctor."""
    
    code = "slot_conflict"
    default_message = "Doctor already has an appointment at the requested time"


class NotFoundError(SchedulingError):
    code = "not_found"
    default_message = "Resource not found"


class StoreTimeoutError(SchedulingError):
    """A store call or lock acquisition exceeded the caller's timeout."""
    
    code = "timeout"
    default_message = "Operation timed out, retry later"


class ConstraintViolationError(SchedulingError):
    """A foreign-key, uniqueness or exclusion rule would be broken."""
    
    code = "constraint_violation"
    default_message = "Storage constraint violated"


class ConcurrencyConflictError(SchedulingError):
    """Record changed since it was read (optimistic concurrency)."""
    
    code = "conflict"
    default_message = "Record was modified concurrently"


class InvalidTransitionError(SchedulingError):
    """Appointment status does not allow the requested operation."""
    
    code = "invalid_transition"
    default_message = "Appointment cannot change to the requested state"


class IdempotencyMismatchError(SchedulingError):
    """Idempotency key was reused for a different booking request."""
    
    code = "idempotency_mismatch"
    default_message = "Idempotency key already used for a different request"


class InvalidRequestError(SchedulingError):
    """A request argument is malformed, e.g. an unknown timezone name."""
    
    code = "bad_request"
    default_message = "Invalid request"


class InternalError(SchedulingError):
    """Opaque wrapper for unexpected infrastructure failures."""
    
    code = "internal_error"
    default_message = "Internal error"
