from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from clinicdesk.shared.errors import (
    SchedulingError,
    UnauthorizedError,
    TenantMismatchError,
    OutsideAvailabilityError,
    SlotConflictError,
    NotFoundError,
    StoreTimeoutError,
    ConstraintViolationError,
    ConcurrencyConflictError,
    InvalidTransitionError,
    IdempotencyMismatchError,
    InvalidRequestError,
)


class CredentialsException(HTTPException):
    """Exception for missing or invalid caller identity."""
    
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
        )


# Most specific first; lookup walks the error's MRO
ERROR_STATUS_CODES = {
    UnauthorizedError: status.HTTP_403_FORBIDDEN,
    TenantMismatchError: status.HTTP_400_BAD_REQUEST,
    OutsideAvailabilityError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    SlotConflictError: status.HTTP_409_CONFLICT,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    StoreTimeoutError: status.HTTP_504_GATEWAY_TIMEOUT,
    ConstraintViolationError: status.HTTP_409_CONFLICT,
    ConcurrencyConflictError: status.HTTP_409_CONFLICT,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
    IdempotencyMismatchError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidRequestError: status.HTTP_400_BAD_REQUEST,
}


def status_code_for(error: SchedulingError) -> int:
    """Map a domain error to its HTTP status code."""
    for cls in type(error).__mro__:
        if cls in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    """FastAPI exception handler for the domain error taxonomy."""
    return JSONResponse(
        status_code=status_code_for(exc),
        content=exc.to_dict(),
    )


class BadRequestException(HTTPException):
    """Exception for bad request."""
    
    def __init__(self, detail: str = "Bad request"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )
