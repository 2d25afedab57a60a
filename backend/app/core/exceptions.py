"""
Error taxonomy for the booking service and the discount estimator.

Every error carries a stable `code`, an HTTP status and caller-actionable
details. Storage internals never leak into `message` or `details`.
"""

from typing import Any, Dict, Iterable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.logging import get_logger

logger = get_logger(__name__)


class BookingError(Exception):
    """Base class for all domain errors surfaced to callers."""

    status_code = 400
    code = "BOOKING_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class ValidationError(BookingError):
    """Malformed or missing identifiers. Raised before any transaction starts."""

    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, {"field": field} if field else None)


class UnknownConcert(BookingError):
    status_code = 404
    code = "UNKNOWN_CONCERT"

    def __init__(self, concert_id: int):
        self.concert_id = concert_id
        super().__init__(f"Concert {concert_id} does not exist", {"concert_id": concert_id})


class TheaterMismatch(BookingError):
    status_code = 409
    code = "THEATER_MISMATCH"

    def __init__(self, concert_id: int, theater_id: int):
        super().__init__(
            f"Theater {theater_id} does not host concert {concert_id}",
            {"concert_id": concert_id, "theater_id": theater_id},
        )


class DuplicateReservation(BookingError):
    status_code = 409
    code = "DUPLICATE_RESERVATION"

    def __init__(self, user_id: int, concert_id: int):
        super().__init__(
            "User already has a reservation for this concert",
            {"user_id": user_id, "concert_id": concert_id},
        )


class SeatsUnavailable(BookingError):
    status_code = 409
    code = "SEATS_UNAVAILABLE"

    def __init__(self, occupied_seat_ids: Iterable[int]):
        self.occupied_seat_ids = sorted(occupied_seat_ids)
        super().__init__(
            "One or more seats are not available. Occupied seat IDs: "
            + ", ".join(str(seat_id) for seat_id in self.occupied_seat_ids),
            {"occupied_seat_ids": self.occupied_seat_ids},
        )


class Busy(BookingError):
    """The transaction could not acquire its locks in time. Safe to retry."""

    status_code = 503
    code = "BUSY"

    def __init__(self, message: str = "Seats are being updated by another request, please retry"):
        super().__init__(message)


class StorageError(BookingError):
    status_code = 500
    code = "STORAGE_ERROR"

    def __init__(self, message: str = "The reservation could not be stored"):
        super().__init__(message)


class InvalidToken(BookingError):
    status_code = 401
    code = "INVALID_TOKEN"

    def __init__(self, message: str = "Token is invalid or expired"):
        super().__init__(message)


class MalformedPayload(BookingError):
    status_code = 400
    code = "MALFORMED_PAYLOAD"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, {"field": field} if field else None)


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    logger.info(
        "request_rejected",
        code=exc.code,
        status_code=exc.status_code,
        path=request.url.path,
    )
    headers = {"Retry-After": "1"} if isinstance(exc, Busy) else None
    if isinstance(exc, InvalidToken):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.to_dict()},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingError, booking_error_handler)
