"""
Reservation endpoints: claim seats, release a reservation, list my reservations.
"""

from typing import Annotated

from fastapi import APIRouter, Body, Depends, Path, Query, status
from pydantic import conint

from app.api.deps import get_reservation_manager
from app.core.security import get_current_user_id
from app.db.base import MAX_ID
from app.schemas.reservation import ClaimResponse, ReleaseResponse, ReservationResponse
from app.services.reservation_service import ReservationManager

router = APIRouter(tags=["Reservations"])

SeatId = conint(strict=True, ge=1, le=MAX_ID)


@router.post(
    "/concerts/{concert_id}/reservations",
    response_model=ClaimResponse,
    status_code=status.HTTP_201_CREATED,
)
async def claim_seats_endpoint(
    concert_id: Annotated[int, Path(ge=1, le=MAX_ID)],
    seat_ids: Annotated[list[SeatId], Body(min_length=1, max_length=100)],
    theater_id: int = Query(..., ge=1, le=MAX_ID, description="Theater returned by the seat map of this concert"),
    user_id: int = Depends(get_current_user_id),
    manager: ReservationManager = Depends(get_reservation_manager),
):
    """
    Reserve seats for a concert.

    The availability check and the seat update run in one transaction. If any
    requested seat is taken, nothing is reserved and the error lists the
    occupied seat ids; refresh the seat map and retry with other seats.
    """
    result = await manager.claim_seats(user_id, concert_id, theater_id, seat_ids)
    return ClaimResponse(
        reservation_id=result.reservation_id,
        concert_id=result.concert_id,
        seat_ids=result.seat_ids,
    )


@router.delete("/reservations/{reservation_id}", response_model=ReleaseResponse)
async def release_reservation_endpoint(
    reservation_id: Annotated[int, Path(ge=1, le=MAX_ID)],
    user_id: int = Depends(get_current_user_id),
    manager: ReservationManager = Depends(get_reservation_manager),
):
    """Release a reservation and free its seats. Releasing twice is not an error."""
    result = await manager.release_reservation(user_id, reservation_id)
    if result.released:
        message = "Reservation and associated seats deleted successfully, and seats have been freed."
    else:
        message = "No reservation found for this user with the provided reservation ID."
    return ReleaseResponse(
        released=result.released,
        reservation_id=result.reservation_id,
        seat_ids=result.seat_ids,
        message=message,
    )


@router.get("/reservations", response_model=list[ReservationResponse])
async def list_reservations_endpoint(
    user_id: int = Depends(get_current_user_id),
    manager: ReservationManager = Depends(get_reservation_manager),
):
    """Get all reservations of the authenticated user."""
    return await manager.list_reservations(user_id)
