from app.schemas.concert import ConcertResponse, TheaterResponse, SeatResponse, SeatMapResponse
from app.schemas.reservation import ClaimResponse, ReleaseResponse, ReservationResponse
from app.schemas.token import EntitlementTokenResponse

__all__ = [
    "ConcertResponse", "TheaterResponse", "SeatResponse", "SeatMapResponse",
    "ClaimResponse", "ReleaseResponse", "ReservationResponse",
    "EntitlementTokenResponse",
]
