from app.models.concert import Theater, Concert
from app.models.seat import ConcertSeat, SEAT_AVAILABLE, SEAT_OCCUPIED
from app.models.reservation import Reservation, ReservationSeat

__all__ = [
    "Theater", "Concert",
    "ConcertSeat", "SEAT_AVAILABLE", "SEAT_OCCUPIED",
    "Reservation", "ReservationSeat",
]
