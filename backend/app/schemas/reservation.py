"""
Pydantic schemas for claim/release request and response validation.
"""

from datetime import datetime
from pydantic import BaseModel


class ClaimResponse(BaseModel):
    reservation_id: int
    concert_id: int
    seat_ids: list[int]
    message: str = "Seats added to reservation successfully."


class ReleaseResponse(BaseModel):
    released: bool
    reservation_id: int
    seat_ids: list[int]
    message: str


class ReservationResponse(BaseModel):
    id: int
    concert_id: int
    seat_ids: list[int]
    created_at: datetime

    model_config = {"from_attributes": True}
