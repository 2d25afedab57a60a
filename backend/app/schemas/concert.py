"""
Pydantic schemas for the catalog: concerts, theaters and seat maps.
"""

from pydantic import BaseModel, Field


class ConcertResponse(BaseModel):
    id: int
    title: str
    theater_id: int

    model_config = {"from_attributes": True}


class TheaterResponse(BaseModel):
    id: int
    name: str
    rows: int
    seats_per_row: int

    model_config = {"from_attributes": True}


class SeatResponse(BaseModel):
    seat_id: int = Field(validation_alias="id")
    row_number: int
    seat_position: int
    status: str

    model_config = {"from_attributes": True}


class SeatMapResponse(BaseModel):
    concert_id: int
    theater: TheaterResponse
    seats: list[SeatResponse]
