"""
Catalog endpoints: concert listing (Redis cached) and seat maps (never cached).
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import MAX_ID
from app.db.session import get_db
from app.schemas.concert import ConcertResponse, SeatMapResponse, SeatResponse, TheaterResponse
from app.services.catalog_service import list_concerts, get_theater_seat_map
from app.services.cache_service import get_cached_concerts, set_cached_concerts
from app.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/concerts", tags=["Concerts"])


@router.get("/", response_model=list[ConcertResponse])
async def list_concerts_endpoint(db: AsyncSession = Depends(get_db)):
    """List every concert with the theater that hosts it."""
    cached = await get_cached_concerts()
    if cached is not None:
        logger.info("concert_list_cache_hit")
        return cached

    concerts = await list_concerts(db)
    data = [ConcertResponse.model_validate(c).model_dump() for c in concerts]
    await set_cached_concerts(data)
    return data


@router.get("/{concert_id}/theater", response_model=SeatMapResponse)
async def get_theater_endpoint(
    concert_id: Annotated[int, Path(ge=1, le=MAX_ID)],
    db: AsyncSession = Depends(get_db),
):
    """
    Theater layout and full seat map of a concert.

    Callers pass the returned `theater.id` back as `theater_id` when claiming.
    """
    concert, seats = await get_theater_seat_map(db, concert_id)
    return SeatMapResponse(
        concert_id=concert.id,
        theater=TheaterResponse.model_validate(concert.theater),
        seats=[SeatResponse.model_validate(seat) for seat in seats],
    )
