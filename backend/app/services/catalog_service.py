"""
Catalog reads: concert listing and a concert's theater with its seat map.

Read-only. Seat statuses are never cached because the seat map is what
callers refresh after a rejected claim.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import UnknownConcert
from app.models.concert import Concert
from app.models.seat import ConcertSeat
from app.services.seat_ledger import SeatLedger


async def list_concerts(db: AsyncSession) -> list[Concert]:
    return await SeatLedger(db).list_concerts()


async def get_theater_seat_map(db: AsyncSession, concert_id: int) -> tuple[Concert, list[ConcertSeat]]:
    """Concert (with its theater) and every seat of the concert, any status."""
    ledger = SeatLedger(db)
    concert = await ledger.concert(concert_id)
    if concert is None:
        raise UnknownConcert(concert_id)
    seats = await ledger.seats_for_concert(concert_id)
    return concert, seats
