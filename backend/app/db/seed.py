"""
Catalog seeding: a theater, a concert and the concert's full seat map.

Used by local runs and the test suite. Seat ids are assigned by the
database in row-major order, so in an empty database the first concert's
seats are numbered 1..rows*seats_per_row.
"""

import asyncio
from typing import Optional

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.db.base import Base
from app.models.concert import Concert, Theater
from app.models.seat import ConcertSeat, SEAT_AVAILABLE

logger = get_logger(__name__)


async def seed_concert(
    session: AsyncSession,
    title: str,
    rows: int,
    seats_per_row: int,
    theater_name: str = "Main Hall",
    theater_id: Optional[int] = None,
    concert_id: Optional[int] = None,
) -> Concert:
    """Create (or reuse) a theater and add a concert with every seat available. Caller commits."""
    theater = await session.get(Theater, theater_id) if theater_id is not None else None
    if theater is None:
        theater = Theater(id=theater_id, name=theater_name, rows=rows, seats_per_row=seats_per_row)
        session.add(theater)
        await session.flush()

    concert = Concert(id=concert_id, title=title, theater_id=theater.id)
    session.add(concert)
    await session.flush()

    await session.execute(
        insert(ConcertSeat),
        [
            {
                "concert_id": concert.id,
                "row_number": row,
                "seat_position": position,
                "status": SEAT_AVAILABLE,
            }
            for row in range(1, theater.rows + 1)
            for position in range(1, theater.seats_per_row + 1)
        ],
    )
    logger.info(
        "concert_seeded",
        concert_id=concert.id,
        theater_id=theater.id,
        seats=theater.rows * theater.seats_per_row,
    )
    return concert


async def seed_demo_catalog() -> None:
    from app.core.logging import setup_logging
    from app.db.session import engine, AsyncSessionLocal
    from app.services.cache_service import close_redis, invalidate_concert_cache

    setup_logging()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        async with session.begin():
            await seed_concert(session, "Opening Night", rows=5, seats_per_row=10, theater_name="Small Hall")
            await seed_concert(session, "Symphony No. 9", rows=10, seats_per_row=12, theater_name="Grand Hall")

    await invalidate_concert_cache()
    await close_redis()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_demo_catalog())
