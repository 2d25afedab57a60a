"""
Concurrency tests: overlapping claims race on separate connections.

Every claim runs on its own session and connection, so these exercise the
database-level transaction locking rather than any in-process ordering.
"""

import asyncio

import pytest
from sqlalchemy import text

from app.core.exceptions import Busy, DuplicateReservation, SeatsUnavailable
from app.db.session import build_engine, build_session_factory
from app.models.seat import SEAT_OCCUPIED
from app.services.reservation_service import ReservationManager
from app.services.seat_ledger import SeatLedger

from conftest import CONCERT_ID, THEATER_ID, USER_A


async def claim_or_error(manager, user_id, seat_ids):
    try:
        return await manager.claim_seats(user_id, CONCERT_ID, THEATER_ID, seat_ids)
    except SeatsUnavailable as e:
        return e


@pytest.mark.asyncio
async def test_overlapping_claims_never_double_book(manager, session_factory):
    """Ten users race for the same seat; exactly one wins, the rest are told which seat is gone."""
    users = range(1000, 1010)
    results = await asyncio.gather(*(claim_or_error(manager, user, [4, 5]) for user in users))

    winners = [r for r in results if not isinstance(r, SeatsUnavailable)]
    losers = [r for r in results if isinstance(r, SeatsUnavailable)]

    assert len(winners) == 1
    assert len(losers) == 9
    assert all(loser.occupied_seat_ids == [4, 5] for loser in losers)

    async with session_factory() as session:
        ledger = SeatLedger(session)
        assert await ledger.seat_statuses(CONCERT_ID, [4, 5]) == {4: SEAT_OCCUPIED, 5: SEAT_OCCUPIED}
        assert await ledger.linked_seat_ids(winners[0].reservation_id) == [4, 5]


@pytest.mark.asyncio
async def test_partially_overlapping_claims(manager, session_factory):
    """Every seat ends up linked to at most one reservation; disjoint requests both succeed."""
    requests = {2001: [1, 2], 2002: [2, 3], 2003: [3, 4], 2004: [9, 10]}
    results = await asyncio.gather(
        *(claim_or_error(manager, user, seats) for user, seats in requests.items())
    )

    claimed = [seat for r in results if not isinstance(r, SeatsUnavailable) for seat in r.seat_ids]
    assert len(claimed) == len(set(claimed))
    assert {9, 10} <= set(claimed)

    async with session_factory() as session:
        ledger = SeatLedger(session)
        statuses = await ledger.seat_statuses(CONCERT_ID, range(1, 11))
    occupied = sorted(seat for seat, status in statuses.items() if status == SEAT_OCCUPIED)
    assert occupied == sorted(claimed)


@pytest.mark.asyncio
async def test_racing_claims_by_one_user_create_one_reservation(manager):
    async def attempt(seat_ids):
        try:
            return await manager.claim_seats(USER_A, CONCERT_ID, THEATER_ID, seat_ids)
        except DuplicateReservation as e:
            return e

    results = await asyncio.gather(attempt([1]), attempt([6]), attempt([8]))

    assert sum(not isinstance(r, DuplicateReservation) for r in results) == 1
    assert len(await manager.list_reservations(USER_A)) == 1


@pytest.mark.asyncio
async def test_claim_fails_busy_when_lock_wait_expires(manager, session_factory, tmp_path):
    """A claim blocked behind a long-running writer gives up with Busy instead of hanging."""
    impatient_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}", lock_timeout_ms=100)
    impatient = ReservationManager(build_session_factory(impatient_engine), lock_timeout_ms=100)

    try:
        async with session_factory() as holder:
            async with holder.begin():
                await holder.execute(text("SELECT 1"))

                with pytest.raises(Busy):
                    await impatient.claim_seats(USER_A, CONCERT_ID, THEATER_ID, [1])
    finally:
        await impatient_engine.dispose()

    # Once the writer is gone the same claim goes through
    result = await manager.claim_seats(USER_A, CONCERT_ID, THEATER_ID, [1])
    assert result.seat_ids == [1]
