"""
Seat ledger: the only code that reads or writes seat status and
reservation links.

The ledger works on a session that the caller has already placed inside a
transaction. It flushes but never commits; the transaction owner decides
whether the unit of work lands or rolls back.
"""

from typing import Iterable, Optional

from sqlalchemy import select, update, delete, insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.concert import Concert
from app.models.seat import ConcertSeat, SEAT_AVAILABLE, SEAT_OCCUPIED
from app.models.reservation import Reservation, ReservationSeat


class SeatLedger:
    def __init__(self, session: AsyncSession):
        self.session = session

    # -- read path ---------------------------------------------------------

    async def concert(self, concert_id: int) -> Optional[Concert]:
        result = await self.session.execute(select(Concert).where(Concert.id == concert_id))
        return result.scalar_one_or_none()

    async def list_concerts(self) -> list[Concert]:
        result = await self.session.execute(select(Concert).order_by(Concert.id))
        return list(result.scalars().all())

    async def seats_for_concert(self, concert_id: int) -> list[ConcertSeat]:
        """Full seat map of a concert, any status."""
        result = await self.session.execute(
            select(ConcertSeat)
            .where(ConcertSeat.concert_id == concert_id)
            .order_by(ConcertSeat.row_number, ConcertSeat.seat_position)
        )
        return list(result.scalars().all())

    async def reservation_for(self, user_id: int, concert_id: int) -> Optional[Reservation]:
        result = await self.session.execute(
            select(Reservation).where(
                Reservation.user_id == user_id,
                Reservation.concert_id == concert_id,
            )
        )
        return result.scalar_one_or_none()

    async def reservation_by_id(
        self, user_id: int, reservation_id: int, lock: bool = False
    ) -> Optional[Reservation]:
        stmt = select(Reservation).where(
            Reservation.id == reservation_id,
            Reservation.user_id == user_id,
        )
        if lock:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def reservations_for_user(self, user_id: int) -> list[Reservation]:
        result = await self.session.execute(
            select(Reservation)
            .where(Reservation.user_id == user_id)
            .order_by(Reservation.concert_id)
        )
        return list(result.scalars().all())

    async def reserved_row_numbers(self, user_id: int, concert_id: int) -> list[int]:
        """Row number of every seat the user holds for a concert (one entry per seat)."""
        result = await self.session.execute(
            select(ConcertSeat.row_number)
            .join(ReservationSeat, ReservationSeat.concert_seat_id == ConcertSeat.id)
            .join(Reservation, Reservation.id == ReservationSeat.reservation_id)
            .where(
                Reservation.user_id == user_id,
                Reservation.concert_id == concert_id,
            )
            .order_by(ConcertSeat.row_number, ConcertSeat.seat_position)
        )
        return list(result.scalars().all())

    async def seat_statuses(
        self,
        concert_id: int,
        seat_ids: Iterable[int],
        lock: bool = False,
    ) -> dict[int, str]:
        """
        Current status of the requested seats that belong to `concert_id`.

        With `lock=True` the rows are selected FOR UPDATE in id order, so two
        claims touching the same seats queue on the row locks instead of
        deadlocking. Seats of other concerts are simply absent from the result.
        """
        stmt = (
            select(ConcertSeat.id, ConcertSeat.status)
            .where(
                ConcertSeat.concert_id == concert_id,
                ConcertSeat.id.in_(list(seat_ids)),
            )
            .order_by(ConcertSeat.id)
        )
        if lock:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return {seat_id: status for seat_id, status in result.all()}

    async def linked_seat_ids(self, reservation_id: int) -> list[int]:
        result = await self.session.execute(
            select(ReservationSeat.concert_seat_id)
            .where(ReservationSeat.reservation_id == reservation_id)
            .order_by(ReservationSeat.concert_seat_id)
        )
        return list(result.scalars().all())

    # -- mutating primitives (transaction owner only) ----------------------

    async def insert_reservation(self, user_id: int, concert_id: int) -> Reservation:
        reservation = Reservation(user_id=user_id, concert_id=concert_id)
        self.session.add(reservation)
        await self.session.flush()
        return reservation

    async def set_seat_status(self, seat_ids: list[int], status: str) -> int:
        if status not in (SEAT_AVAILABLE, SEAT_OCCUPIED):
            raise ValueError(f"Unknown seat status: {status}")
        result = await self.session.execute(
            update(ConcertSeat)
            .where(ConcertSeat.id.in_(seat_ids))
            .values(status=status)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def insert_links(self, reservation_id: int, seat_ids: list[int]) -> None:
        await self.session.execute(
            insert(ReservationSeat),
            [{"reservation_id": reservation_id, "concert_seat_id": seat_id} for seat_id in seat_ids],
        )

    async def delete_links(self, reservation_id: int) -> None:
        await self.session.execute(
            delete(ReservationSeat).where(ReservationSeat.reservation_id == reservation_id)
        )

    async def delete_reservation(self, reservation_id: int) -> None:
        await self.session.execute(
            delete(Reservation)
            .where(Reservation.id == reservation_id)
            .execution_options(synchronize_session=False)
        )
