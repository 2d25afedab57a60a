"""
Reservation transaction manager: atomic seat claims and releases.

CONCURRENCY STRATEGY: One Transaction, Locked Check-and-Flip
=============================================================

Problem:
  Two users claim overlapping seats at the same time.
  Both read seat 2 as "available", both flip it to "occupied".
  Result: Double booking.

Solution:
  The availability check and the status flip happen in the same database
  transaction, and the check takes the locks that the flip needs.

  1. BEGIN, with a bounded lock wait for this transaction
  2. Reject if the user already holds a reservation for the concert
  3. Resolve the concert and compare its theater with the caller's
  4. SELECT id, status FROM concert_seats
     WHERE concert_id = :concert_id AND id IN (:seat_ids)
     ORDER BY id FOR UPDATE
  5. Reject with every requested seat that is not "available"
  6. INSERT reservation, UPDATE seats to "occupied", INSERT links
  7. COMMIT

  A concurrent claim on any of the same seats blocks at step 4 until the
  winner commits, then reads "occupied" and fails immediately. There is no
  retry loop: the transaction boundary is the only serialization point and
  claims are resolved in commit order.

  Unique constraints are the final safety net:
  - (user_id, concert_id) on reservations catches two racing claims by one user
  - concert_seat_id on reservation_seats catches a seat linked twice

Per-dialect locking:
  - PostgreSQL: row locks via FOR UPDATE, `SET LOCAL lock_timeout` bounds the wait
  - SQLite: no row locks, so the engine opens every transaction with
    BEGIN IMMEDIATE and the driver busy timeout bounds the wait (see db/session.py)

  A claim or release that cannot get its locks in time fails with `Busy`
  instead of hanging. Any other storage failure rolls the whole transaction
  back and surfaces as `StorageError`.
"""

import time
from dataclasses import dataclass, field
from typing import Iterable

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import (
    BookingError,
    Busy,
    DuplicateReservation,
    SeatsUnavailable,
    StorageError,
    TheaterMismatch,
    UnknownConcert,
    ValidationError,
)
from app.core.logging import get_logger
from app.core.metrics import claim_latency, record_claim, record_release
from app.db.base import MAX_ID
from app.models.reservation import Reservation
from app.models.seat import SEAT_AVAILABLE, SEAT_OCCUPIED
from app.services.seat_ledger import SeatLedger

logger = get_logger(__name__)

POSTGRES_LOCK_NOT_AVAILABLE = "55P03"


@dataclass(frozen=True)
class ClaimResult:
    reservation_id: int
    concert_id: int
    seat_ids: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class ReleaseResult:
    released: bool
    reservation_id: int
    seat_ids: list[int] = field(default_factory=list)


def _require_int(value, name: str) -> int:
    # bool is an int subclass; True is not a valid identifier
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer", field=name)
    if not 1 <= value <= MAX_ID:
        raise ValidationError(f"{name} must be between 1 and {MAX_ID}", field=name)
    return value


def normalize_seat_ids(seat_ids: Iterable[int]) -> list[int]:
    """Validate a claim body: a non-empty collection of integer seat ids, duplicates collapsed."""
    if seat_ids is None or isinstance(seat_ids, (str, bytes, dict)):
        raise ValidationError("seat_ids must be a non-empty array of integers", field="seat_ids")
    requested = []
    for seat_id in seat_ids:
        _require_int(seat_id, "seat_ids")
        if seat_id not in requested:
            requested.append(seat_id)
    if not requested:
        raise ValidationError("seat_ids must be a non-empty array of integers", field="seat_ids")
    return requested


def _is_lock_timeout(exc: DBAPIError) -> bool:
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code == POSTGRES_LOCK_NOT_AVAILABLE:
        return True
    message = str(orig or exc).lower()
    return "database is locked" in message or "lock timeout" in message


def _is_duplicate_reservation(exc: IntegrityError) -> bool:
    message = str(exc.orig or exc)
    return "uq_user_concert_reservation" in message or "reservations.user_id" in message


class ReservationManager:
    """
    Owns the claim and release transactions against the seat ledger.

    Each operation opens its own session and transaction from
    `session_factory`; nothing is shared between calls.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], lock_timeout_ms: int = 2000):
        self._session_factory = session_factory
        self._lock_timeout_ms = lock_timeout_ms

    async def _bound_lock_wait(self, session: AsyncSession) -> None:
        if session.get_bind().dialect.name == "postgresql":
            # SET cannot take bind parameters
            await session.execute(text(f"SET LOCAL lock_timeout = '{int(self._lock_timeout_ms)}ms'"))

    async def claim_seats(
        self,
        user_id: int,
        concert_id: int,
        theater_id: int,
        seat_ids: Iterable[int],
    ) -> ClaimResult:
        """
        Atomically reserve `seat_ids` of `concert_id` for `user_id`.

        Raises DuplicateReservation, UnknownConcert, TheaterMismatch,
        SeatsUnavailable, Busy or StorageError; on any of them nothing is written.
        """
        _require_int(user_id, "user_id")
        _require_int(concert_id, "concert_id")
        _require_int(theater_id, "theater_id")
        requested = normalize_seat_ids(seat_ids)

        start = time.perf_counter()
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await self._bound_lock_wait(session)
                    ledger = SeatLedger(session)

                    if await ledger.reservation_for(user_id, concert_id) is not None:
                        raise DuplicateReservation(user_id, concert_id)

                    concert = await ledger.concert(concert_id)
                    if concert is None:
                        raise UnknownConcert(concert_id)
                    if concert.theater_id != theater_id:
                        raise TheaterMismatch(concert_id, theater_id)

                    statuses = await ledger.seat_statuses(concert_id, requested, lock=True)
                    unavailable = [
                        seat_id for seat_id in requested
                        if statuses.get(seat_id) != SEAT_AVAILABLE
                    ]
                    if unavailable:
                        raise SeatsUnavailable(unavailable)

                    reservation = await ledger.insert_reservation(user_id, concert_id)
                    reservation_id = reservation.id
                    await ledger.set_seat_status(requested, SEAT_OCCUPIED)
                    await ledger.insert_links(reservation_id, requested)
        except BookingError as e:
            record_claim(_claim_outcome(e))
            logger.warning(
                "claim_rejected",
                code=e.code,
                user_id=user_id,
                concert_id=concert_id,
                seat_ids=requested,
                details=e.details,
            )
            raise
        except IntegrityError as e:
            if _is_duplicate_reservation(e):
                record_claim("duplicate")
                logger.warning("claim_rejected", code=DuplicateReservation.code, user_id=user_id, concert_id=concert_id)
                raise DuplicateReservation(user_id, concert_id) from e
            record_claim("error")
            logger.error("claim_failed", user_id=user_id, concert_id=concert_id, error=type(e).__name__)
            raise StorageError() from e
        except DBAPIError as e:
            if _is_lock_timeout(e):
                record_claim("busy")
                logger.warning("claim_busy", user_id=user_id, concert_id=concert_id)
                raise Busy() from e
            record_claim("error")
            logger.error("claim_failed", user_id=user_id, concert_id=concert_id, error=type(e).__name__)
            raise StorageError() from e
        except SQLAlchemyError as e:
            record_claim("error")
            logger.error("claim_failed", user_id=user_id, concert_id=concert_id, error=type(e).__name__)
            raise StorageError() from e
        finally:
            claim_latency.observe(time.perf_counter() - start)

        record_claim("success", len(requested))
        logger.info(
            "reservation_claimed",
            reservation_id=reservation_id,
            user_id=user_id,
            concert_id=concert_id,
            seat_ids=requested,
        )
        return ClaimResult(reservation_id=reservation_id, concert_id=concert_id, seat_ids=sorted(requested))

    async def release_reservation(self, user_id: int, reservation_id: int) -> ReleaseResult:
        """
        Free every seat of the reservation and delete it, in one transaction.

        Releasing a reservation that does not exist, or that belongs to another
        user, is a successful no-op (`released=False`).
        """
        _require_int(user_id, "user_id")
        _require_int(reservation_id, "reservation_id")

        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await self._bound_lock_wait(session)
                    ledger = SeatLedger(session)

                    reservation = await ledger.reservation_by_id(user_id, reservation_id, lock=True)
                    if reservation is None:
                        seat_ids = None
                    else:
                        seat_ids = await ledger.linked_seat_ids(reservation_id)
                        if seat_ids:
                            await ledger.set_seat_status(seat_ids, SEAT_AVAILABLE)
                        await ledger.delete_links(reservation_id)
                        await ledger.delete_reservation(reservation_id)
        except DBAPIError as e:
            if _is_lock_timeout(e):
                record_release("busy")
                logger.warning("release_busy", user_id=user_id, reservation_id=reservation_id)
                raise Busy() from e
            record_release("error")
            logger.error("release_failed", user_id=user_id, reservation_id=reservation_id, error=type(e).__name__)
            raise StorageError("The reservation could not be released") from e
        except SQLAlchemyError as e:
            record_release("error")
            logger.error("release_failed", user_id=user_id, reservation_id=reservation_id, error=type(e).__name__)
            raise StorageError("The reservation could not be released") from e

        if seat_ids is None:
            record_release("noop")
            logger.info("release_noop", user_id=user_id, reservation_id=reservation_id)
            return ReleaseResult(released=False, reservation_id=reservation_id)

        record_release("released", len(seat_ids))
        logger.info(
            "reservation_released",
            reservation_id=reservation_id,
            user_id=user_id,
            seat_ids=seat_ids,
        )
        return ReleaseResult(released=True, reservation_id=reservation_id, seat_ids=seat_ids)

    async def list_reservations(self, user_id: int) -> list[Reservation]:
        """All live reservations of a user, with their seat links loaded."""
        _require_int(user_id, "user_id")
        async with self._session_factory() as session:
            return await SeatLedger(session).reservations_for_user(user_id)

    async def reserved_row_numbers(self, user_id: int, concert_id: int) -> list[int]:
        """Read path for token issuance. Empty when the user holds nothing for the concert."""
        _require_int(user_id, "user_id")
        _require_int(concert_id, "concert_id")
        async with self._session_factory() as session:
            return await SeatLedger(session).reserved_row_numbers(user_id, concert_id)


def _claim_outcome(error: BookingError) -> str:
    return {
        DuplicateReservation: "duplicate",
        UnknownConcert: "unknown_concert",
        TheaterMismatch: "theater_mismatch",
        SeatsUnavailable: "unavailable",
        Busy: "busy",
    }.get(type(error), "error")
