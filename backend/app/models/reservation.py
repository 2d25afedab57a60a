"""
Reservation model and its seat links.

Key design decisions:
- Unique constraint on (user_id, concert_id): one live reservation per user per concert
- Reservations are deleted on release rather than flagged, so a released
  user can claim the same concert again
- `reservation_seats.concert_seat_id` is unique: no seat can be linked to two reservations
"""

from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin


class Reservation(Base, TimestampMixin):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    concert_id = Column(Integer, ForeignKey("concerts.id"), nullable=False, index=True)

    seat_links = relationship("ReservationSeat", lazy="selectin", passive_deletes=True)

    __table_args__ = (
        UniqueConstraint("user_id", "concert_id", name="uq_user_concert_reservation"),
        # Ids of released reservations are never handed out again
        {"sqlite_autoincrement": True},
    )

    @property
    def seat_ids(self) -> list[int]:
        return sorted(link.concert_seat_id for link in self.seat_links)

    def __repr__(self) -> str:
        return f"<Reservation(id={self.id}, user={self.user_id}, concert={self.concert_id})>"


class ReservationSeat(Base):
    __tablename__ = "reservation_seats"

    reservation_id = Column(
        Integer, ForeignKey("reservations.id", ondelete="CASCADE"), primary_key=True
    )
    concert_seat_id = Column(Integer, ForeignKey("concert_seats.id"), primary_key=True)

    __table_args__ = (
        UniqueConstraint("concert_seat_id", name="uq_reservation_seat_concert_seat"),
    )

    def __repr__(self) -> str:
        return f"<ReservationSeat(reservation={self.reservation_id}, seat={self.concert_seat_id})>"
