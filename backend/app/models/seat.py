"""
Per-concert seat inventory.

Key design decisions:
- `id` is the seat identifier clients send in a claim
- Row/position are immutable; only `status` changes, and only inside a
  claim or release transaction
- Status is constrained at the DB level so a bad write cannot invent states
"""

from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint, CheckConstraint, Index

from app.db.base import Base

SEAT_AVAILABLE = "available"
SEAT_OCCUPIED = "occupied"


class ConcertSeat(Base):
    __tablename__ = "concert_seats"

    id = Column(Integer, primary_key=True, index=True)
    concert_id = Column(Integer, ForeignKey("concerts.id"), nullable=False)
    row_number = Column(Integer, nullable=False)
    seat_position = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=SEAT_AVAILABLE)

    __table_args__ = (
        UniqueConstraint("concert_id", "row_number", "seat_position", name="uq_concert_seat_position"),
        CheckConstraint("status IN ('available', 'occupied')", name="check_concert_seat_status"),
        # Claims always filter by concert and seat id
        Index("ix_concert_seats_concert_id_id", "concert_id", "id"),
    )

    def __repr__(self) -> str:
        return (
            f"<ConcertSeat(id={self.id}, concert={self.concert_id}, "
            f"row={self.row_number}, pos={self.seat_position}, status={self.status})>"
        )
