"""
Catalog models: theaters and the concerts they host.

Key design decisions:
- A concert belongs to exactly one theater; claims must name that theater
- Seat maps are materialised per concert in `concert_seats` (see seat.py)
"""

from sqlalchemy import Column, Integer, String, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base


class Theater(Base):
    __tablename__ = "theaters"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    rows = Column(Integer, nullable=False)
    seats_per_row = Column(Integer, nullable=False)

    concerts = relationship("Concert", back_populates="theater")

    __table_args__ = (
        CheckConstraint("rows > 0", name="check_theater_rows_positive"),
        CheckConstraint("seats_per_row > 0", name="check_theater_seats_per_row_positive"),
    )

    def __repr__(self) -> str:
        return f"<Theater(id={self.id}, name={self.name}, {self.rows}x{self.seats_per_row})>"


class Concert(Base):
    __tablename__ = "concerts"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    theater_id = Column(Integer, ForeignKey("theaters.id"), nullable=False, index=True)

    theater = relationship("Theater", back_populates="concerts", lazy="joined")

    def __repr__(self) -> str:
        return f"<Concert(id={self.id}, title={self.title}, theater={self.theater_id})>"
