"""Initial schema: theaters, concerts, per-concert seats, reservations and seat links.

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "theaters",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("rows", sa.Integer(), nullable=False),
        sa.Column("seats_per_row", sa.Integer(), nullable=False),
        sa.CheckConstraint("rows > 0", name="check_theater_rows_positive"),
        sa.CheckConstraint("seats_per_row > 0", name="check_theater_seats_per_row_positive"),
    )
    op.create_index("ix_theaters_id", "theaters", ["id"])

    op.create_table(
        "concerts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("theater_id", sa.Integer(), sa.ForeignKey("theaters.id"), nullable=False),
    )
    op.create_index("ix_concerts_id", "concerts", ["id"])
    op.create_index("ix_concerts_theater_id", "concerts", ["theater_id"])

    op.create_table(
        "concert_seats",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("concert_id", sa.Integer(), sa.ForeignKey("concerts.id"), nullable=False),
        sa.Column("row_number", sa.Integer(), nullable=False),
        sa.Column("seat_position", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'available'")),
        sa.UniqueConstraint("concert_id", "row_number", "seat_position", name="uq_concert_seat_position"),
        sa.CheckConstraint("status IN ('available', 'occupied')", name="check_concert_seat_status"),
    )
    op.create_index("ix_concert_seats_id", "concert_seats", ["id"])
    # Every claim filters by concert and a list of seat ids, then locks those rows
    op.create_index("ix_concert_seats_concert_id_id", "concert_seats", ["concert_id", "id"])

    op.create_table(
        "reservations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("concert_id", sa.Integer(), sa.ForeignKey("concerts.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        # One live reservation per user per concert; racing duplicate claims fail here
        sa.UniqueConstraint("user_id", "concert_id", name="uq_user_concert_reservation"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_reservations_id", "reservations", ["id"])
    op.create_index("ix_reservations_user_id", "reservations", ["user_id"])
    op.create_index("ix_reservations_concert_id", "reservations", ["concert_id"])

    op.create_table(
        "reservation_seats",
        sa.Column(
            "reservation_id",
            sa.Integer(),
            sa.ForeignKey("reservations.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("concert_seat_id", sa.Integer(), sa.ForeignKey("concert_seats.id"), primary_key=True),
        sa.UniqueConstraint("concert_seat_id", name="uq_reservation_seat_concert_seat"),
    )


def downgrade() -> None:
    op.drop_table("reservation_seats")
    op.drop_table("reservations")
    op.drop_table("concert_seats")
    op.drop_table("concerts")
    op.drop_table("theaters")
