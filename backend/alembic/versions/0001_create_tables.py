"""create catalogue, booking and user tables

Revision ID: 0001_create_tables
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_create_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "movies",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("genre", sa.Text(), nullable=False),
        sa.Column("duration_mins", sa.Integer(), nullable=False),
        sa.Column("poster_url", sa.Text(), nullable=False),
    )

    op.create_table(
        "showtimes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("movie_id", sa.Integer(), nullable=False),
        sa.Column("time", sa.Text(), nullable=False),
        sa.Column("date", sa.Text(), nullable=False),
    )

    op.create_table(
        "seats",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=10), nullable=False),
        sa.Column("booked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("showtime_id", sa.Integer(), nullable=False),
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("movie_id", sa.Integer(), nullable=False),
        sa.Column("showtime_id", sa.Integer(), nullable=False),
        sa.Column("seats", sa.JSON().with_variant(postgresql.JSONB(), "postgresql"), nullable=False),
        sa.Column("total_amount", sa.Integer(), nullable=False),
        sa.Column("booking_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(length=255), nullable=False, unique=True),
        sa.Column("password", sa.Text(), nullable=False),
    )

    op.create_index("ix_showtimes_movie_id", "showtimes", ["movie_id"])
    op.create_index("ix_seats_showtime_id", "seats", ["showtime_id"])
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])


def downgrade():
    op.drop_index("ix_bookings_user_id", table_name="bookings")
    op.drop_index("ix_seats_showtime_id", table_name="seats")
    op.drop_index("ix_showtimes_movie_id", table_name="showtimes")
    op.drop_table("users")
    op.drop_table("bookings")
    op.drop_table("seats")
    op.drop_table("showtimes")
    op.drop_table("movies")
