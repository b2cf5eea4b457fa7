from __future__ import annotations
from datetime import datetime

from sqlalchemy.orm import declarative_base, Mapped, mapped_column
from sqlalchemy import Integer, String, Boolean, DateTime, JSON, Text
from sqlalchemy.dialects.postgresql import JSONB


Base = declarative_base()

# jsonb on PostgreSQL, plain JSON elsewhere (sqlite in tests)
SeatIdList = JSON().with_variant(JSONB(), "postgresql")


class Movie(Base):
    __tablename__ = "movies"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    genre: Mapped[str] = mapped_column(Text, nullable=False)
    duration_mins: Mapped[int] = mapped_column(Integer, nullable=False)
    poster_url: Mapped[str] = mapped_column(Text, nullable=False)


    def __repr__(self):
        return f"<Movie id={self.id} title={self.title}>"


class Showtime(Base):
    __tablename__ = "showtimes"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    # foreign keys by convention only
    movie_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    time: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[str] = mapped_column(Text, nullable=False)


    def __repr__(self):
        return f"<Showtime id={self.id} movie_id={self.movie_id} {self.date} {self.time}>"


class Seat(Base):
    __tablename__ = "seats"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(10), nullable=False)
    booked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    showtime_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)


    def __repr__(self):
        return f"<Seat id={self.id} name={self.name} booked={self.booked}>"


class Booking(Base):
    __tablename__ = "bookings"
    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    movie_id: Mapped[int] = mapped_column(Integer, nullable=False)
    showtime_id: Mapped[int] = mapped_column(Integer, nullable=False)
    seats: Mapped[list] = mapped_column(SeatIdList, nullable=False)
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    booking_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)


    def __repr__(self):
        return f"<Booking id={self.id} showtime_id={self.showtime_id} seats={self.seats}>"


class User(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password: Mapped[str] = mapped_column(Text, nullable=False)


    def __repr__(self):
        return f"<User id={self.id} username={self.username}>"
