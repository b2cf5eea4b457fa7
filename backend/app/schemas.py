# backend/app/schemas.py
"""
Records shared by both storage backends and the HTTP layer.

Each storage implementation returns these pydantic models, so callers never
see ORM objects and both backends serialize identically.
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SeatType(str, Enum):
    GOLD = "GOLD"
    RED = "RED"
    BLUE = "BLUE"


SEAT_PRICES = {
    SeatType.GOLD: 400,
    SeatType.RED: 250,
    SeatType.BLUE: 150,
}


class MovieCreate(BaseModel):
    title: str = Field(..., min_length=1)
    genre: str
    duration_mins: int = Field(..., gt=0)
    poster_url: str


class Movie(MovieCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)


class ShowtimeCreate(BaseModel):
    movie_id: int
    time: str = Field(..., min_length=1)
    date: str = Field(..., min_length=1)


class Showtime(ShowtimeCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)


class SeatCreate(BaseModel):
    name: str
    type: SeatType
    booked: bool = False
    showtime_id: int


class Seat(SeatCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)

    @property
    def price(self) -> int:
        return SEAT_PRICES[self.type]


class Booking(BaseModel):
    id: str
    movie_id: int
    showtime_id: int
    seats: List[int] = Field(..., min_length=1)
    total_amount: int = Field(..., gt=0)
    booking_date: datetime
    user_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class BookingRequest(BaseModel):
    movie_id: int
    showtime_id: int
    seat_ids: List[int]


class UserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)


class User(BaseModel):
    id: int
    username: str
    password: str

    model_config = ConfigDict(from_attributes=True)


class UserOut(BaseModel):
    id: int
    username: str

    model_config = ConfigDict(from_attributes=True)


class Snapshot(BaseModel):
    """Full copy of a backend's contents, used to resync the volatile backend."""

    movies: List[Movie] = []
    showtimes: List[Showtime] = []
    seats: List[Seat] = []
    bookings: List[Booking] = []
    users: List[User] = []
