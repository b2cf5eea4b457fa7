# backend/app/storage/base.py
import abc
import logging
import re
from typing import List, Optional

from app.schemas import (
    Booking,
    Movie,
    MovieCreate,
    Seat,
    SeatCreate,
    SeatType,
    Showtime,
    ShowtimeCreate,
    Snapshot,
    User,
    UserCreate,
)
from app.storage.seed import DEMO_MOVIES, generate_seats, seed_date

logger = logging.getLogger(__name__)

_TYPE_RANK = {SeatType.GOLD: 0, SeatType.RED: 1, SeatType.BLUE: 2}
_SEAT_NUMBER = re.compile(r"(\d+)$")


def seat_sort_key(seat: Seat):
    """Order seats by section (GOLD, RED, BLUE) then by seat number."""
    match = _SEAT_NUMBER.search(seat.name)
    number = int(match.group(1)) if match else 0
    return (_TYPE_RANK.get(seat.type, len(_TYPE_RANK)), number, seat.id)


class Storage(abc.ABC):
    """
    Storage contract shared by the volatile and persistent backends.

    Both implementations must give the same answers for the same call
    sequence: lists come back ordered by id (seats by section then number,
    a user's bookings newest first) and missing rows are ``None``.
    """

    # Movies
    @abc.abstractmethod
    async def list_movies(self) -> List[Movie]: ...

    @abc.abstractmethod
    async def get_movie(self, movie_id: int) -> Optional[Movie]: ...

    @abc.abstractmethod
    async def create_movie(self, movie: MovieCreate) -> Movie: ...

    # Showtimes
    @abc.abstractmethod
    async def list_showtimes(self) -> List[Showtime]: ...

    @abc.abstractmethod
    async def get_showtime(self, showtime_id: int) -> Optional[Showtime]: ...

    @abc.abstractmethod
    async def list_showtimes_for_movie(self, movie_id: int) -> List[Showtime]: ...

    @abc.abstractmethod
    async def create_showtime(self, showtime: ShowtimeCreate) -> Showtime: ...

    # Seats
    @abc.abstractmethod
    async def get_seat(self, seat_id: int) -> Optional[Seat]: ...

    @abc.abstractmethod
    async def list_seats_for_showtime(self, showtime_id: int) -> List[Seat]: ...

    @abc.abstractmethod
    async def create_seat(self, seat: SeatCreate) -> Seat: ...

    @abc.abstractmethod
    async def set_seat_booked(self, seat_id: int, booked: bool) -> Optional[Seat]: ...

    # Bookings
    @abc.abstractmethod
    async def get_booking(self, booking_id: str) -> Optional[Booking]: ...

    @abc.abstractmethod
    async def list_bookings_for_user(self, user_id: int) -> List[Booking]: ...

    @abc.abstractmethod
    async def create_booking(self, booking: Booking) -> Booking: ...

    @abc.abstractmethod
    async def book_seats(self, booking: Booking) -> Booking:
        """
        Mark every seat of ``booking`` booked and store the booking, as one unit.

        Seats are only flipped where they are currently unbooked. If any seat
        is already taken, raises SeatsUnavailable and writes nothing. A taken
        booking id raises DuplicateKey.
        """

    # Users
    @abc.abstractmethod
    async def get_user(self, user_id: int) -> Optional[User]: ...

    @abc.abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[User]: ...

    @abc.abstractmethod
    async def create_user(self, user: UserCreate) -> User: ...

    @abc.abstractmethod
    async def snapshot(self) -> Snapshot: ...

    async def create_showtime_with_seats(self, showtime: ShowtimeCreate) -> Showtime:
        created = await self.create_showtime(showtime)
        for seat in generate_seats(created.id):
            await self.create_seat(seat)
        return created

    async def initialize_data(self) -> bool:
        """
        Load the demo catalogue unless movies already exist.

        Returns True when data was written.
        """
        if await self.list_movies():
            logger.info("%s already initialized", type(self).__name__)
            return False

        day = seed_date()
        for movie, times in DEMO_MOVIES:
            created = await self.create_movie(movie)
            for label in times:
                await self.create_showtime_with_seats(ShowtimeCreate(movie_id=created.id, time=label, date=day))
        logger.info("%s initialized with sample data", type(self).__name__)
        return True
