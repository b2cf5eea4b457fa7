# backend/app/storage/memory.py
from typing import Dict, List, Optional

from app.errors import DuplicateKey, SeatsUnavailable
from app.schemas import (
    Booking,
    Movie,
    MovieCreate,
    Seat,
    SeatCreate,
    Showtime,
    ShowtimeCreate,
    Snapshot,
    User,
    UserCreate,
)
from app.storage.base import Storage, seat_sort_key


class MemoryStorage(Storage):
    """
    Process-local storage: dicts keyed by id plus monotonic id counters.

    Nothing here awaits, so each call runs to completion on the event loop
    without interleaving with other requests.
    """

    def __init__(self):
        self.movies: Dict[int, Movie] = {}
        self.showtimes: Dict[int, Showtime] = {}
        self.seats: Dict[int, Seat] = {}
        self.bookings: Dict[str, Booking] = {}
        self.users: Dict[int, User] = {}
        self._next_ids = {"movie": 1, "showtime": 1, "seat": 1, "user": 1}

    def _allocate(self, kind: str) -> int:
        next_id = self._next_ids[kind]
        self._next_ids[kind] = next_id + 1
        return next_id

    # Movies
    async def list_movies(self) -> List[Movie]:
        return [m.model_copy() for _, m in sorted(self.movies.items())]

    async def get_movie(self, movie_id: int) -> Optional[Movie]:
        movie = self.movies.get(movie_id)
        return movie.model_copy() if movie else None

    async def create_movie(self, movie: MovieCreate) -> Movie:
        created = Movie(id=self._allocate("movie"), **movie.model_dump())
        self.movies[created.id] = created
        return created.model_copy()

    # Showtimes
    async def list_showtimes(self) -> List[Showtime]:
        return [s.model_copy() for _, s in sorted(self.showtimes.items())]

    async def get_showtime(self, showtime_id: int) -> Optional[Showtime]:
        showtime = self.showtimes.get(showtime_id)
        return showtime.model_copy() if showtime else None

    async def list_showtimes_for_movie(self, movie_id: int) -> List[Showtime]:
        return [s.model_copy() for _, s in sorted(self.showtimes.items()) if s.movie_id == movie_id]

    async def create_showtime(self, showtime: ShowtimeCreate) -> Showtime:
        created = Showtime(id=self._allocate("showtime"), **showtime.model_dump())
        self.showtimes[created.id] = created
        return created.model_copy()

    # Seats
    async def get_seat(self, seat_id: int) -> Optional[Seat]:
        seat = self.seats.get(seat_id)
        return seat.model_copy() if seat else None

    async def list_seats_for_showtime(self, showtime_id: int) -> List[Seat]:
        seats = [s.model_copy() for s in self.seats.values() if s.showtime_id == showtime_id]
        return sorted(seats, key=seat_sort_key)

    async def create_seat(self, seat: SeatCreate) -> Seat:
        created = Seat(id=self._allocate("seat"), **seat.model_dump())
        self.seats[created.id] = created
        return created.model_copy()

    async def set_seat_booked(self, seat_id: int, booked: bool) -> Optional[Seat]:
        seat = self.seats.get(seat_id)
        if seat is None:
            return None
        updated = seat.model_copy(update={"booked": booked})
        self.seats[seat_id] = updated
        return updated.model_copy()

    # Bookings
    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        booking = self.bookings.get(booking_id)
        return booking.model_copy(deep=True) if booking else None

    async def list_bookings_for_user(self, user_id: int) -> List[Booking]:
        found = [b.model_copy(deep=True) for b in self.bookings.values() if b.user_id == user_id]
        return sorted(found, key=lambda b: (b.booking_date, b.id), reverse=True)

    async def create_booking(self, booking: Booking) -> Booking:
        if booking.id in self.bookings:
            raise DuplicateKey(f"booking {booking.id} already exists", key=booking.id)
        stored = booking.model_copy(deep=True)
        self.bookings[stored.id] = stored
        return stored.model_copy(deep=True)

    async def book_seats(self, booking: Booking) -> Booking:
        if booking.id in self.bookings:
            raise DuplicateKey(f"booking {booking.id} already exists", key=booking.id)
        seats = [self.seats.get(seat_id) for seat_id in booking.seats]
        taken = [
            seat.name if seat else str(seat_id)
            for seat_id, seat in zip(booking.seats, seats)
            if seat is None or seat.booked or seat.showtime_id != booking.showtime_id
        ]
        if taken:
            raise SeatsUnavailable(taken)
        for seat in seats:
            self.seats[seat.id] = seat.model_copy(update={"booked": True})
        return await self.create_booking(booking)

    # Users
    async def get_user(self, user_id: int) -> Optional[User]:
        user = self.users.get(user_id)
        return user.model_copy() if user else None

    async def get_user_by_username(self, username: str) -> Optional[User]:
        for user in self.users.values():
            if user.username == username:
                return user.model_copy()
        return None

    async def create_user(self, user: UserCreate) -> User:
        if any(u.username == user.username for u in self.users.values()):
            raise DuplicateKey(f"username {user.username} already registered", key=user.username)
        created = User(id=self._allocate("user"), **user.model_dump())
        self.users[created.id] = created
        return created.model_copy()

    async def snapshot(self) -> Snapshot:
        return Snapshot(
            movies=await self.list_movies(),
            showtimes=await self.list_showtimes(),
            seats=[s.model_copy() for _, s in sorted(self.seats.items())],
            bookings=[b.model_copy(deep=True) for _, b in sorted(self.bookings.items())],
            users=[u.model_copy() for _, u in sorted(self.users.items())],
        )

    def restore(self, snapshot: Snapshot) -> None:
        """Replace all contents with ``snapshot``, keeping its ids."""
        self.movies = {m.id: m.model_copy() for m in snapshot.movies}
        self.showtimes = {s.id: s.model_copy() for s in snapshot.showtimes}
        self.seats = {s.id: s.model_copy() for s in snapshot.seats}
        self.bookings = {b.id: b.model_copy(deep=True) for b in snapshot.bookings}
        self.users = {u.id: u.model_copy() for u in snapshot.users}
        self._next_ids = {
            "movie": max(self.movies, default=0) + 1,
            "showtime": max(self.showtimes, default=0) + 1,
            "seat": max(self.seats, default=0) + 1,
            "user": max(self.users, default=0) + 1,
        }
