# backend/app/storage/hybrid.py
"""
HybridStorage: the relational backend while it works, the in-memory backend after.

The coordinator has two states. In PRIMARY every call goes to the persistent
backend. The first infrastructure failure moves it to DEGRADED for the rest
of the process lifetime: the failure is logged, the in-memory copy is
refreshed from the persistent side if that still answers, and the call is
replayed against memory. Calls that reach memory during that refresh wait
for it to finish, so a write made after the switch is never overwritten by
the snapshot. Domain errors (seat conflicts, duplicate usernames)
are answers, not failures, and pass straight through.
"""
import asyncio
import enum
import logging
from typing import Awaitable, Callable, List, Optional, TypeVar

from app.errors import BackendUnavailable, ShowtixError
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
from app.storage.base import Storage
from app.storage.memory import MemoryStorage

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StorageMode(str, enum.Enum):
    PRIMARY = "primary"
    DEGRADED = "degraded"


class HybridStorage(Storage):
    def __init__(self, primary: Storage, fallback: Optional[MemoryStorage] = None):
        self.primary = primary
        self.fallback = fallback if fallback is not None else MemoryStorage()
        self._mode = StorageMode.PRIMARY
        # Held while memory is being replaced; memory calls wait until it is set
        self._transition = asyncio.Lock()
        self._fallback_ready = asyncio.Event()
        self._fallback_ready.set()

    @property
    def mode(self) -> StorageMode:
        return self._mode

    async def start(self) -> None:
        """Copy whatever the persistent backend holds into memory (best-effort)."""
        await self._sync_to_fallback()
        logger.info("hybrid storage started in %s mode", self._mode.value)

    async def _sync_to_fallback(self) -> bool:
        try:
            snapshot = await self.primary.snapshot()
        except Exception as exc:
            logger.warning("failed to sync persistent data to memory: %s", exc)
            return False
        self.fallback.restore(snapshot)
        logger.info(
            "synced %d movies, %d showtimes, %d seats, %d bookings, %d users to memory",
            len(snapshot.movies),
            len(snapshot.showtimes),
            len(snapshot.seats),
            len(snapshot.bookings),
            len(snapshot.users),
        )
        return True

    async def _demote(self, operation: str, exc: BaseException) -> None:
        async with self._transition:
            if self._mode is StorageMode.DEGRADED:
                # a concurrent failure already switched over
                return
            logger.error("storage operation %r failed, switching to memory fallback: %s", operation, exc)
            self._fallback_ready.clear()
            self._mode = StorageMode.DEGRADED
            try:
                await self._sync_to_fallback()
            finally:
                self._fallback_ready.set()

    async def _call(
        self,
        operation: str,
        on_primary: Callable[[], Awaitable[T]],
        on_fallback: Callable[[], Awaitable[T]],
    ) -> T:
        if self._mode is StorageMode.PRIMARY:
            try:
                return await on_primary()
            except BackendUnavailable as exc:
                await self._demote(operation, exc)
            except ShowtixError:
                raise
            except Exception as exc:
                await self._demote(operation, exc)
        # nothing may touch memory while a resync is replacing it
        await self._fallback_ready.wait()
        return await on_fallback()

    # Movies
    async def list_movies(self) -> List[Movie]:
        return await self._call("list_movies", self.primary.list_movies, self.fallback.list_movies)

    async def get_movie(self, movie_id: int) -> Optional[Movie]:
        return await self._call(
            f"get_movie({movie_id})",
            lambda: self.primary.get_movie(movie_id),
            lambda: self.fallback.get_movie(movie_id),
        )

    async def create_movie(self, movie: MovieCreate) -> Movie:
        return await self._call(
            "create_movie",
            lambda: self.primary.create_movie(movie),
            lambda: self.fallback.create_movie(movie),
        )

    # Showtimes
    async def list_showtimes(self) -> List[Showtime]:
        return await self._call("list_showtimes", self.primary.list_showtimes, self.fallback.list_showtimes)

    async def get_showtime(self, showtime_id: int) -> Optional[Showtime]:
        return await self._call(
            f"get_showtime({showtime_id})",
            lambda: self.primary.get_showtime(showtime_id),
            lambda: self.fallback.get_showtime(showtime_id),
        )

    async def list_showtimes_for_movie(self, movie_id: int) -> List[Showtime]:
        return await self._call(
            f"list_showtimes_for_movie({movie_id})",
            lambda: self.primary.list_showtimes_for_movie(movie_id),
            lambda: self.fallback.list_showtimes_for_movie(movie_id),
        )

    async def create_showtime(self, showtime: ShowtimeCreate) -> Showtime:
        return await self._call(
            "create_showtime",
            lambda: self.primary.create_showtime(showtime),
            lambda: self.fallback.create_showtime(showtime),
        )

    async def create_showtime_with_seats(self, showtime: ShowtimeCreate) -> Showtime:
        return await self._call(
            "create_showtime_with_seats",
            lambda: self.primary.create_showtime_with_seats(showtime),
            lambda: self.fallback.create_showtime_with_seats(showtime),
        )

    # Seats
    async def get_seat(self, seat_id: int) -> Optional[Seat]:
        return await self._call(
            f"get_seat({seat_id})",
            lambda: self.primary.get_seat(seat_id),
            lambda: self.fallback.get_seat(seat_id),
        )

    async def list_seats_for_showtime(self, showtime_id: int) -> List[Seat]:
        return await self._call(
            f"list_seats_for_showtime({showtime_id})",
            lambda: self.primary.list_seats_for_showtime(showtime_id),
            lambda: self.fallback.list_seats_for_showtime(showtime_id),
        )

    async def create_seat(self, seat: SeatCreate) -> Seat:
        return await self._call(
            "create_seat",
            lambda: self.primary.create_seat(seat),
            lambda: self.fallback.create_seat(seat),
        )

    async def set_seat_booked(self, seat_id: int, booked: bool) -> Optional[Seat]:
        return await self._call(
            f"set_seat_booked({seat_id}, {booked})",
            lambda: self.primary.set_seat_booked(seat_id, booked),
            lambda: self.fallback.set_seat_booked(seat_id, booked),
        )

    # Bookings
    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        return await self._call(
            f"get_booking({booking_id})",
            lambda: self.primary.get_booking(booking_id),
            lambda: self.fallback.get_booking(booking_id),
        )

    async def list_bookings_for_user(self, user_id: int) -> List[Booking]:
        return await self._call(
            f"list_bookings_for_user({user_id})",
            lambda: self.primary.list_bookings_for_user(user_id),
            lambda: self.fallback.list_bookings_for_user(user_id),
        )

    async def create_booking(self, booking: Booking) -> Booking:
        return await self._call(
            "create_booking",
            lambda: self.primary.create_booking(booking),
            lambda: self.fallback.create_booking(booking),
        )

    async def book_seats(self, booking: Booking) -> Booking:
        return await self._call(
            f"book_seats({booking.id})",
            lambda: self.primary.book_seats(booking),
            lambda: self.fallback.book_seats(booking),
        )

    # Users
    async def get_user(self, user_id: int) -> Optional[User]:
        return await self._call(
            f"get_user({user_id})",
            lambda: self.primary.get_user(user_id),
            lambda: self.fallback.get_user(user_id),
        )

    async def get_user_by_username(self, username: str) -> Optional[User]:
        return await self._call(
            f"get_user_by_username({username})",
            lambda: self.primary.get_user_by_username(username),
            lambda: self.fallback.get_user_by_username(username),
        )

    async def create_user(self, user: UserCreate) -> User:
        return await self._call(
            "create_user",
            lambda: self.primary.create_user(user),
            lambda: self.fallback.create_user(user),
        )

    async def snapshot(self) -> Snapshot:
        return await self._call("snapshot", self.primary.snapshot, self.fallback.snapshot)

    async def initialize_data(self) -> bool:
        created = await self._call("initialize_data", self.primary.initialize_data, self.fallback.initialize_data)
        async with self._transition:
            if self._mode is StorageMode.PRIMARY:
                await self._sync_to_fallback()
        return created
