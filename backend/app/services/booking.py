# booking.py
import logging
import secrets
from datetime import datetime, timezone
from typing import List, Optional

from app.errors import DuplicateKey, InvalidRequest, NotFound, SeatsUnavailable
from app.locks import ShowtimeLocks
from app.schemas import Booking
from app.storage.base import Storage

logger = logging.getLogger(__name__)

MAX_RETRIES = 5
BOOKING_ID_PREFIX = "MTIX"


def generate_booking_id() -> str:
    return f"{BOOKING_ID_PREFIX}{secrets.randbelow(10_000_000):07d}"


class BookingEngine:
    """Turns a seat selection into a stored Booking without double-booking seats."""

    def __init__(self, storage: Storage, locks: Optional[ShowtimeLocks] = None):
        self.storage = storage
        self.locks = locks if locks is not None else ShowtimeLocks()

    async def create_booking(
        self,
        movie_id: int,
        showtime_id: int,
        seat_ids: List[int],
        user_id: Optional[int] = None,
    ) -> Booking:
        if not seat_ids:
            raise InvalidRequest("at least one seat must be selected")
        if len(set(seat_ids)) != len(seat_ids):
            raise InvalidRequest("duplicate seats in request")

        showtime = await self.storage.get_showtime(showtime_id)
        if showtime is None:
            raise NotFound("showtime not found")
        if showtime.movie_id != movie_id:
            raise InvalidRequest(f"showtime {showtime_id} is not a screening of movie {movie_id}")

        async with self.locks.hold(showtime_id):
            # Seat state is re-read on every attempt, never cached
            seats = {seat.id: seat for seat in await self.storage.list_seats_for_showtime(showtime_id)}
            unknown = [seat_id for seat_id in seat_ids if seat_id not in seats]
            if unknown:
                raise InvalidRequest(f"unknown seats for showtime {showtime_id}: {unknown}")

            selected = [seats[seat_id] for seat_id in seat_ids]
            taken = [seat.name for seat in selected if seat.booked]
            if taken:
                raise SeatsUnavailable(taken)

            total_amount = sum(seat.price for seat in selected)

            for attempt in range(MAX_RETRIES):
                booking = Booking(
                    id=generate_booking_id(),
                    movie_id=movie_id,
                    showtime_id=showtime_id,
                    seats=list(seat_ids),
                    total_amount=total_amount,
                    booking_date=datetime.now(timezone.utc),
                    user_id=user_id,
                )
                try:
                    created = await self.storage.book_seats(booking)
                except DuplicateKey:
                    # booking id collision; draw a new one
                    if attempt < MAX_RETRIES - 1:
                        logger.warning("booking id %s already taken, retrying", booking.id)
                        continue
                    raise
                logger.info(
                    "booking %s created: showtime=%s seats=%s total=%s",
                    created.id,
                    showtime_id,
                    [seat.name for seat in selected],
                    total_amount,
                )
                return created
