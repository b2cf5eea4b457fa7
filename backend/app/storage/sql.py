# backend/app/storage/sql.py
import logging
from datetime import timezone
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app import models
from app.db import Database
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
from app.storage.seed import DEMO_MOVIES, generate_seats, seed_date

logger = logging.getLogger(__name__)


def _seat_row(seat: SeatCreate) -> models.Seat:
    return models.Seat(name=seat.name, type=seat.type.value, booked=seat.booked, showtime_id=seat.showtime_id)


def _booking(row: models.Booking) -> Booking:
    booking = Booking.model_validate(row)
    # sqlite hands back naive datetimes
    if booking.booking_date.tzinfo is None:
        booking.booking_date = booking.booking_date.replace(tzinfo=timezone.utc)
    return booking


class SqlStorage(Storage):
    """Relational backend: every call is one transaction on a pooled connection."""

    def __init__(self, db: Database):
        self.db = db

    # Movies
    async def list_movies(self) -> List[Movie]:
        async def op(session: AsyncSession):
            res = await session.execute(select(models.Movie).order_by(models.Movie.id))
            return [Movie.model_validate(m) for m in res.scalars().all()]

        return await self.db.run(op)

    async def get_movie(self, movie_id: int) -> Optional[Movie]:
        async def op(session: AsyncSession):
            row = await session.get(models.Movie, movie_id)
            return Movie.model_validate(row) if row else None

        return await self.db.run(op)

    async def create_movie(self, movie: MovieCreate) -> Movie:
        async def op(session: AsyncSession):
            row = models.Movie(**movie.model_dump())
            session.add(row)
            await session.flush()
            return Movie.model_validate(row)

        return await self.db.run(op)

    # Showtimes
    async def list_showtimes(self) -> List[Showtime]:
        async def op(session: AsyncSession):
            res = await session.execute(select(models.Showtime).order_by(models.Showtime.id))
            return [Showtime.model_validate(s) for s in res.scalars().all()]

        return await self.db.run(op)

    async def get_showtime(self, showtime_id: int) -> Optional[Showtime]:
        async def op(session: AsyncSession):
            row = await session.get(models.Showtime, showtime_id)
            return Showtime.model_validate(row) if row else None

        return await self.db.run(op)

    async def list_showtimes_for_movie(self, movie_id: int) -> List[Showtime]:
        async def op(session: AsyncSession):
            res = await session.execute(
                select(models.Showtime).where(models.Showtime.movie_id == movie_id).order_by(models.Showtime.id)
            )
            return [Showtime.model_validate(s) for s in res.scalars().all()]

        return await self.db.run(op)

    async def create_showtime(self, showtime: ShowtimeCreate) -> Showtime:
        async def op(session: AsyncSession):
            row = models.Showtime(**showtime.model_dump())
            session.add(row)
            await session.flush()
            return Showtime.model_validate(row)

        return await self.db.run(op)

    async def create_showtime_with_seats(self, showtime: ShowtimeCreate) -> Showtime:
        async def op(session: AsyncSession):
            row = models.Showtime(**showtime.model_dump())
            session.add(row)
            await session.flush()
            session.add_all([_seat_row(seat) for seat in generate_seats(row.id)])
            await session.flush()
            return Showtime.model_validate(row)

        return await self.db.run(op)

    # Seats
    async def get_seat(self, seat_id: int) -> Optional[Seat]:
        async def op(session: AsyncSession):
            row = await session.get(models.Seat, seat_id)
            return Seat.model_validate(row) if row else None

        return await self.db.run(op)

    async def list_seats_for_showtime(self, showtime_id: int) -> List[Seat]:
        async def op(session: AsyncSession):
            res = await session.execute(select(models.Seat).where(models.Seat.showtime_id == showtime_id))
            return sorted((Seat.model_validate(s) for s in res.scalars().all()), key=seat_sort_key)

        return await self.db.run(op)

    async def create_seat(self, seat: SeatCreate) -> Seat:
        async def op(session: AsyncSession):
            row = _seat_row(seat)
            session.add(row)
            await session.flush()
            return Seat.model_validate(row)

        return await self.db.run(op)

    async def set_seat_booked(self, seat_id: int, booked: bool) -> Optional[Seat]:
        async def op(session: AsyncSession):
            row = await session.get(models.Seat, seat_id)
            if row is None:
                return None
            row.booked = booked
            await session.flush()
            return Seat.model_validate(row)

        return await self.db.run(op)

    # Bookings
    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        async def op(session: AsyncSession):
            row = await session.get(models.Booking, booking_id)
            return _booking(row) if row else None

        return await self.db.run(op)

    async def list_bookings_for_user(self, user_id: int) -> List[Booking]:
        async def op(session: AsyncSession):
            res = await session.execute(
                select(models.Booking)
                .where(models.Booking.user_id == user_id)
                .order_by(models.Booking.booking_date.desc(), models.Booking.id.desc())
            )
            return [_booking(b) for b in res.scalars().all()]

        return await self.db.run(op)

    async def create_booking(self, booking: Booking) -> Booking:
        async def op(session: AsyncSession):
            session.add(models.Booking(**booking.model_dump()))
            await session.flush()
            return booking.model_copy(deep=True)

        try:
            return await self.db.run(op)
        except DuplicateKey as exc:
            raise DuplicateKey(f"booking {booking.id} already exists", key=booking.id) from exc

    async def book_seats(self, booking: Booking) -> Booking:
        seat_ids = list(booking.seats)

        async def op(session: AsyncSession):
            # Pessimistic lock on the selected seat rows for the rest of the transaction
            res = await session.execute(
                select(models.Seat).where(models.Seat.id.in_(seat_ids)).with_for_update()
            )
            rows = {row.id: row for row in res.scalars().all()}
            taken = [
                rows[seat_id].name if seat_id in rows else str(seat_id)
                for seat_id in seat_ids
                if seat_id not in rows or rows[seat_id].booked or rows[seat_id].showtime_id != booking.showtime_id
            ]
            if taken:
                raise SeatsUnavailable(taken)

            flipped = await session.execute(
                update(models.Seat)
                .where(
                    models.Seat.id.in_(seat_ids),
                    models.Seat.showtime_id == booking.showtime_id,
                    models.Seat.booked.is_(False),
                )
                .values(booked=True)
                .returning(models.Seat.id)
                .execution_options(synchronize_session=False)
            )
            flipped_ids = set(flipped.scalars().all())
            if len(flipped_ids) != len(seat_ids):
                # booked by someone else between the read and the update
                raise SeatsUnavailable([rows[seat_id].name for seat_id in seat_ids if seat_id not in flipped_ids])

            session.add(models.Booking(**booking.model_dump()))
            await session.flush()
            return booking.model_copy(deep=True)

        try:
            return await self.db.run(op)
        except DuplicateKey as exc:
            raise DuplicateKey(f"booking {booking.id} already exists", key=booking.id) from exc

    # Users
    async def get_user(self, user_id: int) -> Optional[User]:
        async def op(session: AsyncSession):
            row = await session.get(models.User, user_id)
            return User.model_validate(row) if row else None

        return await self.db.run(op)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        async def op(session: AsyncSession):
            res = await session.execute(select(models.User).where(models.User.username == username))
            row = res.scalars().first()
            return User.model_validate(row) if row else None

        return await self.db.run(op)

    async def create_user(self, user: UserCreate) -> User:
        async def op(session: AsyncSession):
            row = models.User(username=user.username, password=user.password)
            session.add(row)
            await session.flush()
            return User.model_validate(row)

        try:
            return await self.db.run(op)
        except DuplicateKey as exc:
            raise DuplicateKey(f"username {user.username} already registered", key=user.username) from exc

    async def snapshot(self) -> Snapshot:
        async def op(session: AsyncSession):
            async def rows(model):
                res = await session.execute(select(model).order_by(model.id))
                return res.scalars().all()

            return Snapshot(
                movies=[Movie.model_validate(r) for r in await rows(models.Movie)],
                showtimes=[Showtime.model_validate(r) for r in await rows(models.Showtime)],
                seats=[Seat.model_validate(r) for r in await rows(models.Seat)],
                bookings=[_booking(r) for r in await rows(models.Booking)],
                users=[User.model_validate(r) for r in await rows(models.User)],
            )

        return await self.db.run(op)

    async def initialize_data(self) -> bool:
        """Seed the demo catalogue in a single transaction; no-op if movies exist."""
        day = seed_date()

        async def op(session: AsyncSession):
            existing = await session.execute(select(models.Movie.id).limit(1))
            if existing.first() is not None:
                return False
            for movie, times in DEMO_MOVIES:
                movie_row = models.Movie(**movie.model_dump())
                session.add(movie_row)
                await session.flush()
                for label in times:
                    showtime_row = models.Showtime(movie_id=movie_row.id, time=label, date=day)
                    session.add(showtime_row)
                    await session.flush()
                    session.add_all([_seat_row(seat) for seat in generate_seats(showtime_row.id)])
            await session.flush()
            return True

        created = await self.db.run(op)
        if created:
            logger.info("database initialized with sample data")
        else:
            logger.info("database already initialized")
        return created
