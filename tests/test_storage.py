from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import event

from app.errors import DuplicateKey, SeatsUnavailable
from app.schemas import Booking, MovieCreate, SeatCreate, SeatType, ShowtimeCreate, UserCreate
from app.storage.memory import MemoryStorage
from app.storage.seed import SEATS_PER_SHOWTIME

from conftest import seat_named


async def test_seeding_twice_does_not_duplicate(storage):
    before = await storage.snapshot()

    assert await storage.initialize_data() is False

    after = await storage.snapshot()
    assert after == before
    assert len(after.movies) == 4
    assert len(after.showtimes) == 23
    assert len(after.seats) == 23 * SEATS_PER_SHOWTIME
    assert not any(seat.booked for seat in after.seats)


async def test_seat_ids_are_partitioned_per_showtime(storage):
    seats = await storage.list_seats_for_showtime(2)
    assert sorted(s.id for s in seats) == list(range(65, 129))
    assert all(s.showtime_id == 2 for s in seats)


async def test_seats_ordered_by_section_then_number(storage):
    names = [s.name for s in await storage.list_seats_for_showtime(1)]
    expected = [f"G{i}" for i in range(1, 9)] + [f"R{i}" for i in range(1, 21)] + [f"B{i}" for i in range(1, 37)]
    assert names == expected


async def test_seat_order_does_not_follow_insertion_order():
    storage = MemoryStorage()
    for name, seat_type in [("B10", SeatType.BLUE), ("G10", SeatType.GOLD), ("B2", SeatType.BLUE), ("R1", SeatType.RED), ("G2", SeatType.GOLD)]:
        await storage.create_seat(SeatCreate(name=name, type=seat_type, showtime_id=7))

    assert [s.name for s in await storage.list_seats_for_showtime(7)] == ["G2", "G10", "R1", "B2", "B10"]


async def test_showtimes_for_movie(storage):
    assert [s.id for s in await storage.list_showtimes_for_movie(2)] == [6, 7, 8, 9, 10, 11]
    assert await storage.list_showtimes_for_movie(999) == []


async def test_missing_rows_are_none(storage):
    assert await storage.get_movie(999) is None
    assert await storage.get_showtime(999) is None
    assert await storage.get_seat(99999) is None
    assert await storage.get_booking("MTIX9999999") is None
    assert await storage.get_user(42) is None
    assert await storage.get_user_by_username("nobody") is None
    assert await storage.set_seat_booked(99999, True) is None


async def test_create_movie_and_showtime_with_seats(storage):
    movie = await storage.create_movie(
        MovieCreate(title="Oppenheimer", genre="Drama", duration_mins=180, poster_url="https://example.com/o.jpg")
    )
    showtime = await storage.create_showtime_with_seats(ShowtimeCreate(movie_id=movie.id, time="6:00 PM", date="2026-10-20"))

    assert movie.id == 5
    assert showtime.id == 24
    assert await storage.get_movie(5) == movie
    seats = await storage.list_seats_for_showtime(showtime.id)
    assert len(seats) == SEATS_PER_SHOWTIME
    assert seats[0].id == 23 * SEATS_PER_SHOWTIME + 1


async def test_set_seat_booked(storage):
    g3 = await seat_named(storage, 4, "G3")
    updated = await storage.set_seat_booked(g3.id, True)
    assert updated.booked
    assert (await storage.get_seat(g3.id)).booked


async def test_usernames_are_unique(storage):
    user = await storage.create_user(UserCreate(username="bob", password="hash"))
    assert await storage.get_user(user.id) == user
    assert await storage.get_user_by_username("bob") == user

    with pytest.raises(DuplicateKey):
        await storage.create_user(UserCreate(username="bob", password="other"))


def _booking(booking_id, seat_ids, minutes_ago=0, user_id=None, showtime_id=1):
    return Booking(
        id=booking_id,
        movie_id=1,
        showtime_id=showtime_id,
        seats=seat_ids,
        total_amount=400 * len(seat_ids),
        booking_date=datetime.now(timezone.utc) - timedelta(minutes=minutes_ago),
        user_id=user_id,
    )


async def test_book_seats_refuses_taken_seat_and_writes_nothing(storage):
    g1 = await seat_named(storage, 1, "G1")
    g2 = await seat_named(storage, 1, "G2")
    await storage.set_seat_booked(g2.id, True)

    with pytest.raises(SeatsUnavailable) as excinfo:
        await storage.book_seats(_booking("MTIX0000010", [g1.id, g2.id]))

    assert excinfo.value.seats == ["G2"]
    assert await storage.get_booking("MTIX0000010") is None
    assert not (await storage.get_seat(g1.id)).booked


async def test_book_seats_refuses_seat_of_other_showtime(storage):
    foreign = await seat_named(storage, 2, "G1")
    with pytest.raises(SeatsUnavailable):
        await storage.book_seats(_booking("MTIX0000011", [foreign.id], showtime_id=1))
    assert not (await storage.get_seat(foreign.id)).booked


async def test_create_booking_rejects_duplicate_id(storage):
    await storage.create_booking(_booking("MTIX0000020", [1]))
    with pytest.raises(DuplicateKey):
        await storage.create_booking(_booking("MTIX0000020", [2]))


async def test_bookings_for_user_newest_first(storage):
    older = await storage.create_booking(_booking("MTIX0000030", [1], minutes_ago=10, user_id=7))
    newer = await storage.create_booking(_booking("MTIX0000031", [2], minutes_ago=1, user_id=7))
    await storage.create_booking(_booking("MTIX0000032", [3], user_id=8))

    assert [b.id for b in await storage.list_bookings_for_user(7)] == [newer.id, older.id]


async def test_backends_answer_identically(memory_storage, sql_storage):
    assert await memory_storage.list_movies() == await sql_storage.list_movies()
    assert await memory_storage.list_showtimes() == await sql_storage.list_showtimes()
    assert await memory_storage.list_seats_for_showtime(5) == await sql_storage.list_seats_for_showtime(5)


async def test_restore_keeps_ids_and_counters(sql_storage):
    memory = MemoryStorage()
    memory.restore(await sql_storage.snapshot())

    assert await memory.snapshot() == await sql_storage.snapshot()
    movie = await memory.create_movie(
        MovieCreate(title="Tenet", genre="Sci-Fi", duration_mins=150, poster_url="https://example.com/t.jpg")
    )
    assert movie.id == 5


async def test_seat_taken_after_the_read_is_reported_alone(sql_storage):
    g1 = await seat_named(sql_storage, 1, "G1")
    g2 = await seat_named(sql_storage, 1, "G2")
    engine = sql_storage.db.engine.sync_engine
    fired = []

    # another writer books G2 inside the transaction, right before the conditional update
    def book_g2_first(conn, cursor, statement, parameters, context, executemany):
        if statement.startswith("UPDATE seats") and not fired:
            fired.append(statement)
            cursor.execute("UPDATE seats SET booked = 1 WHERE id = ?", (g2.id,))

    event.listen(engine, "before_cursor_execute", book_g2_first)
    try:
        with pytest.raises(SeatsUnavailable) as excinfo:
            await sql_storage.book_seats(_booking("MTIX0000012", [g1.id, g2.id]))
    finally:
        event.remove(engine, "before_cursor_execute", book_g2_first)

    assert fired
    assert excinfo.value.seats == ["G2"]
    assert await sql_storage.get_booking("MTIX0000012") is None
    assert not (await sql_storage.get_seat(g1.id)).booked
