from httpx import ASGITransport, AsyncClient

from app.config import ADMIN_KEY
from app.locks import ShowtimeLocks
from app.main import create_app
from app.storage.memory import MemoryStorage

ADMIN = {"X-Admin-Key": ADMIN_KEY}


async def _seat_id(client, showtime_id, name):
    r = await client.get(f"/api/seats/{showtime_id}")
    r.raise_for_status()
    return next(s["id"] for s in r.json() if s["name"] == name)


async def test_catalogue_reads(client):
    r = await client.get("/api/movies")
    assert r.status_code == 200
    assert [m["title"] for m in r.json()] == ["Avengers: Endgame", "Dune", "Black Widow", "No Time to Die"]

    r = await client.get("/api/movies/2")
    assert r.status_code == 200
    assert r.json()["duration_mins"] == 155

    r = await client.get("/api/showtimes")
    assert len(r.json()) == 23

    r = await client.get("/api/showtimes/1")
    assert [s["time"] for s in r.json()] == ["10:00 AM", "1:10 PM", "4:20 PM", "7:30 PM", "10:40 PM"]

    r = await client.get("/api/showtimes/999")
    assert r.status_code == 200
    assert r.json() == []

    r = await client.get("/api/seats/1")
    seats = r.json()
    assert len(seats) == 64
    assert seats[0] == {"id": 1, "name": "G1", "type": "GOLD", "booked": False, "showtime_id": 1}


async def test_missing_movie_is_404(client):
    r = await client.get("/api/movies/999")
    assert r.status_code == 404
    assert r.json() == {"detail": "movie not found"}


async def test_booking_a_seat_twice(client):
    g1 = await _seat_id(client, 1, "G1")
    payload = {"movie_id": 1, "showtime_id": 1, "seat_ids": [g1]}

    r = await client.post("/api/bookings", json=payload)
    assert r.status_code == 201
    booking = r.json()
    assert booking["total_amount"] == 400
    assert booking["seats"] == [g1]
    assert booking["user_id"] is None

    seats = (await client.get("/api/seats/1")).json()
    assert next(s for s in seats if s["id"] == g1)["booked"] is True

    r = await client.post("/api/bookings", json=payload)
    assert r.status_code == 400
    assert r.json()["seats"] == ["G1"]

    r = await client.get(f"/api/bookings/{booking['id']}")
    assert r.status_code == 200
    assert r.json() == booking


async def test_empty_selection_is_400(client, memory_storage):
    r = await client.post("/api/bookings", json={"movie_id": 1, "showtime_id": 1, "seat_ids": []})
    assert r.status_code == 400
    assert memory_storage.bookings == {}
    assert not any(seat.booked for seat in memory_storage.seats.values())


async def test_malformed_booking_is_400(client):
    r = await client.post("/api/bookings", json={"movie_id": 1, "seat_ids": "G1"})
    assert r.status_code == 400
    assert r.json()["detail"] == "invalid request data"


async def test_booking_unknown_showtime_is_404(client):
    r = await client.post("/api/bookings", json={"movie_id": 1, "showtime_id": 999, "seat_ids": [1]})
    assert r.status_code == 404


async def test_unknown_booking_is_404(client):
    r = await client.get("/api/bookings/MTIX0000000")
    assert r.status_code == 404


async def test_my_bookings_requires_login(client):
    r = await client.get("/api/my-bookings")
    assert r.status_code == 401
    r = await client.get("/api/user")
    assert r.status_code == 401


async def test_register_book_and_list(client):
    r = await client.post("/api/register", json={"username": "alice", "password": "s3cret"})
    assert r.status_code == 201
    user = r.json()
    assert user["username"] == "alice"
    assert "password" not in user

    r = await client.get("/api/user")
    assert r.json() == user

    b1 = await _seat_id(client, 6, "B1")
    r = await client.post("/api/bookings", json={"movie_id": 2, "showtime_id": 6, "seat_ids": [b1]})
    assert r.status_code == 201
    booking = r.json()
    assert booking["user_id"] == user["id"]
    assert booking["total_amount"] == 150

    r = await client.get("/api/my-bookings")
    assert r.status_code == 200
    assert r.json() == [booking]

    r = await client.post("/api/logout")
    assert r.status_code == 200
    assert (await client.get("/api/my-bookings")).status_code == 401


async def test_login(client, memory_storage):
    await client.post("/api/register", json={"username": "bob", "password": "hunter2"})
    await client.post("/api/logout")

    r = await client.post("/api/login", json={"username": "bob", "password": "wrong"})
    assert r.status_code == 401

    r = await client.post("/api/login", json={"username": "bob", "password": "hunter2"})
    assert r.status_code == 200
    assert r.json()["username"] == "bob"
    assert (await client.get("/api/my-bookings")).json() == []

    stored = await memory_storage.get_user_by_username("bob")
    assert stored.password != "hunter2"


async def test_duplicate_username_is_409(client):
    await client.post("/api/register", json={"username": "dana", "password": "a"})
    r = await client.post("/api/register", json={"username": "dana", "password": "b"})
    assert r.status_code == 409


async def test_health_reports_storage_mode(client):
    r = await client.get("/health")
    assert r.json() == {"status": "ok", "storage": "memory"}


async def test_admin_requires_key(client):
    r = await client.post("/admin/seed_demo_data")
    assert r.status_code == 401


async def test_admin_seed_and_catalogue_writes(client):
    r = await client.post("/admin/seed_demo_data", headers=ADMIN)
    assert r.status_code == 201
    assert r.json() == {"created": False, "movies": 4}

    r = await client.post(
        "/admin/movies",
        headers=ADMIN,
        json={"title": "Past Lives", "genre": "Drama", "duration_mins": 105, "poster_url": "https://example.com/p.jpg"},
    )
    assert r.status_code == 201
    movie = r.json()
    assert movie["id"] == 5

    r = await client.post("/admin/showtimes", headers=ADMIN, json={"movie_id": 5, "time": "9:15 PM", "date": "2026-10-20"})
    assert r.status_code == 201
    showtime = r.json()
    seats = (await client.get(f"/api/seats/{showtime['id']}")).json()
    assert len(seats) == 64

    r = await client.post("/admin/showtimes", headers=ADMIN, json={"movie_id": 99, "time": "9:15 PM", "date": "2026-10-20"})
    assert r.status_code == 404


class ExplodingStorage(MemoryStorage):
    async def list_movies(self):
        raise RuntimeError("boom")


async def test_unexpected_errors_are_500():
    app = create_app(storage=ExplodingStorage(), locks=ShowtimeLocks())
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as c:
        r = await c.get("/api/movies")
    assert r.status_code == 500
    assert r.json() == {"detail": "Internal Server Error"}
