import pytest
from httpx import ASGITransport, AsyncClient

from app.db import Database
from app.locks import ShowtimeLocks
from app.main import create_app
from app.storage.memory import MemoryStorage
from app.storage.sql import SqlStorage


@pytest.fixture
async def memory_storage():
    storage = MemoryStorage()
    await storage.initialize_data()
    return storage


@pytest.fixture
async def sql_db(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'showtix.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def sql_storage(sql_db):
    storage = SqlStorage(sql_db)
    await storage.initialize_data()
    return storage


@pytest.fixture(params=["memory", "sql"])
async def storage(request, tmp_path):
    """A seeded storage backend; tests using it run once per implementation."""
    if request.param == "memory":
        backend = MemoryStorage()
        await backend.initialize_data()
        yield backend
        return
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'showtix.db'}")
    await db.create_all()
    backend = SqlStorage(db)
    await backend.initialize_data()
    yield backend
    await db.dispose()


@pytest.fixture
async def client(memory_storage):
    app = create_app(storage=memory_storage, locks=ShowtimeLocks())
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as c:
        yield c


async def seat_named(storage, showtime_id: int, name: str):
    for seat in await storage.list_seats_for_showtime(showtime_id):
        if seat.name == name:
            return seat
    raise AssertionError(f"no seat {name} in showtime {showtime_id}")
